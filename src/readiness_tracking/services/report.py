from __future__ import annotations

from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping

from readiness_tracking.services.insights import OrganizationInsights, Remark, organization_insights, remark_for
from readiness_tracking.services.normalize import Assignment, normalize_assignments
from readiness_tracking.services.periods import Period, parse_period
from readiness_tracking.services.ranking import DEFAULT_PAGE_SIZE, Page, paginate, rank_by_score
from readiness_tracking.services.scoring import (
    WorkerPerformance,
    count_assignments,
    in_period,
    rate,
    score_workers,
)
from readiness_tracking.services.teams import (
    OrganizationSummary,
    TeamPerformance,
    aggregate_teams,
    organization_summary,
)
from readiness_tracking.services.weekly import WeekBucket, WeeklySummary, bucketize_month, summarize_weeks


@dataclass(frozen=True)
class PerformanceReport:
    period: Period
    workers: Page[WorkerPerformance]
    ranked_workers: list[WorkerPerformance]
    teams: list[TeamPerformance]
    organization: OrganizationSummary
    weeks: list[WeekBucket]
    weekly_summary: WeeklySummary
    remarks: dict[str, Remark] = field(default_factory=dict)
    insights: OrganizationInsights = field(default_factory=OrganizationInsights)
    dropped_records: int = 0
    drop_reasons: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload = _jsonable(asdict(self))
        for bucket, source in zip(payload["weeks"], self.weeks):
            bucket["date_range"] = source.date_range
        return payload


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, float):
        return round(value, 1)
    if is_dataclass(value):
        return _jsonable(asdict(value))
    return value


def worker_period_readiness(assignments: list[Assignment], weeks: list[WeekBucket]) -> list[float]:
    """Readiness percentage (completed over assigned) per week with assignments, oldest first."""
    readiness: list[float] = []
    for week in weeks:
        counts = count_assignments(a for a in assignments if week.start <= a.assigned_date <= week.end)
        if counts.total:
            readiness.append(rate(counts.completed, counts.total))
    return readiness


def build_month_report(
    rows: Iterable[Any],
    period: str | Mapping[str, Any] | Period,
    *,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    team_names: Mapping[str, str] | None = None,
    roster: Iterable[str] | Mapping[str, str] | None = None,
    system_start: date | None = None,
) -> PerformanceReport:
    """Run the full pipeline over raw rows for one period.

    Raises:
        PeriodError: If ``period`` is not a valid selector.
    """
    selected = parse_period(period)
    normalized = normalize_assignments(rows)
    assignments = normalized.assignments
    scoped = in_period(assignments, selected)

    ranked_workers = rank_by_score(score_workers(scoped, worker_ids=roster))
    teams = rank_by_score(aggregate_teams(scoped, team_names=team_names))
    weeks = bucketize_month(assignments, selected, system_start=system_start)

    by_worker: dict[str, list[Assignment]] = {}
    for assignment in scoped:
        by_worker.setdefault(assignment.worker_id, []).append(assignment)
    remarks = {
        worker.worker_id: remark_for(
            worker_period_readiness(by_worker.get(worker.worker_id, []), weeks),
            worker.completion_rate,
            worker.on_time_rate,
        )
        for worker in ranked_workers
    }

    return PerformanceReport(
        period=selected,
        workers=paginate(ranked_workers, page, page_size),
        ranked_workers=ranked_workers,
        teams=teams,
        organization=organization_summary(
            scoped,
            team_count=len(teams),
            dropped_records=normalized.dropped,
        ),
        weeks=weeks,
        weekly_summary=summarize_weeks(weeks),
        remarks=remarks,
        insights=organization_insights(teams),
        dropped_records=normalized.dropped,
        drop_reasons=normalized.drop_reasons,
    )
