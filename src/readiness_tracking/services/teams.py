from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from readiness_tracking.services.grades import individual_grade, rating_for
from readiness_tracking.services.normalize import LEVEL_FIT, LEVEL_MINOR, LEVEL_NOT_FIT, Assignment
from readiness_tracking.services.periods import Period
from readiness_tracking.services.scoring import (
    QUALITY_BASELINE,
    AssignmentCounts,
    ScoreBreakdown,
    count_assignments,
    in_period,
    individual_score,
)


@dataclass(frozen=True)
class TeamPerformance:
    team_leader_id: str
    team_leader_name: str
    member_count: int
    total_assignments: int
    completed: int
    on_time: int
    late: int
    pending: int
    overdue: int
    completion_rate: float
    on_time_rate: float
    quality_score: float
    quality_is_baseline: bool
    composite_score: float
    grade: str
    rating: str
    high_risk_reports: int = 0
    average_response_hours: float = 0.0
    readiness_counts: dict[str, int] = field(default_factory=dict)
    rank: int = 0


@dataclass(frozen=True)
class OrganizationSummary:
    team_count: int
    active_team_count: int
    worker_count: int
    total_assignments: int
    completed: int
    on_time: int
    late: int
    pending: int
    overdue: int
    completion_rate: float
    on_time_rate: float
    quality_score: float
    quality_is_baseline: bool
    composite_score: float
    grade: str
    high_risk_reports: int = 0
    average_response_hours: float = 0.0
    dropped_records: int = 0


def pooled_score(counts: AssignmentCounts) -> ScoreBreakdown:
    if not counts.total:
        return ScoreBreakdown(quality_score=QUALITY_BASELINE, quality_is_baseline=True)
    return individual_score(counts)


def _readiness_counts(counts: AssignmentCounts) -> dict[str, int]:
    return {LEVEL_FIT: counts.fit, LEVEL_MINOR: counts.minor, LEVEL_NOT_FIT: counts.not_fit}


def build_team_performance(
    team_leader_id: str,
    assignments: list[Assignment],
    team_leader_name: str | None = None,
) -> TeamPerformance:
    # Pooled counts first, rates second: a team is not the mean of its workers.
    counts = count_assignments(assignments)
    score = pooled_score(counts)
    grade = individual_grade(score.composite_score)
    return TeamPerformance(
        team_leader_id=team_leader_id,
        team_leader_name=team_leader_name or team_leader_id,
        member_count=len({a.worker_id for a in assignments}),
        total_assignments=counts.total,
        completed=counts.completed,
        on_time=counts.on_time,
        late=counts.late,
        pending=counts.pending,
        overdue=counts.overdue,
        completion_rate=score.completion_rate,
        on_time_rate=score.on_time_rate,
        quality_score=score.quality_score,
        quality_is_baseline=score.quality_is_baseline,
        composite_score=score.composite_score,
        grade=grade,
        rating=rating_for(grade, individual=True),
        high_risk_reports=counts.not_fit,
        average_response_hours=counts.average_response_hours,
        readiness_counts=_readiness_counts(counts),
    )


def group_by_team(assignments: Iterable[Assignment]) -> dict[str, list[Assignment]]:
    teams: dict[str, list[Assignment]] = {}
    for assignment in assignments:
        teams.setdefault(assignment.team_leader_id, []).append(assignment)
    return teams


def aggregate_teams(
    assignments: Iterable[Assignment],
    period: Period | None = None,
    team_names: Mapping[str, str] | None = None,
) -> list[TeamPerformance]:
    """Team metrics in first-encounter order.

    Team leaders listed in ``team_names`` without assignments in the period
    are included as inactive teams with zero counts.
    """
    names = dict(team_names or {})
    teams = group_by_team(in_period(assignments, period))
    for team_leader_id in names:
        teams.setdefault(team_leader_id, [])
    return [
        build_team_performance(team_leader_id, rows, names.get(team_leader_id))
        for team_leader_id, rows in teams.items()
    ]


def organization_summary(
    assignments: Iterable[Assignment],
    period: Period | None = None,
    team_count: int | None = None,
    dropped_records: int = 0,
) -> OrganizationSummary:
    scoped = in_period(assignments, period)
    counts = count_assignments(scoped)
    score = pooled_score(counts)
    active_teams = {a.team_leader_id for a in scoped}
    return OrganizationSummary(
        team_count=team_count if team_count is not None else len(active_teams),
        active_team_count=len(active_teams),
        worker_count=len({a.worker_id for a in scoped}),
        total_assignments=counts.total,
        completed=counts.completed,
        on_time=counts.on_time,
        late=counts.late,
        pending=counts.pending,
        overdue=counts.overdue,
        completion_rate=score.completion_rate,
        on_time_rate=score.on_time_rate,
        quality_score=score.quality_score,
        quality_is_baseline=score.quality_is_baseline,
        composite_score=score.composite_score,
        grade=individual_grade(score.composite_score),
        high_risk_reports=counts.not_fit,
        average_response_hours=counts.average_response_hours,
        dropped_records=dropped_records,
    )
