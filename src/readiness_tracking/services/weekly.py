from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from readiness_tracking.services.grades import bucket_grade, rating_for
from readiness_tracking.services.normalize import Assignment
from readiness_tracking.services.periods import Period, parse_period
from readiness_tracking.services.scoring import count_assignments, rate

BUCKET_COMPLETION_WEIGHT = 0.5
BUCKET_ON_TIME_WEIGHT = 0.3
BUCKET_OVERDUE_WEIGHT = 0.2
WEEK_DAYS = 7


@dataclass(frozen=True)
class WeekBucket:
    week_number: int
    start: date
    end: date
    assigned: int
    completed: int
    on_time: int
    late: int
    pending: int
    overdue: int
    completion_rate: float
    on_time_rate: float
    overdue_rate: float
    quality_score: float
    grade: str
    rating: str
    average_response_hours: float = 0.0
    trend: float | None = None

    @property
    def date_range(self) -> str:
        return f"{self.start.day}-{self.end.day}"

    @property
    def label(self) -> str:
        return f"Week {self.week_number} ({self.date_range})"


@dataclass(frozen=True)
class WeeklySummary:
    week_count: int
    assigned: int
    completed: int
    on_time: int
    overdue: int
    completion_rate: float
    on_time_rate: float
    average_quality_score: float
    trend: float | None


def bucket_quality(completion_rate: float, on_time_rate: float, overdue_rate: float) -> float:
    score = (
        BUCKET_COMPLETION_WEIGHT * completion_rate
        + BUCKET_ON_TIME_WEIGHT * on_time_rate
        - BUCKET_OVERDUE_WEIGHT * overdue_rate
    )
    return round(max(0.0, score), 1)


def week_windows(month: Period, system_start: date | None) -> list[tuple[date, date]]:
    start = month.start if system_start is None else max(month.start, system_start)
    windows: list[tuple[date, date]] = []
    while start <= month.end:
        end = min(start + timedelta(days=WEEK_DAYS - 1), month.end)
        windows.append((start, end))
        start += timedelta(days=WEEK_DAYS)
    return windows


def _build_bucket(
    week_number: int,
    start: date,
    end: date,
    assignments: list[Assignment],
    previous: WeekBucket | None,
) -> WeekBucket:
    counts = count_assignments(assignments)
    completion_rate = rate(counts.completed, counts.total)
    # on-time is over completed check-ins here, not all assignments
    on_time_rate = rate(counts.on_time, counts.completed)
    overdue_rate = rate(counts.overdue, counts.total)
    quality = bucket_quality(completion_rate, on_time_rate, overdue_rate)
    grade = bucket_grade(quality)
    return WeekBucket(
        week_number=week_number,
        start=start,
        end=end,
        assigned=counts.total,
        completed=counts.completed,
        on_time=counts.on_time,
        late=counts.late,
        pending=counts.pending,
        overdue=counts.overdue,
        completion_rate=completion_rate,
        on_time_rate=on_time_rate,
        overdue_rate=overdue_rate,
        quality_score=quality,
        grade=grade,
        rating=rating_for(grade),
        average_response_hours=counts.average_response_hours,
        trend=None if previous is None else round(quality - previous.quality_score, 1),
    )


def bucketize_month(
    assignments: Iterable[Assignment],
    month: Period | str,
    system_start: date | None = None,
) -> list[WeekBucket]:
    """Split a month into week buckets; each assignment lands in exactly one.

    ``system_start`` overrides the earliest assigned date when the caller only
    fetched the month itself but knows the data store is older.
    """
    period = parse_period(month)
    rows = list(assignments)
    earliest = min((a.assigned_date for a in rows), default=None)
    if system_start is None or (earliest is not None and earliest < system_start):
        system_start = earliest

    buckets: list[WeekBucket] = []
    previous: WeekBucket | None = None
    for week_number, (start, end) in enumerate(week_windows(period, system_start), start=1):
        members = [a for a in rows if start <= a.assigned_date <= end]
        previous = _build_bucket(week_number, start, end, members, previous)
        buckets.append(previous)
    return buckets


def weekly_trend(buckets: list[WeekBucket]) -> float | None:
    if len(buckets) < 2:
        return None
    return round(buckets[-1].quality_score - buckets[-2].quality_score, 1)


def summarize_weeks(buckets: list[WeekBucket]) -> WeeklySummary:
    assigned = sum(b.assigned for b in buckets)
    completed = sum(b.completed for b in buckets)
    on_time = sum(b.on_time for b in buckets)
    overdue = sum(b.overdue for b in buckets)
    average_quality = sum(b.quality_score for b in buckets) / len(buckets) if buckets else 0.0
    return WeeklySummary(
        week_count=len(buckets),
        assigned=assigned,
        completed=completed,
        on_time=on_time,
        overdue=overdue,
        completion_rate=rate(completed, assigned),
        on_time_rate=rate(on_time, completed),
        average_quality_score=round(average_quality, 1),
        trend=weekly_trend(buckets),
    )
