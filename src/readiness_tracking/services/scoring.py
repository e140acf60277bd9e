from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable, Mapping

from readiness_tracking.services.grades import individual_grade, rating_for
from readiness_tracking.services.normalize import (
    LEVEL_FIT,
    LEVEL_MINOR,
    LEVEL_NOT_FIT,
    STATUS_ASSIGNED,
    STATUS_OVERDUE,
    STATUS_PENDING,
    Assignment,
)
from readiness_tracking.services.periods import Period

QUALITY_POINTS = {LEVEL_FIT: 100.0, LEVEL_MINOR: 70.0, LEVEL_NOT_FIT: 30.0}
QUALITY_BASELINE = 70.0

# Rates use total assignments as the denominator.
COMPLETION_WEIGHT = 0.5
ON_TIME_WEIGHT = 0.25
QUALITY_WEIGHT = 0.1

ON_TIME_LATE_PENALTY = 50.0
QUALITY_LATE_PENALTY = 20.0
PENDING_BONUS_CAP = 5.0
OVERDUE_PENALTY_CAP = 10.0
RECOVERY_BONUS = 3.0
RECOVERY_THRESHOLD = 80.0


def clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    return max(lower, min(upper, value))


def rate(part: float, total: float) -> float:
    """Percentage of ``part`` in ``total``; an empty denominator yields 0."""
    if not total:
        return 0.0
    return clamp(100 * part / total)


@dataclass(frozen=True)
class AssignmentCounts:
    total: int = 0
    completed: int = 0
    on_time: int = 0
    late: int = 0
    pending: int = 0
    assigned: int = 0
    overdue: int = 0
    fit: int = 0
    minor: int = 0
    not_fit: int = 0
    response_hours_total: float = 0.0
    response_samples: int = 0

    @property
    def level_samples(self) -> int:
        return self.fit + self.minor + self.not_fit

    @property
    def quality_mean(self) -> float | None:
        if not self.level_samples:
            return None
        points = (
            self.fit * QUALITY_POINTS[LEVEL_FIT]
            + self.minor * QUALITY_POINTS[LEVEL_MINOR]
            + self.not_fit * QUALITY_POINTS[LEVEL_NOT_FIT]
        )
        return points / self.level_samples

    @property
    def average_response_hours(self) -> float:
        if not self.response_samples:
            return 0.0
        return self.response_hours_total / self.response_samples


def count_assignments(assignments: Iterable[Assignment]) -> AssignmentCounts:
    total = completed = on_time = pending = assigned = overdue = 0
    levels = {LEVEL_FIT: 0, LEVEL_MINOR: 0, LEVEL_NOT_FIT: 0}
    response_total = 0.0
    response_samples = 0
    for assignment in assignments:
        total += 1
        if assignment.is_completed:
            completed += 1
            if assignment.is_on_time:
                on_time += 1
            hours = assignment.response_hours
            if hours is not None:
                response_total += hours
                response_samples += 1
        elif assignment.status == STATUS_PENDING:
            pending += 1
        elif assignment.status == STATUS_ASSIGNED:
            assigned += 1
        elif assignment.status == STATUS_OVERDUE:
            overdue += 1
        if assignment.readiness_level in levels:
            levels[assignment.readiness_level] += 1
    return AssignmentCounts(
        total=total,
        completed=completed,
        on_time=on_time,
        late=completed - on_time,
        pending=pending,
        assigned=assigned,
        overdue=overdue,
        fit=levels[LEVEL_FIT],
        minor=levels[LEVEL_MINOR],
        not_fit=levels[LEVEL_NOT_FIT],
        response_hours_total=response_total,
        response_samples=response_samples,
    )


@dataclass(frozen=True)
class ScoreBreakdown:
    completion_rate: float = 0.0
    on_time_rate: float = 0.0
    quality_score: float = 0.0
    quality_is_baseline: bool = False
    pending_bonus: float = 0.0
    overdue_penalty: float = 0.0
    recovery_bonus: float = 0.0
    composite_score: float = 0.0


def quality_score(counts: AssignmentCounts) -> tuple[float, bool]:
    """Return ``(score, is_baseline)``; the baseline is not late-penalised."""
    mean = counts.quality_mean
    if mean is None:
        return QUALITY_BASELINE, True
    penalty = QUALITY_LATE_PENALTY * counts.late / counts.total if counts.total else 0.0
    return clamp(mean - penalty), False


def individual_score(counts: AssignmentCounts) -> ScoreBreakdown:
    total = counts.total
    if not total:
        return ScoreBreakdown()

    completion_rate = rate(counts.completed, total)
    on_time_rate = clamp(rate(counts.on_time, total) - ON_TIME_LATE_PENALTY * counts.late / total)
    quality, is_baseline = quality_score(counts)

    pending_bonus = min(PENDING_BONUS_CAP, PENDING_BONUS_CAP * counts.pending / total)
    overdue_penalty = min(OVERDUE_PENALTY_CAP, OVERDUE_PENALTY_CAP * counts.overdue / total)
    recovery_bonus = RECOVERY_BONUS if completion_rate >= RECOVERY_THRESHOLD else 0.0

    composite = (
        COMPLETION_WEIGHT * completion_rate
        + ON_TIME_WEIGHT * on_time_rate
        + QUALITY_WEIGHT * quality
        + pending_bonus
        - overdue_penalty
        + recovery_bonus
    )
    return ScoreBreakdown(
        completion_rate=completion_rate,
        on_time_rate=on_time_rate,
        quality_score=quality,
        quality_is_baseline=is_baseline,
        pending_bonus=pending_bonus,
        overdue_penalty=overdue_penalty,
        recovery_bonus=recovery_bonus,
        composite_score=round(clamp(composite), 1),
    )


@dataclass(frozen=True)
class WorkerPerformance:
    worker_id: str
    worker_name: str
    team_leader_id: str | None
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
    pending_bonus: float = 0.0
    overdue_penalty: float = 0.0
    recovery_bonus: float = 0.0
    average_response_hours: float = 0.0
    readiness_counts: dict[str, int] = field(default_factory=dict)
    current_streak: int = 0
    longest_streak: int = 0
    rank: int = 0


def submission_streaks(assignments: Iterable[Assignment]) -> tuple[int, int]:
    """Current and longest runs of consecutive days with a completed check-in."""
    days = sorted(
        {
            (a.completed_at.date() if a.completed_at else a.assigned_date)
            for a in assignments
            if a.is_completed
        }
    )
    if not days:
        return 0, 0
    longest = run = 1
    for previous, current in zip(days, days[1:]):
        if current - previous == timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
    return run, longest


def in_period(assignments: Iterable[Assignment], period: Period | None) -> list[Assignment]:
    if period is None:
        return list(assignments)
    return [a for a in assignments if period.contains(a.assigned_date)]


def build_worker_performance(
    worker_id: str,
    assignments: list[Assignment],
    worker_name: str | None = None,
    team_leader_id: str | None = None,
) -> WorkerPerformance:
    counts = count_assignments(assignments)
    score = individual_score(counts)
    grade = individual_grade(score.composite_score)
    current_streak, longest_streak = submission_streaks(assignments)
    if worker_name is None:
        worker_name = next(
            (a.worker_name for a in assignments if a.worker_first_name or a.worker_last_name),
            worker_id,
        )
    if team_leader_id is None and assignments:
        team_leader_id = assignments[0].team_leader_id
    return WorkerPerformance(
        worker_id=worker_id,
        worker_name=worker_name,
        team_leader_id=team_leader_id,
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
        pending_bonus=score.pending_bonus,
        overdue_penalty=score.overdue_penalty,
        recovery_bonus=score.recovery_bonus,
        average_response_hours=counts.average_response_hours,
        readiness_counts={LEVEL_FIT: counts.fit, LEVEL_MINOR: counts.minor, LEVEL_NOT_FIT: counts.not_fit},
        current_streak=current_streak,
        longest_streak=longest_streak,
    )


def score_worker(
    assignments: Iterable[Assignment],
    worker_id: str,
    period: Period | None = None,
) -> WorkerPerformance:
    """Score one worker; a worker without assignments in the period scores zero (grade D)."""
    own = [a for a in in_period(assignments, period) if a.worker_id == worker_id]
    return build_worker_performance(worker_id, own)


def score_workers(
    assignments: Iterable[Assignment],
    period: Period | None = None,
    worker_ids: Iterable[str] | Mapping[str, str] | None = None,
) -> list[WorkerPerformance]:
    """Score every worker seen in the period, in first-encounter order.

    ``worker_ids`` adds roster members that have no assignments in the
    period; they are appended as zero rows after the active workers. A
    mapping supplies their display names.
    """
    names = dict(worker_ids) if isinstance(worker_ids, Mapping) else {}
    by_worker: dict[str, list[Assignment]] = {}
    for assignment in in_period(assignments, period):
        by_worker.setdefault(assignment.worker_id, []).append(assignment)
    for worker_id in worker_ids or ():
        by_worker.setdefault(worker_id, [])
    return [
        build_worker_performance(worker_id, rows, worker_name=None if rows else names.get(worker_id))
        for worker_id, rows in by_worker.items()
    ]
