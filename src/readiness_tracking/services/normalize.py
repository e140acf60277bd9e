"""Field mapping for snake_case and camelCase assignment rows."""

from __future__ import annotations

import logging
import numbers
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any, Iterable, Mapping

import pandas as pd

LOGGER = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_ASSIGNED = "assigned"
STATUS_COMPLETED = "completed"
STATUS_OVERDUE = "overdue"
STATUSES = (STATUS_PENDING, STATUS_ASSIGNED, STATUS_COMPLETED, STATUS_OVERDUE)

LEVEL_FIT = "fit"
LEVEL_MINOR = "minor"
LEVEL_NOT_FIT = "not_fit"
READINESS_LEVELS = (LEVEL_FIT, LEVEL_MINOR, LEVEL_NOT_FIT)

DROP_NOT_A_MAPPING = "not_a_mapping"
DROP_MISSING_WORKER = "missing_worker_id"
DROP_MISSING_TEAM_LEADER = "missing_team_leader_id"
DROP_INVALID_DATE = "invalid_assigned_date"
DROP_INVALID_STATUS = "invalid_status"

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "assignment_id", "assignmentId"),
    "worker_id": ("worker_id", "workerId"),
    "team_leader_id": ("team_leader_id", "teamLeaderId"),
    "assigned_date": ("assigned_date", "assignedDate"),
    "due_time": ("due_time", "dueTime"),
    "status": ("status",),
    "completed_at": ("completed_at", "completedAt"),
    "readiness": ("work_readiness", "workReadiness", "readiness"),
    "readiness_id": ("work_readiness_id", "workReadinessId"),
    "worker": ("worker",),
}

READINESS_ALIASES: dict[str, tuple[str, ...]] = {
    "level": ("readiness_level", "readinessLevel", "level"),
    "submitted_at": ("submitted_at", "submittedAt"),
}

WORKER_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "first_name": ("first_name", "firstName"),
    "last_name": ("last_name", "lastName"),
}


@dataclass(frozen=True)
class Assignment:
    assignment_id: str
    worker_id: str
    team_leader_id: str
    assigned_date: date
    status: str
    due_time: datetime | None = None
    completed_at: datetime | None = None
    has_readiness: bool = False
    readiness_level: str | None = None
    worker_first_name: str = ""
    worker_last_name: str = ""

    @property
    def worker_name(self) -> str:
        name = f"{self.worker_first_name} {self.worker_last_name}".strip()
        return name or self.worker_id

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    @property
    def is_on_time(self) -> bool:
        if not self.is_completed:
            return False
        if self.due_time is None:
            return True
        if self.completed_at is None:
            return False
        return self.completed_at <= self.due_time

    @property
    def response_hours(self) -> float | None:
        if not self.is_completed or self.completed_at is None:
            return None
        assigned_at = datetime.combine(self.assigned_date, time.min, tzinfo=timezone.utc)
        return (self.completed_at - assigned_at).total_seconds() / 3600


@dataclass(frozen=True)
class NormalizationResult:
    assignments: list[Assignment]
    dropped: int = 0
    drop_reasons: dict[str, int] = field(default_factory=dict)

    @property
    def accepted(self) -> int:
        return len(self.assignments)


def pick(row: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    for key in aliases:
        value = row.get(key)
        if value not in (None, ""):
            return value
    return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_day(value: Any) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
    elif isinstance(value, numbers.Number):
        return None
    try:
        parsed = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date()


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a timestamp into an aware UTC datetime; naive input is taken as UTC."""
    if value in (None, ""):
        return None
    try:
        parsed = pd.to_datetime(value, errors="coerce", utc=True)
    except (TypeError, ValueError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def normalize_status(value: Any) -> str | None:
    status = _text(value).lower()
    return status if status in STATUSES else None


def normalize_level(value: Any) -> str | None:
    level = _text(value).lower().replace("-", "_").replace(" ", "_")
    return level if level in READINESS_LEVELS else None


def normalize_assignment(row: Any) -> tuple[Assignment | None, str | None]:
    """Map one raw row; returns ``(assignment, None)`` or ``(None, reason)``."""
    if not isinstance(row, Mapping):
        return None, DROP_NOT_A_MAPPING

    worker = pick(row, FIELD_ALIASES["worker"])
    worker = worker if isinstance(worker, Mapping) else {}

    worker_id = _text(pick(row, FIELD_ALIASES["worker_id"]) or pick(worker, WORKER_ALIASES["id"]))
    if not worker_id:
        return None, DROP_MISSING_WORKER
    team_leader_id = _text(pick(row, FIELD_ALIASES["team_leader_id"]))
    if not team_leader_id:
        return None, DROP_MISSING_TEAM_LEADER
    assigned_date = parse_day(pick(row, FIELD_ALIASES["assigned_date"]))
    if assigned_date is None:
        return None, DROP_INVALID_DATE
    status = normalize_status(pick(row, FIELD_ALIASES["status"]))
    if status is None:
        return None, DROP_INVALID_STATUS

    readiness = pick(row, FIELD_ALIASES["readiness"])
    readiness = readiness if isinstance(readiness, Mapping) else {}
    has_readiness = bool(readiness) or pick(row, FIELD_ALIASES["readiness_id"]) is not None

    completed_at = None
    if status == STATUS_COMPLETED:
        completed_at = parse_timestamp(pick(row, FIELD_ALIASES["completed_at"]))
        if completed_at is None:
            completed_at = parse_timestamp(pick(readiness, READINESS_ALIASES["submitted_at"]))

    return (
        Assignment(
            assignment_id=_text(pick(row, FIELD_ALIASES["id"])),
            worker_id=worker_id,
            team_leader_id=team_leader_id,
            assigned_date=assigned_date,
            status=status,
            due_time=parse_timestamp(pick(row, FIELD_ALIASES["due_time"])),
            completed_at=completed_at,
            has_readiness=has_readiness,
            readiness_level=normalize_level(pick(readiness, READINESS_ALIASES["level"])),
            worker_first_name=_text(pick(worker, WORKER_ALIASES["first_name"])),
            worker_last_name=_text(pick(worker, WORKER_ALIASES["last_name"])),
        ),
        None,
    )


def normalize_assignments(rows: Iterable[Any]) -> NormalizationResult:
    assignments: list[Assignment] = []
    reasons: Counter[str] = Counter()
    for index, row in enumerate(rows):
        assignment, reason = normalize_assignment(row)
        if assignment is None:
            reasons[reason or DROP_NOT_A_MAPPING] += 1
            LOGGER.debug("Dropped assignment row %s: %s", index, reason)
            continue
        assignments.append(assignment)

    dropped = sum(reasons.values())
    if dropped:
        LOGGER.info("Dropped %s of %s assignment rows: %s", dropped, dropped + len(assignments), dict(reasons))
    return NormalizationResult(assignments=assignments, dropped=dropped, drop_reasons=dict(reasons))
