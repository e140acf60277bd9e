from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


class PeriodError(ValueError):
    """Raised when a period selector is structurally invalid."""


@dataclass(frozen=True)
class Period:
    start: date
    end: date
    label: str

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end

    @property
    def is_month(self) -> bool:
        return bool(_MONTH_RE.match(self.label))

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


def month_period(year: int, month: int) -> Period:
    if not 1 <= month <= 12:
        raise PeriodError(f"Month out of range: {month}")
    if year < 1:
        raise PeriodError(f"Year out of range: {year}")
    last_day = calendar.monthrange(year, month)[1]
    return Period(
        start=date(year, month, 1),
        end=date(year, month, last_day),
        label=f"{year:04d}-{month:02d}",
    )


def _coerce_bound(value: Any, key: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            raise PeriodError(f"Invalid '{key}' date: {value!r} (expected YYYY-MM-DD).") from exc
    raise PeriodError(f"Invalid '{key}' date: {value!r}")


def parse_period(value: str | Mapping[str, Any] | Period) -> Period:
    """Parse a period selector.

    Accepts a ``"YYYY-MM"`` month string or a mapping with ``start`` and
    ``end`` dates (inclusive). Anything else is a caller error; there is no
    default period.

    >>> parse_period("2025-05").end
    datetime.date(2025, 5, 31)
    """
    if isinstance(value, Period):
        return value
    if isinstance(value, str):
        match = _MONTH_RE.match(value.strip())
        if not match:
            raise PeriodError(f"Invalid month: {value!r} (expected YYYY-MM).")
        return month_period(int(match.group(1)), int(match.group(2)))
    if isinstance(value, Mapping):
        missing = [key for key in ("start", "end") if value.get(key) in (None, "")]
        if missing:
            raise PeriodError(f"Date range is missing: {', '.join(missing)}")
        start = _coerce_bound(value["start"], "start")
        end = _coerce_bound(value["end"], "end")
        if start > end:
            raise PeriodError(f"Date range start {start} is after end {end}.")
        return Period(start=start, end=end, label=f"{start.isoformat()}..{end.isoformat()}")
    raise PeriodError(f"Unsupported period selector: {value!r}")
