"""
Time Window Resolver for propfolio.

Turns a symbolic range selector into a concrete half-open ``[start, end)``
interval. Relative selectors (``month``, ``quarter``, ``year``, ``all``) are
anchored to ``now`` at evaluation time; calendar selectors (``{"year": 2025}``,
``{"year": 2025, "quarter": 2}``) are independent of ``now``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any

import pandas as pd

from .errors import ConfigError, InvalidWindowSelector
from .models import parse_timestamp

logger = logging.getLogger(__name__)

# Earliest representable instant: "no lower bound"
EPOCH = datetime.min

_RELATIVE_MONTHS = {"month": 1, "quarter": 3, "year": 12}
_CALENDAR_RE = re.compile(r"^(?P<year>\d{4})(?:-?Q(?P<quarter>[1-4]))?$", re.IGNORECASE)


class WindowLabel(Enum):
    """Kind of window a ``TimeWindow`` was resolved from."""

    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    ALL = "all"
    CALENDAR_YEAR = "calendar_year"
    CALENDAR_QUARTER = "calendar_quarter"
    CUSTOM = "custom"


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """
    Concrete date interval a report is computed over.

    Attributes:
        start: Inclusive lower bound (``EPOCH`` for "all time")
        end: Exclusive upper bound
        label: Selector kind the window was resolved from
    """

    start: datetime
    end: datetime
    label: WindowLabel

    def __post_init__(self):
        if not self.start < self.end:
            raise InvalidWindowSelector(
                (self.start, self.end), "window start must be before its end"
            )

    @property
    def is_unbounded(self) -> bool:
        """True when the window has no lower bound."""
        return self.start == EPOCH

    def contains(self, when: datetime) -> bool:
        return self.start <= when < self.end

    def describe(self) -> str:
        """Human-readable label, e.g. ``"Last quarter"`` or ``"Q2 2025"``."""
        if self.label is WindowLabel.ALL:
            return "All time"
        if self.label is WindowLabel.MONTH:
            return "Last month"
        if self.label is WindowLabel.QUARTER:
            return "Last quarter"
        if self.label is WindowLabel.YEAR:
            return "Last year"
        if self.label is WindowLabel.CALENDAR_YEAR:
            return str(self.start.year)
        if self.label is WindowLabel.CALENDAR_QUARTER:
            return f"Q{(self.start.month - 1) // 3 + 1} {self.start.year}"
        last_day = self.end - timedelta(microseconds=1)
        return f"{self.start.date().isoformat()} to {last_day.date().isoformat()}"

    def month_periods(self, earliest: datetime | None = None) -> pd.PeriodIndex:
        """
        Calendar months spanned by the window, in order.

        For an unbounded window the series starts at the month of ``earliest``
        (typically the oldest transaction in the filtered set); with no
        ``earliest`` it is empty.

        Returns:
            Monthly ``PeriodIndex`` covering every month that overlaps the window
        """
        if self.is_unbounded:
            if earliest is None or earliest >= self.end:
                return pd.PeriodIndex([], freq="M")
            first = max(earliest, self.start)
        else:
            first = self.start
        last = self.end - timedelta(microseconds=1)
        return pd.period_range(
            start=pd.Period(first, freq="M"), end=pd.Period(last, freq="M"), freq="M"
        )

    def to_dict(self) -> dict[str, str | None]:
        return {
            "start": None if self.is_unbounded else self.start.isoformat(),
            "end": self.end.isoformat(),
            "label": self.label.value,
            "description": self.describe(),
        }


def resolve_now(now: datetime | date | str | None = None) -> datetime:
    """
    Reference instant for relative windows (current time when None).

    Raises:
        ConfigError: If ``now`` is not a date, datetime or ISO-8601 string
    """
    if now is None:
        return datetime.now()
    try:
        return parse_timestamp(now)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid reference date {now!r} (expected ISO-8601)") from exc


def _months_before(now: datetime, months: int) -> datetime:
    # DateOffset clamps to month end (Mar 31 - 1 month -> Feb 28/29)
    return (pd.Timestamp(now) - pd.DateOffset(months=months)).to_pydatetime()


def _calendar_window(selector: Any, year: Any, quarter: Any = None) -> TimeWindow:
    try:
        year = int(year)
    except (TypeError, ValueError) as exc:
        raise InvalidWindowSelector(selector, "year must be an integer") from exc
    if not 1 <= year <= 9998:
        raise InvalidWindowSelector(selector, f"year {year} out of range")

    if quarter is None:
        return TimeWindow(datetime(year, 1, 1), datetime(year + 1, 1, 1), WindowLabel.CALENDAR_YEAR)

    try:
        quarter = int(quarter)
    except (TypeError, ValueError) as exc:
        raise InvalidWindowSelector(selector, "quarter must be an integer") from exc
    if quarter not in (1, 2, 3, 4):
        raise InvalidWindowSelector(selector, "quarter must be between 1 and 4")

    start = datetime(year, 3 * (quarter - 1) + 1, 1)
    end = datetime(year + 1, 1, 1) if quarter == 4 else datetime(year, start.month + 3, 1)
    return TimeWindow(start, end, WindowLabel.CALENDAR_QUARTER)


def _explicit_window(selector: dict[str, Any]) -> TimeWindow:
    try:
        start = parse_timestamp(selector["start"])
        end = parse_timestamp(selector["end"])
    except (TypeError, ValueError) as exc:
        raise InvalidWindowSelector(selector, "start/end must be dates") from exc
    if not start < end:
        raise InvalidWindowSelector(selector, "start must be before end")
    return TimeWindow(start, end, WindowLabel.CUSTOM)


def resolve_window(selector: Any, now: datetime | date | None = None) -> TimeWindow:
    """
    Resolve a window selector into a concrete ``TimeWindow``.

    Args:
        selector: One of ``"month"``, ``"quarter"``, ``"year"``, ``"all"`` (or
            the matching ``WindowLabel``), a calendar selector such as
            ``{"year": 2025}``, ``{"year": 2025, "quarter": 2}``, ``"2025"`` or
            ``"2025-Q2"``, explicit bounds ``{"start": ..., "end": ...}``, or an
            already resolved ``TimeWindow``
        now: Reference instant for relative selectors (default: current time)

    Returns:
        The resolved window

    Raises:
        InvalidWindowSelector: If the selector is not recognized or its values
            are out of range
        ConfigError: If ``now`` cannot be parsed

    Example:
        ```python
        from datetime import datetime
        from propfolio.core.window import resolve_window

        w = resolve_window("quarter", now=datetime(2026, 5, 31))
        # TimeWindow(start=2026-02-28, end=2026-05-31, label=QUARTER)
        ```
    """
    if isinstance(selector, TimeWindow):
        return selector

    now = resolve_now(now)

    if isinstance(selector, WindowLabel):
        selector = selector.value

    if isinstance(selector, str):
        key = selector.strip().lower()
        if key in _RELATIVE_MONTHS:
            window = TimeWindow(
                _months_before(now, _RELATIVE_MONTHS[key]), now, WindowLabel(key)
            )
        elif key == "all":
            window = TimeWindow(EPOCH, now, WindowLabel.ALL)
        else:
            match = _CALENDAR_RE.match(key)
            if match is None:
                raise InvalidWindowSelector(selector)
            window = _calendar_window(selector, match["year"], match["quarter"])
    elif isinstance(selector, int) and not isinstance(selector, bool):
        # bare year, e.g. an unquoted `window: 2025` in YAML
        window = _calendar_window(selector, selector)
    elif isinstance(selector, dict):
        keys = set(selector)
        if keys == {"start", "end"}:
            window = _explicit_window(selector)
        elif keys in ({"year"}, {"year", "quarter"}):
            window = _calendar_window(selector, selector["year"], selector.get("quarter"))
        else:
            raise InvalidWindowSelector(
                selector, "expected {year[, quarter]} or {start, end}"
            )
    else:
        raise InvalidWindowSelector(selector)

    logger.debug("Resolved window %r -> [%s, %s)", selector, window.start, window.end)
    return window
