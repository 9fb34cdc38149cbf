"""Day-Set Resolver.

Resolves which calendar dates of a trip a pathway covers.

Rules:
- Output is ascending, deduplicated ISO dates
- Every date lies within [trip_start, trip_end]
- Out-of-bound range bounds are clamped, never rejected
- Selected dates outside the trip are dropped
- An empty result is returned as-is; pipeline entry points reject it
- Identical inputs return the identical tuple
"""

from collections.abc import Iterable
from datetime import date, timedelta
from functools import lru_cache

from loguru import logger

from worldschool.pathways.errors import NothingToPlanError
from worldschool.pathways.types import DayMode

DaySet = tuple[str, ...]


def _as_date(value: date | str) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def _date_span(start: date, end: date) -> DaySet:
    if start > end:
        return ()
    return tuple((start + timedelta(days=offset)).isoformat() for offset in range((end - start).days + 1))


@lru_cache(maxsize=256)
def _resolve(
    trip_start: date,
    trip_end: date,
    mode: DayMode,
    range_start: date | None,
    range_end: date | None,
    selected: tuple[date, ...],
) -> DaySet:
    if mode == DayMode.ENTIRE_TRIP:
        return _date_span(trip_start, trip_end)

    if mode == DayMode.DATE_RANGE:
        start = max(range_start or trip_start, trip_start)
        end = min(range_end or trip_end, trip_end)
        return _date_span(start, end)

    return tuple(d.isoformat() for d in selected if trip_start <= d <= trip_end)


def resolve_day_set(
    trip_start: date | str,
    trip_end: date | str,
    mode: DayMode | str,
    *,
    range_start: date | str | None = None,
    range_end: date | str | None = None,
    selected_dates: Iterable[date | str] | None = None,
) -> DaySet:
    """Resolve the ordered dates a pathway is planned for.

    Args:
        trip_start: First trip date (inclusive)
        trip_end: Last trip date (inclusive)
        mode: "entire-trip", "date-range" or "select-days"
        range_start: Range start for date-range mode (defaults to trip start)
        range_end: Range end for date-range mode (defaults to trip end)
        selected_dates: Toggled dates for select-days mode, in any order

    Returns:
        Tuple of ISO date strings, ascending and deduplicated. May be empty.

    Raises:
        ValueError: If the mode is unknown or a date is not ISO formatted
    """
    day_mode = DayMode(mode)
    start = _as_date(trip_start)
    end = _as_date(trip_end)
    selected = tuple(sorted({_as_date(d) for d in selected_dates or ()}))

    day_set = _resolve(
        start,
        end,
        day_mode,
        _as_date(range_start) if range_start else None,
        _as_date(range_end) if range_end else None,
        selected,
    )
    logger.debug(
        "Day-set resolved",
        mode=day_mode.value,
        trip_start=start.isoformat(),
        trip_end=end.isoformat(),
        day_count=len(day_set),
    )
    return day_set


def require_days(day_set: DaySet) -> DaySet:
    """Reject an empty day-set before any generation work starts.

    Raises:
        NothingToPlanError: If the day-set is empty
    """
    if not day_set:
        raise NothingToPlanError("Please select at least one day to plan")
    return day_set
