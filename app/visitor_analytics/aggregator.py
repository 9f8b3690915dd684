"""
Visit Aggregator

Buckets visit events into calendar days of a trailing window and classifies
each visit as coming from a new or a returning visitor.
"""

from collections import Counter
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .models import DailyStat, VisitEvent


DEFAULT_WINDOW_DAYS = 30


def window_bounds(window_end: date, window_size_days: int = DEFAULT_WINDOW_DAYS) -> Tuple[date, date]:
    """Return the inclusive (start, end) dates of a window ending on window_end."""
    if window_size_days < 1:
        raise ValueError(f"window_size_days must be at least 1, got {window_size_days}")
    return window_end - timedelta(days=window_size_days - 1), window_end


def _as_utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def event_day(event: VisitEvent, tz: tzinfo = timezone.utc) -> date:
    """Calendar day of an event in the store's reference time zone."""
    return _as_utc(event.timestamp).astimezone(tz).date()


def aggregate(
    events: Iterable[VisitEvent],
    window_end: date,
    window_size_days: int = DEFAULT_WINDOW_DAYS,
    known_visitors: Optional[Set[str]] = None,
    tz: tzinfo = timezone.utc
) -> List[DailyStat]:
    """Aggregate visit events into one DailyStat per day of the window.

    A visit is "return" when its visitor key was seen in any earlier event,
    including events before the window and keys listed in known_visitors.
    Visits without a key are always "new". Events sharing a timestamp keep
    their ingestion order.

    Args:
        events: Visit events in ingestion order
        window_end: Last day of the window (inclusive)
        window_size_days: Number of days in the window
        known_visitors: Visitor keys first seen before the window start
        tz: Reference time zone for calendar days

    Returns:
        Ascending list of DailyStat covering every day of the window,
        with only the daily (non-cumulative) counts filled in
    """
    window_start, window_end = window_bounds(window_end, window_size_days)

    buckets: Dict[date, DailyStat] = {}
    for offset in range(window_size_days):
        day = window_start + timedelta(days=offset)
        buckets[day] = DailyStat(date=day)

    seen = set(known_visitors or ())

    # sorted() is stable, so ties keep ingestion order
    for event in sorted(events, key=lambda e: _as_utc(e.timestamp)):
        key = event.visitor_key
        is_return = key is not None and key in seen
        if key is not None:
            seen.add(key)

        stat = buckets.get(event_day(event, tz))
        if stat is None:
            continue

        stat.total_visitors += 1
        if is_return:
            stat.return_visitors += 1
        else:
            stat.new_visitors += 1

    return list(buckets.values())


def count_page_visitors(
    events: Iterable[VisitEvent],
    window_end: date,
    window_size_days: int = DEFAULT_WINDOW_DAYS,
    tz: tzinfo = timezone.utc
) -> Dict[str, int]:
    """Count visits per page type over the window."""
    window_start, window_end = window_bounds(window_end, window_size_days)
    page_counter = Counter(
        event.page_type for event in events
        if window_start <= event_day(event, tz) <= window_end
    )
    return {page: int(count) for page, count in page_counter.items()}
