"""
Visitor Analytics Service

Runs the analytics query (store read, aggregation, cumulative projection,
insights) and records incoming visits.
"""

import logging
from datetime import date, datetime, timezone, tzinfo
from typing import Callable, List, Optional

from .aggregator import DEFAULT_WINDOW_DAYS, aggregate, count_page_visitors, window_bounds
from .insights import compute_insights
from .models import AnalyticsSummary, DailyStat, VisitEvent
from .projector import project
from .store import VisitStore

logger = logging.getLogger(__name__)


class VisitorAnalyticsService:
    """Service computing visitor statistics for the admin dashboard."""

    def __init__(
        self,
        store: VisitStore,
        tz: tzinfo = timezone.utc,
        default_window_days: int = DEFAULT_WINDOW_DAYS,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """Initialize the visitor analytics service.

        Args:
            store: Visit event store to read from and append to
            tz: Reference time zone for calendar days
            default_window_days: Window size used when none is given
            clock: Returns the current aware datetime (defaults to UTC now)
        """
        self.store = store
        self.tz = tz
        self.default_window_days = default_window_days
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def today(self) -> date:
        """Current calendar day in the reference time zone."""
        return self._clock().astimezone(self.tz).date()

    def track_visit(self, page_type: str, visitor_key: Optional[str] = None) -> VisitEvent:
        """Record a page visit at the current time.

        Raises:
            StoreUnavailableError: If the store cannot be written
        """
        event = VisitEvent(
            timestamp=self._clock(),
            page_type=page_type,
            visitor_key=visitor_key
        )
        self.store.append(event)
        return event

    def get_visitor_statistics(self, window_size_days: Optional[int] = None) -> AnalyticsSummary:
        """Compute visitor statistics for the trailing window ending today.

        Args:
            window_size_days: Number of days to analyze (default: configured window)

        Returns:
            AnalyticsSummary for the window

        Raises:
            StoreUnavailableError: If the event store cannot be read
            InvalidOrderError: If the daily series comes out unordered
            ValueError: If window_size_days is less than 1
        """
        days = self.default_window_days if window_size_days is None else window_size_days
        window_end = self.today()
        window_start, window_end = window_bounds(window_end, days)

        events, known_visitors = self.store.fetch_window(window_start, window_end)
        logger.debug(
            f"Aggregating {len(events)} visits for {window_start} to {window_end}, "
            f"{len(known_visitors)} visitors known before window"
        )

        daily = aggregate(events, window_end, days, known_visitors=known_visitors, tz=self.tz)
        daily = project(daily)
        insights = compute_insights(daily)

        return AnalyticsSummary(
            window_start=window_start,
            window_end=window_end,
            window_size_days=days,
            insights=insights,
            total_visitors=sum(stat.total_visitors for stat in daily),
            today_visitors=daily[-1].total_visitors,
            return_visitors=sum(stat.return_visitors for stat in daily),
            new_visitors=sum(stat.new_visitors for stat in daily),
            page_visitors=count_page_visitors(events, window_end, days, tz=self.tz),
            daily_stats=daily
        )

    def get_daily_stats(self, window_size_days: Optional[int] = None) -> List[DailyStat]:
        """Get the cumulative daily series for the window."""
        return self.get_visitor_statistics(window_size_days).daily_stats
