"""
Visitor Insights

Derives the dashboard's summary scalars from the daily visitor series.
"""

from typing import Sequence

from .models import DailyStat, NewVsReturning, VisitorInsights


def round_half_away(numerator: int, denominator: int = 1) -> int:
    """Round numerator / denominator to the nearest integer, ties away from zero.

    Works on integers so that exact halves such as 1/2 or 5/2 never suffer
    from float representation error.
    """
    if denominator == 0:
        raise ZeroDivisionError("round_half_away() denominator is zero")
    if denominator < 0:
        numerator, denominator = -numerator, -denominator
    magnitude = (2 * abs(numerator) + denominator) // (2 * denominator)
    return magnitude if numerator >= 0 else -magnitude


def percent(part: int, whole: int) -> int:
    """Whole-number percentage of part in whole, 0 when whole is 0."""
    if whole <= 0:
        return 0
    return round_half_away(100 * part, whole)


def compute_insights(daily: Sequence[DailyStat]) -> VisitorInsights:
    """Compute summary insights for a daily series.

    Args:
        daily: Ascending daily stats for the window

    Returns:
        VisitorInsights, or the no-data sentinel when the series is empty
        or holds no visits at all
    """
    days = len(daily)
    total = sum(stat.total_visitors for stat in daily)
    if days == 0 or total == 0:
        return VisitorInsights.no_data(tracking_period_days=days)

    new = sum(stat.new_visitors for stat in daily)
    returning = sum(stat.return_visitors for stat in daily)

    # Strict comparison keeps the first day on ties
    peak = daily[0]
    for stat in daily[1:]:
        if stat.total_visitors > peak.total_visitors:
            peak = stat

    new_vs_returning = None
    if new > 0 and returning > 0:
        new_vs_returning = NewVsReturning(
            new_percent=percent(new, total),
            return_percent=percent(returning, total)
        )

    return VisitorInsights(
        has_data=True,
        tracking_period_days=days,
        average_daily_visitors=round_half_away(total, days),
        return_visitor_rate_percent=percent(returning, total),
        peak_day=peak.date,
        peak_day_visitors=peak.total_visitors,
        total_page_views=total,
        new_vs_returning=new_vs_returning
    )
