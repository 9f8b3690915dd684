"""
Cumulative projection of the daily visitor series.
"""

from dataclasses import replace
from typing import List, Sequence

from .errors import InvalidOrderError
from .models import DailyStat


def project(daily: Sequence[DailyStat]) -> List[DailyStat]:
    """Fill in running totals for the total, new and return series.

    Raises:
        InvalidOrderError: If the dates are not strictly ascending
    """
    projected: List[DailyStat] = []
    total = new = returning = 0

    for index, stat in enumerate(daily):
        if index and stat.date <= daily[index - 1].date:
            raise InvalidOrderError(
                f"Daily stats out of order at position {index}: "
                f"{stat.date.isoformat()} follows {daily[index - 1].date.isoformat()}"
            )

        total += stat.total_visitors
        new += stat.new_visitors
        returning += stat.return_visitors
        projected.append(replace(
            stat,
            cumulative_total_visitors=total,
            cumulative_new_visitors=new,
            cumulative_return_visitors=returning
        ))

    return projected
