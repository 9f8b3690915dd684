"""
Visitor Analytics Module

Aggregates recorded page visits into daily, cumulative and summary
statistics for the admin dashboard.
"""

from .errors import InvalidOrderError, StoreUnavailableError, VisitorAnalyticsError
from .factory import create_visitor_analytics_module
from .models import AnalyticsSummary, DailyStat, VisitEvent, VisitorInsights
from .services import VisitorAnalyticsService

__all__ = [
    "create_visitor_analytics_module",
    "VisitorAnalyticsService",
    "AnalyticsSummary",
    "DailyStat",
    "VisitEvent",
    "VisitorInsights",
    "VisitorAnalyticsError",
    "StoreUnavailableError",
    "InvalidOrderError",
]
