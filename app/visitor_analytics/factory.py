"""
Factory for creating visitor analytics module.
"""
from datetime import tzinfo
from pathlib import Path
from typing import List

from .routes import create_visitor_analytics_blueprint
from .services import VisitorAnalyticsService
from .store import JsonVisitStore


def create_visitor_analytics_module(
    user_data_dir: Path,
    admin_user_ids: List[str],
    tz: tzinfo,
    window_size_days: int = 30,
    max_window_days: int = 90
) -> dict:
    """Create visitor analytics module with store, service and routes.

    Args:
        user_data_dir: Directory to store visit data files
        admin_user_ids: User IDs allowed to view the statistics
        tz: Reference time zone for calendar days
        window_size_days: Default window size for queries
        max_window_days: Largest window size the API accepts

    Returns:
        Dictionary containing the store, service and blueprint
    """
    store = JsonVisitStore(user_data_dir, tz=tz)

    service = VisitorAnalyticsService(
        store=store,
        tz=tz,
        default_window_days=window_size_days
    )

    blueprint = create_visitor_analytics_blueprint(
        analytics_service=service,
        admin_user_ids=admin_user_ids,
        max_window_days=max_window_days
    )

    return {
        "store": store,
        "service": service,
        "blueprint": blueprint
    }
