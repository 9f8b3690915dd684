"""
Basic import tests to verify the core functionality.
"""


def test_visitor_analytics_imports():
    """Test that the analytics package exposes its public API."""
    from app.visitor_analytics import (
        create_visitor_analytics_module,
        VisitorAnalyticsService,
        AnalyticsSummary,
        InvalidOrderError,
        StoreUnavailableError,
    )

    assert callable(create_visitor_analytics_module)
    assert issubclass(StoreUnavailableError, Exception)
    assert issubclass(InvalidOrderError, Exception)
    assert AnalyticsSummary is not None
    assert VisitorAnalyticsService is not None


def test_engine_functions_import():
    """Test that the pure engine functions can be imported."""
    from app.visitor_analytics.aggregator import aggregate, count_page_visitors
    from app.visitor_analytics.projector import project
    from app.visitor_analytics.insights import compute_insights

    assert callable(aggregate)
    assert callable(count_page_visitors)
    assert callable(project)
    assert callable(compute_insights)


def test_logging_config():
    """Test that logging can be set up and torn down."""
    import logging
    from app.logging_config import setup_logging, stop_logging, get_logger

    root_logger = logging.getLogger()
    saved_handlers, saved_level = list(root_logger.handlers), root_logger.level

    setup_logging(debug=True)
    try:
        assert root_logger.level == logging.DEBUG
        get_logger("visitor_analytics.test").debug("logging configured")
    finally:
        stop_logging()
        root_logger.handlers[:] = saved_handlers
        root_logger.setLevel(saved_level)
