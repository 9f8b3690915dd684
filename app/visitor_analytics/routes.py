"""
Visitor Analytics Routes

Flask routes for the visitor analytics subsystem.
"""

import logging
from functools import wraps
from typing import Callable, Iterable

from flask import Blueprint, request, jsonify
from pydantic import ValidationError

from .errors import InvalidOrderError, StoreUnavailableError
from .models import TrackVisitPayload
from .services import VisitorAnalyticsService

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load visitor analytics. Please try again."


def create_visitor_analytics_blueprint(
    analytics_service: VisitorAnalyticsService,
    admin_user_ids: Iterable[str],
    max_window_days: int
) -> Blueprint:
    """Create visitor analytics blueprint with routes.

    Args:
        analytics_service: The visitor analytics service instance
        admin_user_ids: User IDs allowed to read the statistics
        max_window_days: Largest accepted window size

    Returns:
        Flask blueprint with visitor analytics routes
    """
    blueprint = Blueprint('visitor_analytics', __name__, url_prefix='/stats')
    admins = {uid.strip() for uid in admin_user_ids}

    def admin_required(f: Callable) -> Callable:
        """Decorator to require admin access."""
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user_id = request.cookies.get('uid')
            if not user_id or user_id.strip() not in admins:
                return jsonify({'error': 'admin-required'}), 403
            return f(*args, **kwargs)
        return decorated_function

    def window_days():
        days = request.args.get('days', analytics_service.default_window_days, type=int)
        if days is None or days < 1 or days > max_window_days:
            return None
        return days

    def load_failed(status: int):
        return jsonify({'error': LOAD_FAILED_MESSAGE, 'retryable': True}), status

    @blueprint.route('/api/summary', methods=['GET'])
    @admin_required
    def api_summary():
        """API endpoint for the full analytics summary."""
        days = window_days()
        if days is None:
            return jsonify({'error': f'days must be between 1 and {max_window_days}'}), 400

        try:
            summary = analytics_service.get_visitor_statistics(days)
        except StoreUnavailableError as e:
            logger.error(f"Visit store unavailable: {e}")
            return load_failed(503)
        except InvalidOrderError:
            logger.exception("Daily visitor series failed the ordering check")
            return load_failed(500)

        return jsonify(summary.to_dict())

    @blueprint.route('/api/daily', methods=['GET'])
    @admin_required
    def api_daily_stats():
        """API endpoint for the cumulative daily series."""
        days = window_days()
        if days is None:
            return jsonify({'error': f'days must be between 1 and {max_window_days}'}), 400

        try:
            daily_stats = analytics_service.get_daily_stats(days)
        except StoreUnavailableError as e:
            logger.error(f"Visit store unavailable: {e}")
            return load_failed(503)
        except InvalidOrderError:
            logger.exception("Daily visitor series failed the ordering check")
            return load_failed(500)

        return jsonify([stat.to_dict() for stat in daily_stats])

    @blueprint.route('/track', methods=['POST'])
    def track_visit():
        """Track a page visit (no admin required)."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'No data provided'}), 400

        if not data.get('visitor_key'):
            data = {**data, 'visitor_key': request.cookies.get('visitor_id')}

        try:
            payload = TrackVisitPayload.model_validate(data)
        except ValidationError as e:
            return jsonify({'error': 'invalid-payload', 'details': e.errors(include_url=False, include_context=False)}), 400

        try:
            analytics_service.track_visit(payload.page_type, payload.visitor_key)
        except StoreUnavailableError as e:
            logger.error(f"Could not record visit: {e}")
            return jsonify({'error': 'store-unavailable'}), 503

        return jsonify({'status': 'success'})

    return blueprint
