import argparse
import sys
from pathlib import Path
from typing import Optional

# Import configuration management
sys.path.append(str(Path(__file__).parent.parent))
from config_manager import ConfigManager

from flask import Flask, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix

from app.visitor_analytics.factory import create_visitor_analytics_module

# -----------------------------------------------------------------------------
# Application factory
# -----------------------------------------------------------------------------


def create_app(config_manager: Optional[ConfigManager] = None, user_data_dir: Optional[Path] = None) -> Flask:
    """Build the Flask application with the visitor analytics module registered.

    Args:
        config_manager: Configuration source (defaults to web_app_config.json + env)
        user_data_dir: Overrides the configured directory for visit data
    """
    config_manager = config_manager or ConfigManager()
    paths_config = config_manager.get_paths_config()
    app_config = config_manager.get_app_config()
    analytics_config = config_manager.get_analytics_config()

    if user_data_dir is None:
        user_data_dir = Path(__file__).parent.parent / paths_config.user_data_dir
    user_data_dir.mkdir(parents=True, exist_ok=True)

    flask_app = Flask(__name__)
    flask_app.wsgi_app = ProxyFix(
        flask_app.wsgi_app,
        x_proto=1,     # trust 1 hop for X-Forwarded-Proto
        x_host=1,      # trust 1 hop for X-Forwarded-Host
        x_prefix=1)    # trust 1 hop for X-Forwarded-Prefix

    visitor_analytics_module = create_visitor_analytics_module(
        user_data_dir=user_data_dir,
        admin_user_ids=app_config.admin_user_ids,
        tz=analytics_config.get_tzinfo(),
        window_size_days=analytics_config.window_size_days,
        max_window_days=analytics_config.max_window_days
    )
    flask_app.register_blueprint(visitor_analytics_module["blueprint"])
    flask_app.extensions["visitor_analytics"] = visitor_analytics_module

    @flask_app.get("/actuator/health")
    def actuator_health():
        """Health check endpoint for monitoring tools and cloud platforms."""
        return jsonify({
            "status": "UP",
            "service": "visitor-analytics"
        }), 200

    return flask_app


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

config_manager = ConfigManager()
app_config = config_manager.get_app_config()
app = create_app(config_manager)

# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Visitor analytics web service")
    parser.add_argument("--port", type=int, help="Port to run the server on")
    parser.add_argument("--host", type=str, help="Host to bind the server to")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    # Override configuration with command line arguments
    if args.port:
        app_config.port = args.port
    if args.host:
        app_config.host = args.host
    if args.debug:
        app_config.debug = args.debug

    from app.logging_config import setup_logging
    setup_logging(app_config.debug)

    app.run(host=app_config.host, port=app_config.port, debug=app_config.debug)
