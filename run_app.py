#!/usr/bin/env python3
"""
Simple runner script for the Flask application.
This script ensures the correct Python path is set and runs the app.
"""

import sys
from pathlib import Path

# Add the current directory to Python path
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

from app.logging_config import get_logger, setup_logging
from app.main import app
from config_manager import get_app_config

if __name__ == "__main__":
    app_config = get_app_config()
    setup_logging(app_config.debug)

    logger = get_logger(__name__)
    logger.info(f"Starting visitor analytics service on {app_config.host}:{app_config.port}")
    logger.info(f"Working directory: {current_dir}")

    app.run(
        host=app_config.host,
        port=app_config.port,
        debug=app_config.debug
    )
