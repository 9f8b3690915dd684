"""
Configuration management for the Visitor Analytics service.
Handles loading, validating, and providing access to application settings.
"""

import os
import json
from dataclasses import dataclass
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Dict, Any, Optional
from zoneinfo import ZoneInfo


@dataclass
class AppConfig:
    """Application configuration settings."""
    host: str
    port: int
    debug: bool
    admin_user_ids: list[str]


@dataclass
class AnalyticsConfig:
    """Visitor analytics configuration settings."""
    window_size_days: int
    max_window_days: int
    timezone: str

    def get_tzinfo(self) -> tzinfo:
        """Reference time zone used to assign visits to calendar days."""
        if self.timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.timezone)


@dataclass
class PathsConfig:
    """Path configuration settings."""
    user_data_dir: str


class ConfigManager:
    """Manages application configuration loading and access."""

    def __init__(self, config_file: str = "web_app_config.json"):
        self.config_file = Path(config_file)
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file and environment variables."""
        # Start with default config
        self._config = self._get_default_config()

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                    self._merge_config(file_config)
            except (json.JSONDecodeError, FileNotFoundError):
                # Keep default config if file is invalid or not found
                pass

        self._override_with_env()
        self._validate()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "app": {
                "host": "0.0.0.0",
                "port": 22581,
                "debug": False,
                "admin_user_ids": []
            },
            "analytics": {
                "window_size_days": 30,
                "max_window_days": 90,
                "timezone": "UTC"
            },
            "paths": {
                "user_data_dir": "user_data"
            }
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        for section, values in file_config.items():
            if section in self._config and isinstance(values, dict):
                self._config[section].update(values)
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        # App settings
        if os.getenv("APP_HOST"):
            self._config["app"]["host"] = os.getenv("APP_HOST")

        if os.getenv("APP_PORT"):
            self._config["app"]["port"] = int(os.getenv("APP_PORT"))

        if os.getenv("APP_DEBUG"):
            self._config["app"]["debug"] = os.getenv("APP_DEBUG").lower() == "true"

        if os.getenv("ADMIN_USER_IDS"):
            self._config["app"]["admin_user_ids"] = [
                uid.strip() for uid in os.getenv("ADMIN_USER_IDS").split(",") if uid.strip()
            ]

        # Analytics settings
        if os.getenv("ANALYTICS_WINDOW_DAYS"):
            self._config["analytics"]["window_size_days"] = int(os.getenv("ANALYTICS_WINDOW_DAYS"))

        if os.getenv("ANALYTICS_MAX_WINDOW_DAYS"):
            self._config["analytics"]["max_window_days"] = int(os.getenv("ANALYTICS_MAX_WINDOW_DAYS"))

        if os.getenv("ANALYTICS_TIMEZONE"):
            self._config["analytics"]["timezone"] = os.getenv("ANALYTICS_TIMEZONE")

        # Paths
        if os.getenv("USER_DATA_DIR"):
            self._config["paths"]["user_data_dir"] = os.getenv("USER_DATA_DIR")

    def _validate(self) -> None:
        """Reject window settings the analytics engine cannot serve."""
        analytics = self._config["analytics"]
        if analytics["window_size_days"] < 1:
            raise ValueError("analytics.window_size_days must be at least 1")
        if analytics["max_window_days"] < analytics["window_size_days"]:
            raise ValueError("analytics.max_window_days must not be smaller than window_size_days")

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        app_config = self._config["app"]
        return AppConfig(
            host=app_config["host"],
            port=app_config["port"],
            debug=app_config["debug"],
            admin_user_ids=app_config["admin_user_ids"]
        )

    def get_analytics_config(self) -> AnalyticsConfig:
        """Get visitor analytics configuration."""
        analytics_config = self._config["analytics"]
        return AnalyticsConfig(
            window_size_days=analytics_config["window_size_days"],
            max_window_days=analytics_config["max_window_days"],
            timezone=analytics_config["timezone"]
        )

    def get_paths_config(self) -> PathsConfig:
        """Get paths configuration."""
        paths_config = self._config["paths"]
        return PathsConfig(
            user_data_dir=paths_config["user_data_dir"]
        )

    def get_config(self) -> Dict[str, Any]:
        """Get raw configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def save_config(self) -> None:
        """Save current configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)


# Global configuration instance
config_manager = ConfigManager()


def get_app_config() -> AppConfig:
    """Get application configuration."""
    return config_manager.get_app_config()


def get_analytics_config() -> AnalyticsConfig:
    """Get visitor analytics configuration."""
    return config_manager.get_analytics_config()


def get_paths_config() -> PathsConfig:
    """Get paths configuration."""
    return config_manager.get_paths_config()


def reload_config() -> None:
    """Reload configuration."""
    config_manager.reload()


def save_config() -> None:
    """Save configuration to file."""
    config_manager.save_config()
