"""
Feature flags and limits for the review monitor.

Reads config/features.yaml. A missing or unreadable file yields the
built-in defaults, so the monitor runs with no configuration at all.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_LIMITS: Dict[str, Any] = {
    'max_retries': 3,
    'poll_interval_seconds': 300,
    'subscription_delay_seconds': 2,
    'notification_delay_seconds': 1,
    'retry_delay_seconds': 2,
    'http_timeout_seconds': 30,
}


class FeatureConfig:
    """Feature configuration manager."""

    def __init__(self, config_path: Optional[Path] = None):
        if config_path is None:
            config_path = Path(__file__).parent.parent / 'config' / 'features.yaml'

        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        if not self.config_path.exists():
            logger.info(f"No feature config at {self.config_path}, using defaults")
            self._config = {}
            return

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"⚠️ Failed to load feature config: {e}")
            self._config = {}

    def reload(self) -> None:
        self._load_config()

    @property
    def _section(self) -> Dict[str, Any]:
        return self._config.get('review_monitor', {}) or {}

    @property
    def is_review_monitor_enabled(self) -> bool:
        return bool(self._section.get('enabled', True))

    def is_component_enabled(self, component: str) -> bool:
        """Check a component flag ('translation', 'cover_enrichment').

        Components default to enabled; a disabled monitor disables all of them.
        """
        if not self.is_review_monitor_enabled:
            return False
        return bool(self._section.get('components', {}).get(component, True))

    def is_source_enabled(self, source: str) -> bool:
        if not self.is_review_monitor_enabled:
            return False
        return bool(self._section.get('sources', {}).get(source, True))

    def get_limit(self, limit_name: str) -> Optional[Any]:
        """Get a limit value, falling back to DEFAULT_LIMITS."""
        limits = self._config.get('limits', {}) or {}
        return limits.get(limit_name, DEFAULT_LIMITS.get(limit_name))

    def get_all_config(self) -> Dict[str, Any]:
        return self._config.copy()


# Global instance
feature_config = FeatureConfig()
