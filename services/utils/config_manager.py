"""
Configuration Management for RAG Services

This module wraps a Config object (class or instance) and gives the pipeline
components typed, cached access to its values.
"""

from typing import Any
from .retry_utils import RetryConfig


class ConfigManager:
    """Centralized configuration management"""

    def __init__(self, config=None):
        self.config = config
        self._cache = {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value with caching"""
        if key not in self._cache:
            value = getattr(self.config, key, None) if self.config is not None else None
            self._cache[key] = default if value is None else value
        return self._cache[key]

    def get_int(self, key: str, default: int) -> int:
        return int(self.get(key, default))

    def get_float(self, key: str, default: float) -> float:
        return float(self.get(key, default))

    def get_retry_config(self) -> RetryConfig:
        """Get retry configuration"""
        return RetryConfig(
            max_retries=self.get_int('MAX_RETRIES', 3),
            base_delay=self.get_float('RETRY_BASE_DELAY', 1.0),
            exponential_base=self.get_float('RETRY_EXPONENTIAL_BASE', 2.0),
            max_delay=self.get_float('RETRY_MAX_DELAY', 60.0)
        )


__all__ = ['ConfigManager']
