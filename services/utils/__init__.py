"""
RAG Service Utilities

This module contains utility classes and functions used across the RAG system.
"""

from .retry_utils import RetryConfig, with_retry, is_transient_error, performance_timer
from .config_manager import ConfigManager
from .locks import ReadWriteLock

__all__ = ['RetryConfig', 'with_retry', 'is_transient_error', 'performance_timer', 'ConfigManager', 'ReadWriteLock']
