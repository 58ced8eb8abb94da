"""Utilities for the Pulsar benchmark driver."""

from .logging import setup_logging, get_logger, LoggerMixin
from .futures import completed_future, failed_future, map_future, all_of

__all__ = [
    "setup_logging",
    "get_logger",
    "LoggerMixin",
    "completed_future",
    "failed_future",
    "map_future",
    "all_of",
]
