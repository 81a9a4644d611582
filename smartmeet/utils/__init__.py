"""Utility functions for common operations."""

from smartmeet.utils.date_utils import (
    utcnow,
    to_naive_utc,
    days_ago,
    parse_day
)
from smartmeet.utils.logging_utils import (
    StructuredLogger,
    JSONFormatter,
    configure_logging
)

__all__ = [
    'utcnow',
    'to_naive_utc',
    'days_ago',
    'parse_day',
    'StructuredLogger',
    'JSONFormatter',
    'configure_logging',
]
