"""Utils module."""

from .helpers import format_elapsed, format_remaining, utcnow
from .logger import setup_logger
from .parsing import TextParser, parse_timestamp

__all__ = [
    'format_elapsed',
    'format_remaining',
    'utcnow',
    'setup_logger',
    'TextParser',
    'parse_timestamp',
]
