"""
Shared utilities.
"""

from .flags import format_query_value, parse_flag, resolve_flag


__all__ = [
    'format_query_value',
    'parse_flag',
    'resolve_flag',
]
