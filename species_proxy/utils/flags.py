"""
Loose boolean parsing for flags arriving through forms and JSON.
"""

import json
from typing import Any


TRUTHY_STRINGS = frozenset({'1', 'yes', 'true'})


def parse_flag(value: Any) -> bool:
    """
    Interpret a form or JSON value as a boolean.

    True for boolean True, integer 1 and the strings '1', 'yes' and 'true'
    in any case. Everything else is False.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    if isinstance(value, list) and value:
        # Repeated field, last one wins.
        return parse_flag(value[-1])
    return False


def resolve_flag(requested: Any, default: bool) -> bool:
    """Per-request value when one was supplied, else the configured default."""
    if requested is None:
        return default
    return parse_flag(requested)


def format_query_value(value: Any) -> str:
    """
    Stringify a value for a query string or form field.

    Booleans become 'true'/'false' and objects or nested arrays are sent as JSON.
    """
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return ''
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)
