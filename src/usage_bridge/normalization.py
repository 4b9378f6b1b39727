"""Utilities to normalize application labels and channel arguments."""

from __future__ import annotations

import re
from numbers import Real
from typing import Any, Mapping, Optional

_WHITESPACE_PATTERN = re.compile(r"\s+")
_INTEGRAL_PATTERN = re.compile(r"^[+-]?\d+$")


def normalize_app_label(label: Optional[str]) -> Optional[str]:
    """Collapse whitespace in a registry label; blank labels become None."""
    if label is None:
        return None
    normalized = _WHITESPACE_PATTERN.sub(" ", str(label)).strip()
    return normalized or None


def coerce_millis(value: Any) -> Optional[int]:
    """Return ``value`` as an int if it is a real number, else None.

    Booleans are not accepted as numbers; floats are truncated.
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    try:
        return int(value)
    except (OverflowError, ValueError):
        # inf / nan
        return None


def coerce_count(value: Any) -> Optional[int]:
    """Read a counter from an int or an integral string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INTEGRAL_PATTERN.match(value.strip()):
        return int(value.strip())
    return None


def argument(arguments: Any, key: str) -> Any:
    if isinstance(arguments, Mapping):
        return arguments.get(key)
    return None
