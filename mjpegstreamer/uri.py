"""Helpers for reading query parameters."""

from collections.abc import Iterable, Mapping
from typing import Optional, Union
from urllib.parse import quote

__all__ = ["get_true", "get_string"]

Params = Union[Mapping[str, str], Iterable[tuple[str, str]]]


def _find(params: Params, key: str) -> Optional[str]:
    pairs = params.items() if isinstance(params, Mapping) else params
    wanted = key.lower()
    for name, value in pairs:
        if name.isascii() and name.lower() == wanted:
            return value
    return None


def get_true(params: Params, key: str) -> bool:
    """Tell whether the parameter is set to a true value."""
    value = _find(params, key)
    if value is None:
        return False
    return value.startswith("1") or value.lower() in ("true", "yes")


def get_string(params: Params, key: str) -> Optional[str]:
    """Return the parameter percent-encoded, or None when it is absent."""
    value = _find(params, key)
    if value is None:
        return None
    return quote(value, safe="")