"""
Wire-level helpers for the Pardot API client.

Pardot addresses resources by object type in the URL path but returns
them in the response body under a snake-cased key, and it accepts
fields as PHP-style query strings and form bodies.  The functions in
this module convert between those representations and the plain Python
values the client works with.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sized
from typing import Any, List, Tuple
from urllib.parse import urlencode

_LOWERCASE_ONLY = re.compile(r"[a-z]+")
_WORD_START = re.compile(r"(^|\s)(\S)")
_WHITESPACE = re.compile(r"\s+")
_BEFORE_UPPER = re.compile(r"(.)(?=[A-Z])")


def snake_case(value: str) -> str:
    """Return the response key Pardot uses for the object type ``value``.

    Words separated by whitespace are joined, an underscore is placed
    before every uppercase letter that is not at the start, and the
    result is lowercased.  A value made only of lowercase letters is
    returned unchanged.

    >>> snake_case("VisitorActivity")
    'visitor_activity'
    >>> snake_case("visitor activity")
    'visitor_activity'
    """
    if _LOWERCASE_ONLY.fullmatch(value):
        return value
    words = _WORD_START.sub(lambda m: m.group(1) + m.group(2).upper(), value)
    joined = _WHITESPACE.sub("", words)
    return _BEFORE_UPPER.sub(r"\1_", joined).lower()


def encode_fields(fields: Mapping[str, Any]) -> List[Tuple[str, str]]:
    """Flatten ``fields`` into ordered ``(key, value)`` string pairs.

    ``None`` values are dropped, booleans become ``"1"``/``"0"`` and
    nested mappings or sequences are expanded into bracketed keys such
    as ``list[0]``.  Insertion order is preserved.
    """
    pairs: List[Tuple[str, str]] = []
    for key, value in fields.items():
        _flatten(str(key), value, pairs)
    return pairs


def _flatten(key: str, value: Any, pairs: List[Tuple[str, str]]) -> None:
    if value is None:
        return
    if isinstance(value, Mapping):
        for sub_key, sub_value in value.items():
            _flatten(f"{key}[{sub_key}]", sub_value, pairs)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _flatten(f"{key}[{index}]", item, pairs)
    elif isinstance(value, bool):
        pairs.append((key, "1" if value else "0"))
    else:
        pairs.append((key, str(value)))


def build_query(fields: Mapping[str, Any]) -> str:
    """URL-encode ``fields`` as a query string."""
    return urlencode(encode_fields(fields))


def lookup(data: Any, dotted_key: str, default: Any) -> Any:
    """Return the value at ``dotted_key`` inside nested mappings.

    ``default`` is returned when a segment is missing, when an
    intermediate value is not a mapping, or when the value found is
    ``None``.
    """
    value = data
    for segment in dotted_key.split("."):
        if not isinstance(value, Mapping) or segment not in value:
            return default
        value = value[segment]
    return default if value is None else value


def is_blank(value: Any) -> bool:
    """Return ``True`` for ``None``, ``False``, zero, ``""``, ``"0"`` and empty containers."""
    if value is None or isinstance(value, bool):
        return not value
    if isinstance(value, (str, int, float)):
        return value in ("", "0", 0)
    if isinstance(value, Sized):
        return len(value) == 0
    return False
