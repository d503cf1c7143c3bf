"""
Canonical JSON serialization per RFC 8785 (JCS).

Field digests and identifiers are computed over this output, so two
implementations that disagree on a single byte produce different hashes
for the same logical content.

Rules:
- Object keys sorted lexicographically by Unicode code point
- No whitespace between tokens
- Numbers: shortest round-trip per ECMAScript NumberToString
- Strings: minimal escaping (control chars, backslash, double-quote)
- null, true, false as literals

Values that have no JSON form (sets, bytes, arbitrary objects, NaN,
Infinity, non-string object keys) raise MalformedValueError instead of
being coerced.
"""

import json
import math
from typing import Any, Mapping

from .errors import MalformedValueError


def canonical_json(value: Any) -> str:
    """
    Serialize a value to canonical JSON per RFC 8785.

    Args:
        value: Any JSON-serializable value

    Returns:
        Canonical JSON string with sorted keys and no whitespace

    Raises:
        MalformedValueError: If the value contains non-JSON types
    """
    return _serialize_value(value, "$")


def canonical_bytes(value: Any) -> bytes:
    """UTF-8 encoding of canonical_json(value)."""
    return canonical_json(value).encode("utf-8")


def _serialize_value(value: Any, path: str) -> str:
    """Internal: serialize any value to canonical JSON."""
    if value is None:
        return "null"

    if isinstance(value, bool):
        # Must check bool before int (bool is subclass of int in Python)
        return "true" if value else "false"

    if isinstance(value, (int, float)):
        return _serialize_number(value, path)

    if isinstance(value, str):
        return _serialize_string(value)

    if isinstance(value, (list, tuple)):
        return _serialize_array(value, path)

    if isinstance(value, Mapping):
        return _serialize_object(value, path)

    raise MalformedValueError(
        f"Value at {path} is not JSON-serializable: {type(value).__name__}",
        {"path": path, "type": type(value).__name__},
    )


def _serialize_number(num: float | int, path: str) -> str:
    """
    Serialize number per RFC 8785 / ECMAScript NumberToString.

    Uses the shortest representation that round-trips.
    """
    if isinstance(num, float):
        if math.isnan(num) or math.isinf(num):
            raise MalformedValueError(
                f"Value at {path} is not a finite number",
                {"path": path, "value": repr(num)},
            )

    # Integer handling: avoid scientific notation for reasonable integers
    if isinstance(num, int) or (isinstance(num, float) and num.is_integer()):
        int_val = int(num)
        if abs(int_val) < 10**20:
            return str(int_val)

    # json.dumps produces shortest round-trip representation
    result = json.dumps(num)

    if result.endswith(".0"):
        result = result[:-2]

    return result


def _serialize_string(text: str) -> str:
    """
    Serialize string with proper JSON escaping.
    """
    return json.dumps(text, ensure_ascii=False)


def _serialize_array(arr: list | tuple, path: str) -> str:
    """Serialize array with no whitespace."""
    items = [_serialize_value(item, f"{path}[{idx}]") for idx, item in enumerate(arr)]
    return "[" + ",".join(items) + "]"


def _serialize_object(obj: Mapping, path: str) -> str:
    """
    Serialize object with sorted keys per RFC 8785.

    Keys are sorted lexicographically by Unicode code point.
    """
    for key in obj:
        if not isinstance(key, str):
            raise MalformedValueError(
                f"Object key at {path} is not a string: {key!r}",
                {"path": path, "key": repr(key)},
            )

    pairs = [
        _serialize_string(key) + ":" + _serialize_value(obj[key], f"{path}.{key}")
        for key in sorted(obj.keys())
    ]
    return "{" + ",".join(pairs) + "}"
