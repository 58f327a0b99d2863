"""Conversions between stored values, strings and byte strings."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def _format_float(value: float) -> str:
    """Shortest round-trip form, exponent used below 1e-4 and from 1e6."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    sign, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = list(digit_tuple)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1
    text = "".join(map(str, digits))
    count = len(digits)
    point = count + exponent
    exp = point - 1
    prefix = "-" if sign else ""
    if exp < -4 or exp >= 6:
        mantissa = text[0] + ("." + text[1:] if count > 1 else "")
        exp_sign = "+" if exp >= 0 else "-"
        return f"{prefix}{mantissa}e{exp_sign}{abs(exp):02d}"
    if point <= 0:
        return f"{prefix}0.{'0' * -point}{text}"
    if point >= count:
        return prefix + text + "0" * (point - count)
    return f"{prefix}{text[:point]}.{text[point:]}"


def bytes_to_strings(items: Iterable[bytes]) -> list[str]:
    """Decode each item, dropping one trailing CRLF."""
    return [
        (item[:-2] if item.endswith(b"\r\n") else item).decode(_ENCODING, _ERRORS)
        for item in items
    ]


def strings_to_bytes(items: Iterable[str]) -> list[bytes]:
    """Encode each string."""
    return [item.encode(_ENCODING, _ERRORS) for item in items]


def map_to_bytes(mapping: Mapping[str, Any]) -> list[bytes]:
    """Flatten a mapping into alternating key and value byte strings."""
    result: list[bytes] = []
    for key, value in mapping.items():
        result.append(key.encode(_ENCODING, _ERRORS))
        result.append(any_to_bytes(value))
    return result


def any_to_string(value: Any) -> str:
    """Render numbers and strings; anything else becomes the empty string."""
    if isinstance(value, bool):
        return ""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, str):
        return value
    return ""


def any_to_bytes(value: Any) -> bytes:
    """Render a value as :func:`any_to_string` does, then encode it."""
    return any_to_string(value).encode(_ENCODING, _ERRORS)


def anys_to_bytes(values: Iterable[Any]) -> list[bytes]:
    """Apply :func:`any_to_bytes` to each value."""
    return [any_to_bytes(value) for value in values]


def anys_to_strings(values: Iterable[Any]) -> list[str]:
    """Apply :func:`any_to_string` to each value."""
    return [any_to_string(value) for value in values]


def any_compare(v1: Any, v2: Any) -> bool:
    """True when both are None, or both have the same type and are equal."""
    if v1 is None and v2 is None:
        return True
    if v1 is None or v2 is None:
        return False
    if type(v1) is not type(v2):
        return False
    return v1 == v2