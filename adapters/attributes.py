"""
Attribute mapping.

Converts a boto3 response element (nested dicts/lists of scalars, datetimes,
Decimals from DynamoDB, blobs) into an :class:`sdp.ItemAttributes` bag.
Keys are passed through unchanged, so attribute names use the PascalCase
that every AWS API returns and ``unique_attribute`` must match it.
"""

from __future__ import annotations

import base64
import dataclasses
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sdp import ErrorType, ItemAttributes, QueryError

# Present on every boto3 response, never part of a resource.
_STRIPPED_KEYS = frozenset({"ResponseMetadata"})


class UnsupportedValueError(TypeError):
    pass


def to_attributes(value: Any, *exclude: str) -> ItemAttributes:
    """Map *value* to an attribute bag, omitting top-level keys in *exclude*.

    *value* must be a mapping or a dataclass instance.  Keys whose value is
    None are dropped entirely.  Raises QueryError(OTHER) if *value* (or
    anything nested in it) cannot be converted.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)

    if not isinstance(value, Mapping):
        raise QueryError(
            ErrorType.OTHER,
            f"cannot convert {type(value).__name__} to attributes",
        )

    excluded = set(exclude)
    try:
        mapped = _convert_mapping(value, excluded)
    except UnsupportedValueError as exc:
        raise QueryError(ErrorType.OTHER, f"attribute mapping failed: {exc}") from exc

    return ItemAttributes(mapped)


def _convert_mapping(value: Mapping, exclude: set[str] | None = None) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key in sorted(value, key=str):
        name = key.value if isinstance(key, Enum) else str(key)
        if exclude and name in exclude:
            continue
        if name in _STRIPPED_KEYS:
            continue

        converted = _convert(value[key])
        if converted is None:
            continue
        result[name] = converted
    return result


def _convert(obj: Any) -> Any:
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        # DynamoDB numbers
        if obj == obj.to_integral_value():
            return int(obj)
        return float(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (bytes, bytearray)):
        return base64.b64encode(bytes(obj)).decode("ascii")
    if isinstance(obj, Mapping):
        return _convert_mapping(obj)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return _convert_mapping(dataclasses.asdict(obj))
    if isinstance(obj, (list, tuple, set, frozenset)):
        items = [_convert(v) for v in obj]
        return [v for v in items if v is not None]

    raise UnsupportedValueError(f"unsupported value of type {type(obj).__name__}")
