"""URL query string encoding for mappings and annotated records.

Records are dataclass instances or pydantic models. The parameter name of a
field is chosen in this order:

1. a query annotation: dataclass ``field(metadata={"url": ...})`` or
   ``metadata={"query": ...}``, pydantic ``Field(json_schema_extra={"query": ...})``
2. a wire-format annotation: dataclass ``metadata={"json": ...}`` or the
   pydantic alias
3. the lowercase attribute name

A name of ``-`` drops the field. Fields holding a default value (``None``,
``""``, ``0``, ``False``, empty collections) are never emitted.

Records that need full control implement ``to_query_params()`` and return a
mapping or an iterable of ``(name, value)`` pairs.
"""

from __future__ import annotations

import dataclasses
import math
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple
from urllib.parse import urlencode, urlsplit, urlunsplit

from pydantic import BaseModel

OMIT = "-"
_QUERY_KEYS = ("url", "query")
_WIRE_KEYS = ("json",)


def encode_query(value: Any) -> str:
    """Encode ``value`` as a query string; unsupported inputs yield ``""``."""
    if value is None:
        return ""
    if hasattr(value, "to_query_params"):
        pairs = _pairs_from_explicit(value.to_query_params())
    elif isinstance(value, Mapping):
        pairs = _pairs_from_mapping(value)
    elif isinstance(value, BaseModel):
        pairs = _pairs_from_model(value)
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        pairs = _pairs_from_dataclass(value)
    else:
        return ""
    # sorted() is stable, so repeated keys keep their element order
    return urlencode(sorted(pairs, key=lambda pair: pair[0]))


def append_query(url: str, query: str) -> str:
    """Merge an encoded query string into ``url``."""
    if not query:
        return url
    parts = urlsplit(url)
    merged = f"{parts.query}&{query}" if parts.query else query
    return urlunsplit(parts._replace(query=merged))


def is_default(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes, bool, int, float)):
        return not value
    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def format_value(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "+Inf" if value > 0 else "-Inf"
        # positional notation, shortest digits that round-trip
        return format(Decimal(repr(value)).normalize(), "f")
    return str(value)


def _expand(value: Any) -> Iterator[str]:
    if isinstance(value, (list, tuple, set, frozenset)):
        for item in value:
            if item is None:
                continue
            yield from _expand(item)
    else:
        yield format_value(value)


def _pairs_from_mapping(values: Mapping[Any, Any]) -> List[Tuple[str, str]]:
    pairs: List[Tuple[str, str]] = []
    for key, value in values.items():
        if value is None:
            continue
        for item in _expand(value):
            pairs.append((str(key), item))
    return pairs


def _pairs_from_explicit(params: Any) -> List[Tuple[str, str]]:
    items: Iterable[Tuple[Any, Any]] = params.items() if isinstance(params, Mapping) else params
    pairs: List[Tuple[str, str]] = []
    for name, value in items:
        if not name or name == OMIT or is_default(value):
            continue
        pairs.extend((str(name), item) for item in _expand(value))
    return pairs


def _tag_name(tag: Optional[str]) -> Optional[str]:
    if not tag:
        return None
    return tag.split(",", 1)[0]


def _dataclass_param_name(field: dataclasses.Field) -> str:
    for key in _QUERY_KEYS + _WIRE_KEYS:
        name = _tag_name(field.metadata.get(key))
        if name:
            return name
    return field.name.lower()


def _model_param_name(attr: str, info: Any) -> str:
    extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
    for key in _QUERY_KEYS:
        name = _tag_name(extra.get(key))
        if name:
            return name
    name = _tag_name(info.alias) or _tag_name(info.serialization_alias)
    return name or attr.lower()


def _collect(named_values: Iterable[Tuple[str, str, Any]]) -> List[Tuple[str, str]]:
    pairs: List[Tuple[str, str]] = []
    for attr, name, value in named_values:
        if attr.startswith("_") or name == OMIT:
            continue
        if is_default(value):
            continue
        pairs.extend((name, item) for item in _expand(value))
    return pairs


def _pairs_from_dataclass(record: Any) -> List[Tuple[str, str]]:
    return _collect(
        (field.name, _dataclass_param_name(field), getattr(record, field.name))
        for field in dataclasses.fields(record)
    )


def _pairs_from_model(model: BaseModel) -> List[Tuple[str, str]]:
    return _collect(
        (attr, _model_param_name(attr, info), getattr(model, attr))
        for attr, info in type(model).model_fields.items()
    )


__all__ = ["encode_query", "append_query", "format_value", "is_default"]
