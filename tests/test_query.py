from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import pytest
from pydantic import BaseModel, Field

from tinybird_sdk.query import append_query, encode_query, format_value, is_default


@dataclass
class Filters:
    name: str = ""
    limit: int = 0
    active: bool = False
    ratio: float = 0.0
    tags: List[str] = field(default_factory=list)
    start: Optional[str] = None


@dataclass
class Tagged:
    both: str = field(default="", metadata={"query": "q_name", "json": "j_name"})
    url_first: str = field(default="", metadata={"url": "u_name", "query": "q2", "json": "j2"})
    wire: str = field(default="", metadata={"json": "wire_name,omitempty"})
    hidden: str = field(default="", metadata={"query": "-"})
    _private: str = "secret"


class Region(Enum):
    EU = "eu"
    US = "us"


class PipeParams(BaseModel):
    date_from: str = Field(default="", json_schema_extra={"query": "from"})
    city_name: str = Field(default="", alias="city")
    Limit: int = 0
    regions: List[Region] = Field(default_factory=list)
    skipped: str = Field(default="", json_schema_extra={"query": "-"})

    model_config = {"populate_by_name": True}


class Explicit:
    def __init__(self, **values) -> None:
        self.values = values

    def to_query_params(self):
        return self.values


def test_none_and_unsupported_inputs_encode_to_empty() -> None:
    assert encode_query(None) == ""
    assert encode_query(42) == ""
    assert encode_query("name=value") == ""
    assert encode_query(["a", "b"]) == ""
    assert encode_query(Filters) == ""


def test_mapping_encodes_every_pair() -> None:
    assert encode_query({}) == ""
    assert encode_query({"limit": "10", "q": "hello world"}) == "limit=10&q=hello+world"


def test_mapping_keeps_empty_strings() -> None:
    assert encode_query({"empty": ""}) == "empty="


def test_all_default_record_encodes_to_empty() -> None:
    assert encode_query(Filters()) == ""
    assert encode_query(PipeParams()) == ""


def test_record_fields_use_lowercase_names_and_skip_defaults() -> None:
    query = encode_query(Filters(name="top pages", limit=5, active=True, ratio=0.25))
    assert query == "active=true&limit=5&name=top+pages&ratio=0.25"


def test_sequence_fields_expand_in_order() -> None:
    assert encode_query(Filters(tags=["b", "a"])) == "tags=b&tags=a"
    assert encode_query(Filters(tags=["a", "b"])) == "tags=a&tags=b"


def test_optional_field_is_used_when_present() -> None:
    assert encode_query(Filters(start="2024-01-01")) == "start=2024-01-01"


def test_dataclass_tag_priority() -> None:
    record = Tagged(both="1", url_first="2", wire="3", hidden="4")
    assert encode_query(record) == "q_name=1&u_name=2&wire_name=3"


def test_pydantic_model_names() -> None:
    params = PipeParams(date_from="2024-01-01", city="Madrid", Limit=3, regions=[Region.EU, Region.US], skipped="x")
    assert encode_query(params) == "city=Madrid&from=2024-01-01&limit=3&regions=eu&regions=us"


def test_explicit_query_params_mapping() -> None:
    query = encode_query(Explicit(b="x", a=["1", "2"], empty="", skip=None))
    assert query == "a=1&a=2&b=x"


def test_special_characters_are_escaped() -> None:
    assert encode_query({"q": "a&b=c/d?é"}) == "q=a%26b%3Dc%2Fd%3F%C3%A9"


@pytest.mark.parametrize(
    "value,expected",
    [(True, "true"), (False, "false"), (3, "3"), (1.5, "1.5"), (2.0, "2"), (-0.25, "-0.25"), (Region.EU, "eu"), ("x", "x")],
)
def test_format_value(value, expected) -> None:
    assert format_value(value) == expected


@pytest.mark.parametrize("value", [None, "", 0, 0.0, False, [], (), {}])
def test_is_default(value) -> None:
    assert is_default(value)


@pytest.mark.parametrize("value", ["a", 1, -1, 0.1, True, ["x"], {"k": "v"}, Region.EU])
def test_is_not_default(value) -> None:
    assert not is_default(value)


def test_append_query() -> None:
    assert append_query("https://h/v0/pipes/p", "") == "https://h/v0/pipes/p"
    assert append_query("https://h/v0/pipes/p", "a=1") == "https://h/v0/pipes/p?a=1"
    assert append_query("https://h/v0/pipes/p.json?x=2", "a=1") == "https://h/v0/pipes/p.json?x=2&a=1"


@pytest.mark.parametrize(
    "value,expected",
    [
        (1e20, "100000000000000000000"),
        (1.5e16, "15000000000000000"),
        (1e-7, "0.0000001"),
        (float("inf"), "+Inf"),
        (float("-inf"), "-Inf"),
        (float("nan"), "NaN"),
    ],
)
def test_format_value_floats_are_positional(value: float, expected: str) -> None:
    assert format_value(value) == expected
    assert "e" not in format_value(value).lower().replace("inf", "")


def test_large_float_in_query_string() -> None:
    assert encode_query({"threshold": 1e20}) == "threshold=100000000000000000000"
