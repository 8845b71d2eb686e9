"""Request options and response records for the Tinybird API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class SendEventsOptions:
    """Options for a single ``send_events`` call.

    ``format="json"`` sends one JSON object; the default is NDJSON.
    ``compression_encoding`` is ``"gzip"`` (default) or ``"zstd"``.
    """

    wait: bool = False
    compress: bool = False
    compression_encoding: str = ""
    format: str = ""


@dataclass(frozen=True)
class LocalFile:
    """Payload uploaded from memory for schema analysis."""

    data: bytes
    file_name: str = "data"


@dataclass(frozen=True)
class RemoteUrl:
    """Remote file the API fetches itself for schema analysis."""

    url: str


AnalyzeInput = Union[LocalFile, RemoteUrl]


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class WriteResponse(_Record):
    successful_rows: int = 0
    quarantined_rows: int = 0


class FieldMeta(_Record):
    name: str = ""
    type: str = ""


class Statistics(_Record):
    elapsed: float = 0.0
    rows_read: int = 0
    bytes_read: int = 0


class EndpointResponse(_Record):
    meta: List[FieldMeta] = Field(default_factory=list)
    data: List[Dict[str, Any]] = Field(default_factory=list)
    rows: int = 0
    rows_before_limit_at_least: int = 0
    statistics: Statistics = Field(default_factory=Statistics)


class ColumnAnalysis(_Record):
    path: str = ""
    recommended_type: str = ""
    # below 100 when the sample contained nulls
    present_pct: float = 0
    name: str = ""


class Analysis(_Record):
    columns: List[ColumnAnalysis] = Field(default_factory=list)
    # "schema" shadows a BaseModel attribute
    schema_: str = Field(default="", alias="schema")


class Preview(_Record):
    meta: List[FieldMeta] = Field(default_factory=list)
    data: List[Dict[str, Any]] = Field(default_factory=list)
    rows: int = 0
    statistics: Statistics = Field(default_factory=Statistics)


class AnalyzeResponse(_Record):
    analysis: Analysis = Field(default_factory=Analysis)
    preview: Preview = Field(default_factory=Preview)


__all__ = [
    "SendEventsOptions",
    "LocalFile",
    "RemoteUrl",
    "AnalyzeInput",
    "WriteResponse",
    "FieldMeta",
    "Statistics",
    "EndpointResponse",
    "ColumnAnalysis",
    "Analysis",
    "Preview",
    "AnalyzeResponse",
]
