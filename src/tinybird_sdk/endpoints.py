"""URL and payload shaping for the events, pipes and analyze endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote_plus

from . import compression
from .config import ClientConfig
from .errors import ConfigurationError
from .models import AnalyzeInput, LocalFile, RemoteUrl, SendEventsOptions

NDJSON_CONTENT_TYPE = "application/x-ndjson"
JSON_CONTENT_TYPE = "application/json"
JSON_FORMAT = "json"

ANALYZE_FIELD = "file"


@dataclass(frozen=True)
class RawRequest:
    url: str
    body: Optional[bytes]
    content_type: str = ""
    content_encoding: str = ""


def events_request(
    config: ClientConfig,
    datasource_name: str,
    data: bytes,
    options: Optional[SendEventsOptions] = None,
) -> RawRequest:
    """Build the ingestion request for ``datasource_name``.

    Raises ``ConfigurationError`` for an unknown compression encoding.
    """
    options = options or SendEventsOptions()
    url = f"{config.base_url}/events?name={quote_plus(datasource_name)}"
    if options.wait:
        url += "&wait=true"
    if options.format:
        url += f"&format={quote_plus(options.format)}"

    body = data
    content_encoding = ""
    if options.compress:
        body, content_encoding = compression.compress(data, options.compression_encoding)

    content_type = JSON_CONTENT_TYPE if options.format == JSON_FORMAT else NDJSON_CONTENT_TYPE
    return RawRequest(url=url, body=body, content_type=content_type, content_encoding=content_encoding)


def pipe_url(config: ClientConfig, endpoint_name: str) -> str:
    # not escaped: names may carry a format suffix such as "top_pages.json"
    return f"{config.base_url}/pipes/{endpoint_name}"


def analyze_url(config: ClientConfig) -> str:
    return f"{config.base_url}/analyze"


def remote_analyze_url(config: ClientConfig, source: RemoteUrl) -> str:
    return f"{analyze_url(config)}?url={quote_plus(source.url)}"


def check_analyze_input(source: AnalyzeInput) -> AnalyzeInput:
    if not isinstance(source, (LocalFile, RemoteUrl)):
        raise ConfigurationError(
            f"unsupported analyze input: expected LocalFile or RemoteUrl, got {type(source).__name__}"
        )
    return source


__all__ = [
    "RawRequest",
    "events_request",
    "pipe_url",
    "analyze_url",
    "remote_analyze_url",
    "check_analyze_input",
    "NDJSON_CONTENT_TYPE",
    "JSON_CONTENT_TYPE",
]
