"""Tinybird Python SDK."""

import logging

from .client import AsyncTinybirdClient, TinybirdClient
from .config import VERSION, ClientConfig
from .errors import (
    ApiError,
    ClientError,
    ConfigurationError,
    DecodeError,
    MaxRetriesExceededError,
    RateLimitError,
    RequestCancelledError,
    ServerError,
    TinybirdError,
    TransportError,
)
from .models import (
    AnalyzeResponse,
    EndpointResponse,
    LocalFile,
    RemoteUrl,
    SendEventsOptions,
    WriteResponse,
)
from .query import encode_query

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = VERSION

__all__ = [
    "TinybirdClient",
    "AsyncTinybirdClient",
    "ClientConfig",
    "SendEventsOptions",
    "LocalFile",
    "RemoteUrl",
    "WriteResponse",
    "EndpointResponse",
    "AnalyzeResponse",
    "encode_query",
    "TinybirdError",
    "ConfigurationError",
    "TransportError",
    "ApiError",
    "ClientError",
    "RateLimitError",
    "ServerError",
    "DecodeError",
    "MaxRetriesExceededError",
    "RequestCancelledError",
]
