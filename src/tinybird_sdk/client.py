"""Python client for the Tinybird events, pipes and analyze APIs."""

from __future__ import annotations

import threading
from typing import Any, Optional

import httpx

from .config import ClientConfig
from .endpoints import ANALYZE_FIELD, analyze_url, check_analyze_input, events_request, pipe_url, remote_analyze_url
from .models import AnalyzeInput, AnalyzeResponse, EndpointResponse, LocalFile, SendEventsOptions, WriteResponse
from .transport import AsyncHttpTransport, AsyncTransport, HttpTransport, Transport


class TinybirdClient:
    """Blocking client. Safe to share between threads.

    Every call accepts an optional ``cancel`` event; setting it stops the
    retry loop before the next attempt or during a backoff wait. An attempt
    already on the wire is not interrupted and runs until it completes or
    hits ``config.timeout``.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        http: Optional[Transport] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config or ClientConfig.from_env()
        self._http = http or HttpTransport(self._config, transport=transport)

    @property
    def config(self) -> ClientConfig:
        return self._config

    def __enter__(self) -> "TinybirdClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def send_events(
        self,
        datasource_name: str,
        data: bytes,
        options: Optional[SendEventsOptions] = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> WriteResponse:
        """Append NDJSON (or a single JSON object) rows to a datasource."""
        request = events_request(self._config, datasource_name, data, options)
        response = self._http.post_raw(
            request.url,
            request.body,
            request.content_type,
            request.content_encoding,
            WriteResponse,
            cancel=cancel,
        )
        return response or WriteResponse()

    def call_endpoint(
        self,
        endpoint_name: str,
        params: Any = None,
        *,
        result_type: Any = EndpointResponse,
        cancel: Optional[threading.Event] = None,
    ) -> Any:
        """Query a published pipe endpoint.

        ``params`` is a mapping or a query record. The response is decoded
        into ``result_type``.
        """
        return self._http.get(pipe_url(self._config, endpoint_name), params, result_type, cancel=cancel)

    def analyze(self, source: AnalyzeInput, *, cancel: Optional[threading.Event] = None) -> AnalyzeResponse:
        """Infer a datasource schema from a local payload or a remote file."""
        source = check_analyze_input(source)
        if isinstance(source, LocalFile):
            response = self._http.post_multipart(
                analyze_url(self._config), ANALYZE_FIELD, source.file_name, source.data, AnalyzeResponse, cancel=cancel
            )
        else:
            response = self._http.post_raw(
                remote_analyze_url(self._config, source), None, "", "", AnalyzeResponse, cancel=cancel
            )
        return response or AnalyzeResponse()

    def close(self) -> None:
        self._http.close()


class AsyncTinybirdClient:
    """Asyncio client; cancelling the awaiting task aborts the request."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        http: Optional[AsyncTransport] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or ClientConfig.from_env()
        self._http = http or AsyncHttpTransport(self._config, transport=transport)

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def __aenter__(self) -> "AsyncTinybirdClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def send_events(
        self,
        datasource_name: str,
        data: bytes,
        options: Optional[SendEventsOptions] = None,
    ) -> WriteResponse:
        request = events_request(self._config, datasource_name, data, options)
        response = await self._http.post_raw(
            request.url, request.body, request.content_type, request.content_encoding, WriteResponse
        )
        return response or WriteResponse()

    async def call_endpoint(self, endpoint_name: str, params: Any = None, *, result_type: Any = EndpointResponse) -> Any:
        return await self._http.get(pipe_url(self._config, endpoint_name), params, result_type)

    async def analyze(self, source: AnalyzeInput) -> AnalyzeResponse:
        source = check_analyze_input(source)
        if isinstance(source, LocalFile):
            response = await self._http.post_multipart(
                analyze_url(self._config), ANALYZE_FIELD, source.file_name, source.data, AnalyzeResponse
            )
        else:
            response = await self._http.post_raw(remote_analyze_url(self._config, source), None, "", "", AnalyzeResponse)
        return response or AnalyzeResponse()

    async def close(self) -> None:
        await self._http.close()


__all__ = ["TinybirdClient", "AsyncTinybirdClient"]
