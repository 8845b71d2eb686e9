"""HTTP request execution with retries for the Tinybird API.

``Transport`` and ``AsyncTransport`` are the seams the client talks to. Their
verbs shape the request (query string, JSON body, raw bytes, multipart) and
hand it to ``execute``, which ``HttpTransport`` and ``AsyncHttpTransport``
implement on top of httpx:

* up to ``max_retries + 1`` attempts, waiting ``retry_delay * attempt``
  seconds before each retry
* connection errors, timeouts, 429 and 5xx are retried
* other 4xx and unexpected statuses fail at once, as do undecodable 2xx bodies
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import threading
import time
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx
from pydantic import BaseModel, PydanticUserError, TypeAdapter, ValidationError

from .config import ClientConfig
from .errors import (
    ApiError,
    ConfigurationError,
    DecodeError,
    MaxRetriesExceededError,
    RequestCancelledError,
    TinybirdError,
    TransportError,
    error_for_status,
)
from .query import append_query, encode_query

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


def encode_json(body: Any) -> Optional[bytes]:
    if body is None:
        return None
    if isinstance(body, BaseModel):
        return body.model_dump_json(by_alias=True).encode()
    if dataclasses.is_dataclass(body) and not isinstance(body, type):
        body = dataclasses.asdict(body)
    return json.dumps(body, separators=(",", ":")).encode()


def encode_multipart(field_name: str, file_name: str, data: bytes) -> Tuple[bytes, str]:
    """Render a single-file multipart form to bytes plus its content type."""
    request = httpx.Request("POST", "http://multipart.invalid/", files={field_name: (file_name, data)})
    return request.read(), request.headers["Content-Type"]


def build_headers(
    config: ClientConfig,
    body: Optional[bytes],
    content_type: str = "",
    content_encoding: str = "",
) -> Dict[str, str]:
    headers = {"User-Agent": config.user_agent}
    if content_type:
        headers["Content-Type"] = content_type
    elif body:
        headers["Content-Type"] = JSON_CONTENT_TYPE
    if content_encoding:
        headers["Content-Encoding"] = content_encoding
    if config.token:
        headers["Authorization"] = f"Bearer {config.token}"
    headers.update(config.headers)
    return headers


@lru_cache(maxsize=64)
def _adapter(result_type: Any) -> TypeAdapter:
    return TypeAdapter(result_type)


def result_adapter(result_type: Any) -> Optional[TypeAdapter]:
    """Resolve the decoder for ``result_type`` before anything is sent."""
    if result_type is None:
        return None
    try:
        return _adapter(result_type)
    except (PydanticUserError, TypeError) as exc:
        raise ConfigurationError(f"cannot decode responses into {result_type!r}: {exc}") from exc


def decode_response(response: httpx.Response, adapter: Optional[TypeAdapter] = None) -> Any:
    """Decode a read response or raise the error matching its status."""
    status = response.status_code
    if 200 <= status < 300:
        if adapter is None or status == 204 or not response.content:
            return None
        try:
            return adapter.validate_json(response.content)
        except ValidationError as exc:
            raise DecodeError(f"failed to decode response: {exc}", status, response.text) from exc
    raise error_for_status(status, response.reason_phrase, response.text)


def _undecodable_body(response: httpx.Response, exc: httpx.DecodingError) -> TinybirdError:
    # the Content-Encoding of the body did not match its bytes
    if 200 <= response.status_code < 300:
        error: TinybirdError = DecodeError(f"failed to decode response body: {exc}", response.status_code)
    else:
        error = error_for_status(response.status_code, response.reason_phrase)
    error.__cause__ = exc
    return error


def _transport_error(exc: httpx.RequestError) -> TransportError:
    error = TransportError(f"request failed: {exc!r}")
    error.__cause__ = exc
    return error


class Transport:
    """Synchronous request executor interface."""

    def execute(
        self,
        method: str,
        url: str,
        body: Optional[bytes] = None,
        content_type: str = "",
        content_encoding: str = "",
        result_type: Any = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> Any:  # pragma: no cover - interface
        raise NotImplementedError

    def get(self, url: str, params: Any = None, result_type: Any = None, *, cancel: Optional[threading.Event] = None) -> Any:
        return self.execute("GET", append_query(url, encode_query(params)), result_type=result_type, cancel=cancel)

    def delete(self, url: str, params: Any = None, result_type: Any = None, *, cancel: Optional[threading.Event] = None) -> Any:
        return self.execute("DELETE", append_query(url, encode_query(params)), result_type=result_type, cancel=cancel)

    def post(self, url: str, body: Any = None, result_type: Any = None, *, cancel: Optional[threading.Event] = None) -> Any:
        return self.execute("POST", url, encode_json(body), result_type=result_type, cancel=cancel)

    def put(self, url: str, body: Any = None, result_type: Any = None, *, cancel: Optional[threading.Event] = None) -> Any:
        return self.execute("PUT", url, encode_json(body), result_type=result_type, cancel=cancel)

    def patch(self, url: str, body: Any = None, result_type: Any = None, *, cancel: Optional[threading.Event] = None) -> Any:
        return self.execute("PATCH", url, encode_json(body), result_type=result_type, cancel=cancel)

    def post_raw(
        self,
        url: str,
        body: Optional[bytes],
        content_type: str = "",
        content_encoding: str = "",
        result_type: Any = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> Any:
        return self.execute("POST", url, body, content_type, content_encoding, result_type, cancel=cancel)

    def post_multipart(
        self,
        url: str,
        field_name: str,
        file_name: str,
        data: bytes,
        result_type: Any = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> Any:
        body, content_type = encode_multipart(field_name, file_name, data)
        return self.post_raw(url, body, content_type, "", result_type, cancel=cancel)

    def close(self) -> None:
        return None


class HttpTransport(Transport):
    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._client = httpx.Client(timeout=config.timeout, transport=transport)
        self._sleep = sleep

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _wait(self, delay: float, cancel: Optional[threading.Event]) -> None:
        if cancel is None:
            self._sleep(delay)
        elif cancel.wait(delay):
            raise RequestCancelledError("request cancelled during retry backoff")

    def execute(
        self,
        method: str,
        url: str,
        body: Optional[bytes] = None,
        content_type: str = "",
        content_encoding: str = "",
        result_type: Any = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> Any:
        adapter = result_adapter(result_type)
        headers = build_headers(self._config, body, content_type, content_encoding)
        attempts = self._config.max_retries + 1
        last_error: Optional[TinybirdError] = None
        for attempt in range(attempts):
            if attempt > 0:
                delay = self._config.retry_delay * attempt
                logger.debug("retrying %s %s attempt=%d delay=%.2fs after: %s", method, url, attempt, delay, last_error)
                self._wait(delay, cancel)
            if cancel is not None and cancel.is_set():
                raise RequestCancelledError("request cancelled")

            # body bytes are re-read for every attempt
            request = self._client.build_request(method, url, content=body or None, headers=headers)
            try:
                response = self._client.send(request, stream=True)
            except httpx.RequestError as exc:
                last_error = _transport_error(exc)
                continue
            try:
                response.read()
                return decode_response(response, adapter)
            except httpx.DecodingError as exc:
                last_error = _undecodable_body(response, exc)
            except httpx.RequestError as exc:
                last_error = _transport_error(exc)
            except ApiError as exc:
                last_error = exc
            finally:
                response.close()
            if not last_error.retryable:
                raise last_error
        raise MaxRetriesExceededError(last_error, attempts) from last_error

    def close(self) -> None:
        self._client.close()


class AsyncTransport:
    """Asyncio request executor interface.

    Cancelling the calling task aborts the in-flight attempt and stops the
    retry loop.
    """

    async def execute(
        self,
        method: str,
        url: str,
        body: Optional[bytes] = None,
        content_type: str = "",
        content_encoding: str = "",
        result_type: Any = None,
    ) -> Any:  # pragma: no cover - interface
        raise NotImplementedError

    async def get(self, url: str, params: Any = None, result_type: Any = None) -> Any:
        return await self.execute("GET", append_query(url, encode_query(params)), result_type=result_type)

    async def delete(self, url: str, params: Any = None, result_type: Any = None) -> Any:
        return await self.execute("DELETE", append_query(url, encode_query(params)), result_type=result_type)

    async def post(self, url: str, body: Any = None, result_type: Any = None) -> Any:
        return await self.execute("POST", url, encode_json(body), result_type=result_type)

    async def put(self, url: str, body: Any = None, result_type: Any = None) -> Any:
        return await self.execute("PUT", url, encode_json(body), result_type=result_type)

    async def patch(self, url: str, body: Any = None, result_type: Any = None) -> Any:
        return await self.execute("PATCH", url, encode_json(body), result_type=result_type)

    async def post_raw(
        self,
        url: str,
        body: Optional[bytes],
        content_type: str = "",
        content_encoding: str = "",
        result_type: Any = None,
    ) -> Any:
        return await self.execute("POST", url, body, content_type, content_encoding, result_type)

    async def post_multipart(
        self,
        url: str,
        field_name: str,
        file_name: str,
        data: bytes,
        result_type: Any = None,
    ) -> Any:
        body, content_type = encode_multipart(field_name, file_name, data)
        return await self.post_raw(url, body, content_type, "", result_type)

    async def close(self) -> None:
        return None


class AsyncHttpTransport(AsyncTransport):
    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config
        self._client = httpx.AsyncClient(timeout=config.timeout, transport=transport)
        self._sleep = sleep

    async def __aenter__(self) -> "AsyncHttpTransport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def execute(
        self,
        method: str,
        url: str,
        body: Optional[bytes] = None,
        content_type: str = "",
        content_encoding: str = "",
        result_type: Any = None,
    ) -> Any:
        adapter = result_adapter(result_type)
        headers = build_headers(self._config, body, content_type, content_encoding)
        attempts = self._config.max_retries + 1
        last_error: Optional[TinybirdError] = None
        for attempt in range(attempts):
            if attempt > 0:
                delay = self._config.retry_delay * attempt
                logger.debug("retrying %s %s attempt=%d delay=%.2fs after: %s", method, url, attempt, delay, last_error)
                await self._sleep(delay)

            request = self._client.build_request(method, url, content=body or None, headers=headers)
            try:
                response = await self._client.send(request, stream=True)
            except httpx.RequestError as exc:
                last_error = _transport_error(exc)
                continue
            try:
                await response.aread()
                return decode_response(response, adapter)
            except httpx.DecodingError as exc:
                last_error = _undecodable_body(response, exc)
            except httpx.RequestError as exc:
                last_error = _transport_error(exc)
            except ApiError as exc:
                last_error = exc
            finally:
                await response.aclose()
            if not last_error.retryable:
                raise last_error
        raise MaxRetriesExceededError(last_error, attempts) from last_error

    async def close(self) -> None:
        await self._client.aclose()


__all__ = [
    "Transport",
    "AsyncTransport",
    "HttpTransport",
    "AsyncHttpTransport",
    "build_headers",
    "decode_response",
    "result_adapter",
    "encode_json",
    "encode_multipart",
]
