"""Outbound HTTP call helpers.

Provides a small request descriptor plus one-shot helpers with:
- Synchronous execution over httpx
- Typed errors for transport, status and decode failures
- JSON decoding into caller-supplied types
- Centralized, redacted logging
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import httpx

from homelab_httpkit.codec import decode_json
from homelab_httpkit.deps import HttpkitEnv, build_client
from homelab_httpkit.errors import (
    AppError,
    BodyIOError,
    CallTimeoutError,
    RemoteCallError,
    RequestBuildError,
    SerializationError,
)

logger = logging.getLogger(__name__)

METHOD_GET = "GET"
METHOD_PUT = "PUT"
METHOD_POST = "POST"
METHOD_PATCH = "PATCH"
METHOD_DELETE = "DELETE"

CONTENT_NONE = ""
CONTENT_JSON = "application/json"
CONTENT_YAML = "application/yaml"
CONTENT_MIME = "application/mime"

_SECRET_PARAMS = ("token", "key", "secret", "password", "signature")


@dataclass(frozen=True)
class HTTPResponse:
    """Structured HTTP response.

    Attributes:
        status_code: HTTP status code (200, 404, etc.)
        reason: Reason phrase sent with the status
        body: Response body as string
        json: Parsed JSON body (None if not JSON)
        headers: Response headers as dict
        elapsed_ms: Request duration in milliseconds
        ok: True if status code is 2xx
    """

    status_code: int
    body: str
    json: dict[str, Any] | list[Any] | None
    headers: dict[str, str]
    elapsed_ms: float = 0.0
    reason: str = ""

    @property
    def ok(self) -> bool:
        """True if response has 2xx status code."""
        return 200 <= self.status_code < 300


class Request:
    """A single outbound call, built once and executed once.

    Only headers may change after construction, through add_header().
    """

    def __init__(
        self,
        request_id: str,
        url: str,
        method: str,
        content: str = "",
        content_type: str = CONTENT_NONE,
    ):
        if not method or not method.strip():
            raise RequestBuildError(
                "Failed to create request: empty method",
                url=_redact_url(url),
                method="",
                request_id=request_id,
            )
        try:
            self._url = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as e:
            logger.error(f"[{request_id}] Failed to create request for {url!r}: {e}")
            raise RequestBuildError(
                f"Failed to create request: {e}",
                url=str(url),
                method=method,
                request_id=request_id,
            ) from e

        self.request_id = request_id
        self.url = url
        self.method = method.strip().upper()
        self.content = content
        self.content_type = content_type
        self._headers: list[tuple[str, str]] = []

        if content_type != CONTENT_NONE:
            self._headers.append(("Content-Type", content_type))

    @property
    def headers(self) -> list[tuple[str, str]]:
        """Headers that will be sent, in insertion order."""
        return list(self._headers)

    def add_header(self, key: str, value: str) -> None:
        """Append a header. Repeated keys are all sent."""
        self._headers.append((key, value))

    def build(self, client: httpx.Client) -> httpx.Request:
        """Build the httpx request against ``client``'s defaults."""
        return client.build_request(
            self.method,
            self._url,
            content=self.content or None,
            headers=self._headers,
        )

    def do_request(self, target: Any = None, *, client: httpx.Client | None = None) -> Any:
        """Perform the call synchronously.

        Args:
            target: Optional type to decode a JSON response body into.
            client: httpx.Client to send with. A short-lived client configured
                from HTTPKIT_* settings is used when omitted.

        Returns:
            The decoded value when ``target`` is given, otherwise an HTTPResponse.

        Raises:
            CallTimeoutError: If the call times out
            RemoteCallError: If the transport fails or the status is not 2xx
            BodyIOError: If the body cannot be read or decoded into ``target``
        """
        log_url = _redact_url(self.url)
        logger.debug(
            f"[{self.request_id}] start connection to {log_url} "
            f"(method={self.method}, content={self.content!r})"
        )

        with _client_scope(client) as http:
            started = time.perf_counter()
            try:
                response = http.send(self.build(http), stream=True)
            except httpx.TimeoutException as e:
                logger.error(f"[{self.request_id}] Remote call timed out: {e}")
                raise CallTimeoutError(
                    f"Remote call failed: timed out ({e}): {self.method} {log_url}",
                    timeout_seconds=http.timeout.read,
                    url=log_url,
                    method=self.method,
                    request_id=self.request_id,
                ) from e
            except httpx.RequestError as e:
                logger.error(f"[{self.request_id}] Failed to talk with remote server: {e}")
                raise RemoteCallError(
                    f"Remote call failed: {e}",
                    url=log_url,
                    method=self.method,
                    request_id=self.request_id,
                ) from e

            try:
                return self._handle_response(response, target, log_url, started)
            finally:
                response.close()

    def _handle_response(
        self,
        response: httpx.Response,
        target: Any,
        log_url: str,
        started: float,
    ) -> Any:
        status = response.status_code
        if not 200 <= status < 300:
            logger.error(
                f"[{self.request_id}] Error returns with code: {status}, "
                f"msg: {response.reason_phrase}"
            )
            raise RemoteCallError(
                f"Remote call failed: {status} {response.reason_phrase}",
                status_code=status,
                url=log_url,
                method=self.method,
                request_id=self.request_id,
            )

        try:
            content = response.read()
        except (httpx.HTTPError, httpx.StreamError) as e:
            logger.error(f"[{self.request_id}] Failed to read body of response: {e}")
            raise BodyIOError(f"Failed to read response body: {e}") from e

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.debug(f"[{self.request_id}] {self.method} {log_url} -> {status} in {elapsed_ms}ms")

        if target is not None:
            try:
                return decode_json(content, target)
            except BodyIOError as e:
                logger.error(f"[{self.request_id}] json unmarshal, error: {e.message}")
                raise

        # Parse JSON if content-type indicates JSON
        json_data = None
        if "application/json" in response.headers.get("content-type", ""):
            with contextlib.suppress(ValueError):
                json_data = json.loads(content)

        return HTTPResponse(
            status_code=status,
            body=response.text,
            json=json_data,
            headers=dict(response.headers),
            elapsed_ms=elapsed_ms,
            reason=response.reason_phrase,
        )


def call(
    request_id: str,
    url: str,
    method: str,
    content: str = "",
    content_type: str = CONTENT_NONE,
    target: Any = None,
    *,
    headers: Mapping[str, str] | None = None,
    client: httpx.Client | None = None,
) -> Any:
    """Build, execute and read a call in one step.

    Args:
        request_id: Identifier used to correlate log lines.
        url: Target URL
        method: HTTP method (GET, POST, PUT, PATCH, DELETE)
        content: Raw request body text
        content_type: Content-Type header value, or CONTENT_NONE
        target: Optional type to decode the JSON response into
        headers: Extra headers to add before sending
        client: Optional httpx.Client to reuse

    Returns:
        The decoded value when ``target`` is given, otherwise the body text.

    Raises:
        RequestBuildError: If the request cannot be constructed
        RemoteCallError: If the call fails or returns a non-2xx status
        BodyIOError: If the body cannot be read or decoded
    """
    try:
        req = Request(request_id, url, method, content, content_type)
    except RequestBuildError:
        logger.error(f"[Call, id: {request_id}] Failed to create Request")
        raise

    for key, value in (headers or {}).items():
        req.add_header(key, value)

    try:
        result = req.do_request(target, client=client)
    except AppError as e:
        logger.error(f"[Call, id: {request_id}] Failed to do Request, error = {e}")
        raise

    if target is not None:
        return result
    return result.body


def serialize(source: Mapping[str, Any]) -> str:
    """Encode a string-keyed mapping as compact JSON, keeping key order.

    Raises:
        SerializationError: If a value cannot be encoded.
    """
    try:
        return json.dumps(dict(source), separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        logger.error(f"[Serialize] Failed to convert mapping to json, error: {e}")
        raise SerializationError(f"Failed to serialize mapping: {e}") from e


@contextmanager
def _client_scope(client: httpx.Client | None) -> Iterator[httpx.Client]:
    if client is not None:
        yield client
        return
    with build_client(HttpkitEnv.from_env(os.environ)) as owned:
        yield owned


def _redact_url(url: str) -> str:
    """Redact sensitive parts of URLs for logging.

    Hides userinfo passwords and secret-looking query params.
    """
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError):
        return url

    changed = False
    if parsed.password:
        # copy_with() drops the username unless it is passed again
        parsed = parsed.copy_with(username=parsed.username, password="***")
        changed = True

    params = parsed.params.multi_items()
    if any(_is_secret_param(k) for k, _ in params):
        parsed = parsed.copy_with(
            params=[(k, "***" if _is_secret_param(k) else v) for k, v in params]
        )
        changed = True

    return str(parsed) if changed else url


def _is_secret_param(name: str) -> bool:
    lowered = name.lower()
    return any(marker in lowered for marker in _SECRET_PARAMS)
