"""Typed exceptions for homelab-httpkit.

All application errors inherit from AppError and carry a numeric code.
The code is what ends up in the ``code`` field of a response envelope.
"""

from __future__ import annotations

from typing import Any

CODE_OK = 0
CODE_UNKNOWN = -1
CODE_IO = 1002
CODE_REMOTE_CALL = 1003
CODE_SERIALIZE = 1005
CODE_SERVER = 1006


class AppError(Exception):
    """Base exception for errors that carry a numeric classification code."""

    code: int = CODE_UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class RemoteCallError(AppError):
    """Outbound HTTP call failed (transport error or non-2xx status)."""

    code = CODE_REMOTE_CALL

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
        method: str = "GET",
        request_id: str | None = None,
    ):
        context = {
            "status_code": status_code,
            "url": url,
            "method": method,
            "request_id": request_id,
        }
        super().__init__(message, context={k: v for k, v in context.items() if v is not None})
        self.status_code = status_code
        self.url = url
        self.method = method
        self.request_id = request_id


class RequestBuildError(RemoteCallError):
    """Outbound request could not be constructed."""


class CallTimeoutError(RemoteCallError):
    """Outbound call timed out."""

    def __init__(
        self,
        message: str,
        *,
        timeout_seconds: float | None = None,
        url: str | None = None,
        method: str = "GET",
        request_id: str | None = None,
    ):
        super().__init__(message, url=url, method=method, request_id=request_id)
        if timeout_seconds:
            self.context["timeout_seconds"] = timeout_seconds
        self.timeout_seconds = timeout_seconds


class BodyIOError(AppError):
    """Reading or decoding an HTTP body failed."""

    code = CODE_IO

    def __init__(self, message: str, *, text: str | None = None):
        context: dict[str, Any] = {}
        if text is not None:
            # Truncate long bodies for readability
            context["text"] = text[:100] + "..." if len(text) > 100 else text
        super().__init__(message, context=context)
        self.text = text


class SerializationError(AppError):
    """A value could not be encoded as JSON."""

    code = CODE_SERIALIZE


class ServerStartError(AppError):
    """A listener failed to bind or stopped unexpectedly."""

    code = CODE_SERVER

    def __init__(self, message: str, *, addr: str | None = None):
        super().__init__(message, context={"addr": addr} if addr else {})
        self.addr = addr


class EnvelopeEncodingError(RuntimeError):
    """A response envelope could not be serialized.

    This is a programming error rather than an application error: it is
    never turned into an envelope itself.
    """
