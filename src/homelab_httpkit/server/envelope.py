"""Inbound request helpers and the response envelope.

Every handler answers with the same JSON shape:

    {"code": 0, "msg": "ok", "data": ...}

``code`` 0 means success. Any other value is the numeric code of the
AppError that failed the request, or -1 for errors without one. The
transport status is always 200; the logical outcome lives in the body.
"""

from __future__ import annotations

import io
import logging
import time
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticSerializationError
from werkzeug.exceptions import HTTPException
from werkzeug.wrappers import Request, Response

from homelab_httpkit.codec import decode_json
from homelab_httpkit.errors import (
    CODE_OK,
    CODE_UNKNOWN,
    AppError,
    BodyIOError,
    EnvelopeEncodingError,
)

logger = logging.getLogger(__name__)

MSG_OK = "ok"
ENVELOPE_MIMETYPE = "application/json"

DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    """Uniform response body.

    Attributes:
        code: 0 on success, otherwise the error's numeric code.
        msg: "ok" on success, otherwise the error message.
        data: Handler payload, embedded whatever the outcome.
    """

    code: int
    msg: str
    data: DataT | None = None

    @property
    def ok(self) -> bool:
        """True if the envelope reports success."""
        return self.code == CODE_OK

    def unwrap(self) -> DataT | None:
        """Return ``data``, raising AppError if the envelope reports a failure."""
        if not self.ok:
            raise AppError(self.msg, code=self.code)
        return self.data


def get_request_body(request: Request, target: Any = None) -> Any:
    """Read the request body as JSON without consuming it.

    The body is copied into memory and the request's input stream is replaced
    with a fresh reader over the same bytes, so later code can read it again.

    Args:
        request: Incoming werkzeug request.
        target: Type to decode into. Defaults to ``dict[str, Any]``.

    Returns:
        The decoded body.

    Raises:
        BodyIOError: If the body cannot be read or is not valid JSON for ``target``.
    """
    try:
        body = _read_and_restore(request)
    except (OSError, HTTPException) as e:
        logger.error(f"[GetRequestBody] Failed to copy req body, error = {e}")
        raise BodyIOError(f"Failed to copy req body, error = {e}") from e

    try:
        return decode_json(body, target if target is not None else dict[str, Any])
    except BodyIOError as e:
        logger.error(f"[GetRequestBody] Failed to unmarshal json body, text = {e.text}")
        raise


def build_envelope(err: BaseException | None, data: Any = None) -> Envelope[Any]:
    """Map an error/data pair onto the envelope."""
    if err is None:
        return Envelope[Any](code=CODE_OK, msg=MSG_OK, data=data)
    if isinstance(err, AppError):
        return Envelope[Any](code=err.code, msg=err.message, data=data)
    return Envelope[Any](code=CODE_UNKNOWN, msg=str(err), data=data)


def get_response_data(err: BaseException | None, data: Any = None) -> bytes:
    """Serialize the envelope for ``err`` and ``data``.

    Raises:
        EnvelopeEncodingError: If ``data`` cannot be encoded. This is not an
            AppError and is not meant to be turned into a response.
    """
    envelope = build_envelope(err, data)
    try:
        return envelope.model_dump_json().encode("utf-8")
    except (PydanticSerializationError, ValueError, TypeError) as e:
        logger.critical(f"[GetResponseData] Failed, {e}, data = {data!r}")
        raise EnvelopeEncodingError(f"Failed to encode response envelope: {e}") from e


def parse_envelope(text: bytes | str, data_type: Any = Any) -> Envelope[Any]:
    """Decode an envelope produced by this or any compatible service.

    Raises:
        BodyIOError: If ``text`` is not an envelope whose data fits ``data_type``.
    """
    try:
        return Envelope[data_type].model_validate_json(text, strict=True)
    except ValidationError as e:
        raw = text.decode("utf-8", errors="replace") if isinstance(text, bytes) else text
        raise BodyIOError(f"Invalid response envelope: {e}", text=raw) from e


def envelope_response(err: BaseException | None, data: Any = None) -> Response:
    """Build a 200 response carrying the envelope."""
    return Response(get_response_data(err, data), status=200, mimetype=ENVELOPE_MIMETYPE)


def log_response_data(request: Request, err: BaseException | None, data: Any = None) -> bytes:
    """Serialize the envelope and log the request and response at DEBUG."""
    ret = get_response_data(err, data)
    body = _peek_body(request)

    logger.debug(
        f"HANDLE_LOG: url = {_request_uri(request)}, method: {request.method}, request = {body}"
    )
    logger.debug(f"HANDLE_RESPONSE: response = {ret.decode('utf-8')}")

    return ret


def log_response_data_ex(
    request: Request,
    started: float | None,
    err: BaseException | None,
    data: Any = None,
) -> bytes:
    """Serialize the envelope and log handling time, request and response.

    Args:
        request: Incoming werkzeug request.
        started: ``time.perf_counter()`` value taken when handling began,
            or None to skip the timing line.
        err: Error that failed the request, if any.
        data: Handler payload.
    """
    ret = get_response_data(err, data)
    _log_handling(request, started, ret)
    return ret


def respond_with_log(
    response: Response,
    request: Request,
    started: float | None,
    err: BaseException | None,
    data: Any = None,
) -> None:
    """Write the envelope into ``response`` and log like log_response_data_ex()."""
    ret = get_response_data(err, data)

    response.status_code = 200
    response.mimetype = ENVELOPE_MIMETYPE
    response.set_data(ret)

    _log_handling(request, started, ret)


def _log_handling(request: Request, started: float | None, ret: bytes) -> None:
    body = _peek_body(request)

    if started is not None:
        cost_ms = int((time.perf_counter() - started) * 1000)
        logger.info(f"HANDLE_TIME: {cost_ms} ms")
    logger.info(
        f"HANDLE_LOG: url = {_request_uri(request)}, method: {request.method}, request = {body}"
    )
    logger.debug(f"HANDLE_RESPONSE: response = {ret.decode('utf-8')}")


def _read_and_restore(request: Request) -> bytes:
    body = request.get_data(cache=True)

    request.environ["wsgi.input"] = io.BytesIO(body)
    request.environ["CONTENT_LENGTH"] = str(len(body))
    # Drop the cached stream so the next access wraps the new input
    request.__dict__.pop("stream", None)

    return body


def _peek_body(request: Request) -> str:
    """Best-effort body text for logging; empty on any failure."""
    try:
        return _read_and_restore(request).decode("utf-8", errors="replace")
    except Exception as e:
        logger.debug(f"Could not read request body for logging: {e}")
        return ""


def _request_uri(request: Request) -> str:
    query = request.query_string.decode("latin-1")
    return f"{request.path}?{query}" if query else request.path
