"""Built-in WSGI apps that answer in the envelope format."""

from __future__ import annotations

import time
from typing import Any

from werkzeug.wrappers import Request, Response

from homelab_httpkit.errors import BodyIOError
from homelab_httpkit.server.envelope import envelope_response, get_request_body, respond_with_log

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


@Request.application
def echo_app(request: Request) -> Response:
    """Echo the decoded JSON body back inside an envelope.

    A body that is not a JSON object is reported through the envelope code,
    the transport status stays 200.
    """
    started = time.perf_counter()
    err: BodyIOError | None = None
    body: dict[str, Any] | None = None

    if request.method in _BODY_METHODS and request.content_length:
        try:
            body = get_request_body(request)
        except BodyIOError as e:
            err = e

    response = Response()
    respond_with_log(
        response,
        request,
        started,
        err,
        {"method": request.method, "path": request.path, "body": body},
    )
    return response


@Request.application
def health_app(request: Request) -> Response:
    """Liveness check."""
    return envelope_response(None, {"status": "up"})
