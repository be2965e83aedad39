"""Testing utilities for code built on homelab-httpkit.

Provides helpers that avoid real sockets:
- mock_client(): an httpx.Client whose transport answers from a handler
- json_handler(): a handler that always returns one JSON response
- make_inbound_request(): a werkzeug Request for exercising envelope helpers

Usage:
    from homelab_httpkit.testing import json_handler, mock_client

    def test_fetch_user():
        client = mock_client(json_handler({"id": 7}))
        user = call("fetch", "https://api.example.com/u/7", "GET", target=User, client=client)
        assert user.id == 7
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
from werkzeug.test import EnvironBuilder
from werkzeug.wrappers import Request


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    """Build an httpx.Client that routes every request to ``handler``."""
    return httpx.Client(transport=httpx.MockTransport(handler))


def json_handler(
    payload: Any,
    *,
    status_code: int = 200,
) -> Callable[[httpx.Request], httpx.Response]:
    """Return a handler answering every request with ``payload`` as JSON."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code,
            content=json.dumps(payload).encode("utf-8"),
            headers={"content-type": "application/json"},
        )

    return handler


def make_inbound_request(
    body: str | bytes = b"",
    *,
    method: str = "POST",
    path: str = "/",
    query_string: str | None = None,
    content_type: str = "application/json",
) -> Request:
    """Build a werkzeug Request as a listener would hand it to a handler."""
    builder = EnvironBuilder(
        path=path,
        method=method,
        data=body,
        query_string=query_string,
        content_type=content_type,
    )
    return builder.get_request()
