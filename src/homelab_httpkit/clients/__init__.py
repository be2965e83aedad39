"""Outbound HTTP call helpers for homelab-httpkit."""

from homelab_httpkit.clients.http import (
    CONTENT_JSON,
    CONTENT_MIME,
    CONTENT_NONE,
    CONTENT_YAML,
    METHOD_DELETE,
    METHOD_GET,
    METHOD_PATCH,
    METHOD_POST,
    METHOD_PUT,
    HTTPResponse,
    Request,
    call,
    serialize,
)

__all__ = [
    "CONTENT_JSON",
    "CONTENT_MIME",
    "CONTENT_NONE",
    "CONTENT_YAML",
    "HTTPResponse",
    "METHOD_DELETE",
    "METHOD_GET",
    "METHOD_PATCH",
    "METHOD_POST",
    "METHOD_PUT",
    "Request",
    "call",
    "serialize",
]
