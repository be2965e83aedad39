"""homelab-httpkit: HTTP call helpers and uniform JSON response envelopes."""

__version__ = "0.1.0"

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
from homelab_httpkit.deps import HttpkitEnv, build_client
from homelab_httpkit.errors import (
    AppError,
    BodyIOError,
    CallTimeoutError,
    EnvelopeEncodingError,
    RemoteCallError,
    RequestBuildError,
    SerializationError,
    ServerStartError,
)
from homelab_httpkit.server.envelope import (
    Envelope,
    build_envelope,
    envelope_response,
    get_request_body,
    get_response_data,
    log_response_data,
    log_response_data_ex,
    parse_envelope,
    respond_with_log,
)
from homelab_httpkit.server.listener import ServerHandle, health, serve

__all__ = [
    # Outbound
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
    # Settings
    "HttpkitEnv",
    "build_client",
    # Errors
    "AppError",
    "BodyIOError",
    "CallTimeoutError",
    "EnvelopeEncodingError",
    "RemoteCallError",
    "RequestBuildError",
    "SerializationError",
    "ServerStartError",
    # Inbound
    "Envelope",
    "build_envelope",
    "envelope_response",
    "get_request_body",
    "get_response_data",
    "log_response_data",
    "log_response_data_ex",
    "parse_envelope",
    "respond_with_log",
    # Listeners
    "ServerHandle",
    "health",
    "serve",
]
