"""Inbound handling: envelope helpers and background listeners."""

from homelab_httpkit.server.apps import echo_app, health_app
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
from homelab_httpkit.server.listener import ServerHandle, health, parse_addr, serve

__all__ = [
    "Envelope",
    "ServerHandle",
    "build_envelope",
    "echo_app",
    "envelope_response",
    "get_request_body",
    "get_response_data",
    "health",
    "health_app",
    "log_response_data",
    "log_response_data_ex",
    "parse_addr",
    "parse_envelope",
    "respond_with_log",
    "serve",
]
