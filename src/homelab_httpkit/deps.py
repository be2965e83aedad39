"""Settings and shared HTTP client construction."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

HTTPKIT_ENV_PREFIX = "HTTPKIT_"

DEFAULT_CALL_TIMEOUT = 30.0
DEFAULT_SERVE_ADDR = ":8080"
DEFAULT_HEALTH_ADDR = ":8081"

# Field name -> environment variable
ENV_VARS = {
    "call_timeout": "HTTPKIT_CALL_TIMEOUT",
    "follow_redirects": "HTTPKIT_FOLLOW_REDIRECTS",
    "serve_addr": "HTTPKIT_SERVE_ADDR",
    "health_addr": "HTTPKIT_HEALTH_ADDR",
    "log_level": "HTTPKIT_LOG_LEVEL",
}

_TRUTHY = {"1", "true", "yes", "on"}
_UNBOUNDED = {"", "none", "off", "0"}


@dataclass(frozen=True)
class HttpkitEnv:
    """Structured access to HTTPKIT_* environment variables.

    Attributes:
        call_timeout: Outbound call timeout in seconds. None means unbounded,
            which must be asked for explicitly.
        follow_redirects: Whether outbound calls follow redirects.
        serve_addr: Address of the main listener.
        health_addr: Address of the health listener.
        log_level: Log level name used by the CLI.
    """

    call_timeout: float | None = DEFAULT_CALL_TIMEOUT
    follow_redirects: bool = True
    serve_addr: str = DEFAULT_SERVE_ADDR
    health_addr: str = DEFAULT_HEALTH_ADDR
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> HttpkitEnv:
        """Build from environment variables.

        Args:
            env: Environment variables mapping (typically os.environ).

        Returns:
            HttpkitEnv with values parsed from HTTPKIT_* variables.

        Raises:
            ValueError: If HTTPKIT_CALL_TIMEOUT is neither a number nor 'none'.
        """
        return cls(
            call_timeout=parse_timeout(env.get("HTTPKIT_CALL_TIMEOUT")),
            follow_redirects=env.get("HTTPKIT_FOLLOW_REDIRECTS", "true").strip().lower() in _TRUTHY,
            serve_addr=env.get("HTTPKIT_SERVE_ADDR", DEFAULT_SERVE_ADDR),
            health_addr=env.get("HTTPKIT_HEALTH_ADDR", DEFAULT_HEALTH_ADDR),
            log_level=env.get("HTTPKIT_LOG_LEVEL", "INFO").upper(),
        )


def parse_timeout(raw: str | None) -> float | None:
    """Parse a timeout setting; "none", "off", "0" or empty mean unbounded."""
    if raw is None:
        return DEFAULT_CALL_TIMEOUT
    value = raw.strip().lower()
    if value in _UNBOUNDED:
        return None
    timeout = float(value)
    if timeout < 0:
        raise ValueError(f"Timeout must not be negative: {raw!r}")
    return timeout


@contextmanager
def build_client(
    settings: HttpkitEnv | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> Iterator[httpx.Client]:
    """Build an httpx.Client from settings and close it on exit.

    ``transport`` replaces the network transport, e.g. an httpx.MockTransport.

    Example:
        with build_client(HttpkitEnv.from_env(os.environ)) as client:
            user = call("get-user", url, METHOD_GET, "", CONTENT_NONE, User, client=client)
    """
    settings = settings or HttpkitEnv()
    logger.debug(
        f"Building HTTP client (timeout={settings.call_timeout}, "
        f"follow_redirects={settings.follow_redirects})"
    )

    client = httpx.Client(
        timeout=settings.call_timeout,
        follow_redirects=settings.follow_redirects,
        transport=transport,
    )

    try:
        yield client
    finally:
        client.close()
