"""Pytest fixtures for homelab-httpkit tests."""

from __future__ import annotations

from collections.abc import Iterator

import httpx
import pytest

from homelab_httpkit.deps import HttpkitEnv
from homelab_httpkit.testing import json_handler, mock_client


@pytest.fixture
def fake_settings() -> HttpkitEnv:
    """Settings with a short timeout and loopback listeners on free ports."""
    return HttpkitEnv(
        call_timeout=2.0,
        follow_redirects=False,
        serve_addr="127.0.0.1:0",
        health_addr="127.0.0.1:0",
        log_level="DEBUG",
    )


@pytest.fixture
def ok_client() -> Iterator[httpx.Client]:
    """Client whose every request is answered with {"x": 1}."""
    client = mock_client(json_handler({"x": 1}))
    yield client
    client.close()


@pytest.fixture
def not_found_client() -> Iterator[httpx.Client]:
    """Client whose every request is answered with a 404."""
    client = mock_client(json_handler({"error": "missing"}, status_code=404))
    yield client
    client.close()
