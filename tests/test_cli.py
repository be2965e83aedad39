"""Tests for the command-line interface."""

from __future__ import annotations

import json
from contextlib import contextmanager

import httpx
import pytest
from typer.testing import CliRunner

from homelab_httpkit import cli
from homelab_httpkit.testing import json_handler, mock_client

runner = CliRunner()


@pytest.fixture
def routed(monkeypatch):
    """Route CLI calls through a mock transport and record the requests."""
    seen: list[httpx.Request] = []
    state: dict = {"handler": json_handler({"x": 1})}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return state["handler"](request)

    @contextmanager
    def fake_build_client(settings):
        state["settings"] = settings
        client = mock_client(handler)
        try:
            yield client
        finally:
            client.close()

    monkeypatch.setattr(cli, "build_client", fake_build_client)
    return seen, state


class TestCallCommand:
    def test_prints_json_body(self, routed):
        result = runner.invoke(cli.app, ["call", "https://api.example.com/point"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"x": 1}

    def test_sends_method_body_and_headers(self, routed):
        seen, _ = routed

        result = runner.invoke(
            cli.app,
            [
                "call",
                "https://api.example.com/items",
                "-X",
                "post",
                "-d",
                '{"a": 1}',
                "-t",
                "application/json",
                "-H",
                "X-Trace: abc",
            ],
        )

        assert result.exit_code == 0
        assert seen[0].method == "POST"
        assert seen[0].content == b'{"a": 1}'
        assert seen[0].headers["content-type"] == "application/json"
        assert seen[0].headers["x-trace"] == "abc"

    def test_timeout_option(self, routed):
        _, state = routed

        result = runner.invoke(cli.app, ["call", "https://api.example.com", "--timeout", "none"])

        assert result.exit_code == 0
        assert state["settings"].call_timeout is None

    def test_error_status_exits_nonzero(self, routed):
        _, state = routed
        state["handler"] = json_handler({}, status_code=503)

        result = runner.invoke(cli.app, ["call", "https://api.example.com"])

        assert result.exit_code == 1
        assert "503" in result.stdout

    def test_bad_header_is_rejected(self, routed):
        result = runner.invoke(cli.app, ["call", "https://api.example.com", "-H", "no-colon"])

        assert result.exit_code == 2


class TestEnvCommand:
    def test_lists_variables(self, monkeypatch):
        monkeypatch.setenv("HTTPKIT_SERVE_ADDR", ":9090")

        result = runner.invoke(cli.app, ["env"])

        assert result.exit_code == 0
        assert "HTTPKIT_SERVE_ADDR" in result.stdout
        assert ":9090" in result.stdout
        assert "HTTPKIT_CALL_TIMEOUT" in result.stdout


class TestServeCommand:
    def test_bind_failure_exits_nonzero(self):
        result = runner.invoke(cli.app, ["serve", "--addr", "not-an-address", "--no-health"])

        assert result.exit_code == 1
        assert "Listen failed" in result.stdout
