"""Tests for background listeners."""

from __future__ import annotations

import threading

import httpx
import pytest

from homelab_httpkit.errors import ServerStartError
from homelab_httpkit.server import listener
from homelab_httpkit.server.apps import echo_app, health_app
from homelab_httpkit.server.listener import ServerHandle, health, parse_addr, serve


class TestParseAddr:
    def test_port_only_with_colon(self):
        assert parse_addr(":8080") == ("0.0.0.0", 8080)

    def test_bare_port(self):
        assert parse_addr("8080") == ("0.0.0.0", 8080)

    def test_host_and_port(self):
        assert parse_addr("127.0.0.1:9000") == ("127.0.0.1", 9000)

    def test_ipv6(self):
        assert parse_addr("[::1]:9000") == ("::1", 9000)

    def test_zero_port(self):
        assert parse_addr("localhost:0") == ("localhost", 0)

    @pytest.mark.parametrize("addr", ["localhost", "host:http", ":", "host:70000"])
    def test_invalid(self, addr):
        with pytest.raises(ValueError):
            parse_addr(addr)


class TestServe:
    def test_serves_app_after_ready(self):
        handle = serve("127.0.0.1:0", health_app)
        try:
            handle.wait_ready(timeout=5)
            assert handle.running is True
            assert handle.port

            response = httpx.get(f"http://127.0.0.1:{handle.port}/", timeout=5)

            assert response.status_code == 200
            assert response.json() == {"code": 0, "msg": "ok", "data": {"status": "up"}}
        finally:
            handle.shutdown(timeout=5)

        assert handle.running is False
        assert handle.error is None

    def test_returns_before_socket_is_bound(self, monkeypatch):
        gate = threading.Event()

        def blocked_make_server(*args, **kwargs):
            gate.wait(5)
            raise OSError("bind never attempted")

        monkeypatch.setattr(listener, "make_server", blocked_make_server)

        handle = serve("127.0.0.1:0", health_app)

        assert isinstance(handle, ServerHandle)
        assert handle.running is False
        assert handle.port is None
        with pytest.raises(ServerStartError, match="did not start"):
            handle.wait_ready(timeout=0.05)

        gate.set()
        with pytest.raises(ServerStartError, match="bind never attempted"):
            handle.wait_ready(timeout=5)

    def test_port_conflict_is_reported(self):
        first = serve("127.0.0.1:0", health_app).wait_ready(timeout=5)
        try:
            second = serve(f"127.0.0.1:{first.port}", health_app)

            with pytest.raises(ServerStartError):
                second.wait_ready(timeout=5)

            assert second.error is not None
            assert second.running is False
            assert first.running is True
        finally:
            first.shutdown(timeout=5)

    def test_invalid_address_is_reported(self):
        handle = serve("not-an-address", health_app)

        with pytest.raises(ServerStartError, match="Invalid listen address"):
            handle.wait_ready(timeout=5)

    def test_context_manager_shuts_down(self):
        with serve("127.0.0.1:0", health_app).wait_ready(timeout=5) as handle:
            assert handle.running is True

        assert handle.wait_stopped(timeout=5) is True
        assert handle.running is False


class TestHealth:
    def test_runs_alongside_main_listener(self):
        main = serve("127.0.0.1:0", echo_app).wait_ready(timeout=5)
        checker = health("127.0.0.1:0", health_app).wait_ready(timeout=5)
        try:
            assert main.port != checker.port
            assert checker.name == "health"

            echoed = httpx.post(
                f"http://127.0.0.1:{main.port}/orders",
                content=b'{"qty": 2}',
                headers={"content-type": "application/json"},
                timeout=5,
            ).json()
            status = httpx.get(f"http://127.0.0.1:{checker.port}/", timeout=5).json()

            assert echoed["code"] == 0
            assert echoed["data"]["body"] == {"qty": 2}
            assert status["data"] == {"status": "up"}
        finally:
            checker.shutdown(timeout=5)
            main.shutdown(timeout=5)
