"""Tests for typed application errors."""

from __future__ import annotations

from homelab_httpkit.errors import (
    CODE_IO,
    CODE_REMOTE_CALL,
    CODE_SERIALIZE,
    CODE_SERVER,
    CODE_UNKNOWN,
    AppError,
    BodyIOError,
    CallTimeoutError,
    EnvelopeEncodingError,
    RemoteCallError,
    RequestBuildError,
    SerializationError,
    ServerStartError,
)


class TestAppError:
    def test_default_code_is_unknown(self):
        err = AppError("boom")
        assert err.code == CODE_UNKNOWN
        assert err.message == "boom"
        assert str(err) == "boom"

    def test_explicit_code(self):
        err = AppError("not allowed", code=4003)
        assert err.code == 4003

    def test_str_includes_context(self):
        err = AppError("boom", context={"user": "alice"})
        assert str(err) == "boom (user='alice')"
        assert err.message == "boom"


class TestSubclassCodes:
    def test_remote_call_error(self):
        err = RemoteCallError(
            "Remote call failed: 404 Not Found",
            status_code=404,
            url="https://api.example.com",
            method="GET",
            request_id="fetch",
        )
        assert err.code == CODE_REMOTE_CALL
        assert err.status_code == 404
        assert err.context == {
            "status_code": 404,
            "url": "https://api.example.com",
            "method": "GET",
            "request_id": "fetch",
        }

    def test_remote_call_error_drops_missing_context(self):
        err = RemoteCallError("Remote call failed: refused")
        assert "status_code" not in err.context
        assert "url" not in err.context

    def test_build_and_timeout_errors_are_remote_call_errors(self):
        assert issubclass(RequestBuildError, RemoteCallError)
        assert issubclass(CallTimeoutError, RemoteCallError)
        err = CallTimeoutError("Remote call timed out", timeout_seconds=2.0)
        assert err.code == CODE_REMOTE_CALL
        assert err.context["timeout_seconds"] == 2.0

    def test_body_io_error_truncates_text(self):
        err = BodyIOError("bad body", text="x" * 500)
        assert err.code == CODE_IO
        assert len(err.context["text"]) == 103
        assert err.text == "x" * 500

    def test_serialization_error(self):
        assert SerializationError("nope").code == CODE_SERIALIZE

    def test_server_start_error(self):
        err = ServerStartError("Listen failed", addr=":8080")
        assert err.code == CODE_SERVER
        assert err.context == {"addr": ":8080"}

    def test_envelope_encoding_error_is_not_app_error(self):
        assert not issubclass(EnvelopeEncodingError, AppError)
        assert issubclass(EnvelopeEncodingError, RuntimeError)
