"""Tests for the built-in envelope apps."""

from __future__ import annotations

from werkzeug.test import Client

from homelab_httpkit.server.apps import echo_app, health_app


class TestEchoApp:
    def test_echoes_json_body(self):
        client = Client(echo_app)

        response = client.post("/orders", data=b'{"sku": "A"}', content_type="application/json")

        assert response.status_code == 200
        assert response.json == {
            "code": 0,
            "msg": "ok",
            "data": {"method": "POST", "path": "/orders", "body": {"sku": "A"}},
        }

    def test_get_has_no_body(self):
        response = Client(echo_app).get("/ping")

        assert response.json["code"] == 0
        assert response.json["data"]["body"] is None

    def test_invalid_body_is_reported_in_envelope(self):
        response = Client(echo_app).post("/", data=b"{oops", content_type="application/json")

        assert response.status_code == 200
        assert response.json["code"] == 1002
        assert "Failed to unmarshal json body" in response.json["msg"]
        assert response.json["data"]["body"] is None


class TestHealthApp:
    def test_reports_up(self):
        response = Client(health_app).get("/healthz")

        assert response.status_code == 200
        assert response.json == {"code": 0, "msg": "ok", "data": {"status": "up"}}
