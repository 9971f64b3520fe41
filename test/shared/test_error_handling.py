import os
import unittest
from unittest.mock import patch

from fastapi import HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel

from src.shared.middleware import SecuritySettings, create_app


class _Item(BaseModel):
    name: str


class TestErrorHandling(unittest.TestCase):
    def setUp(self):
        self.app = create_app(
            security_settings=SecuritySettings(
                rate_limit_requests=0,
                rate_limit_window=60,
                max_body_size=1024,
                enable_https=False,
            )
        )

        @self.app.get("/boom")
        def boom():
            raise HTTPException(status_code=400, detail="Invalid payload")

        @self.app.get("/crash")
        def crash():
            raise RuntimeError("/srv/secret/path exploded")

        @self.app.post("/items")
        def create_item(item: _Item):
            return {"status": "ok", "name": item.name}

        self.client = TestClient(self.app, raise_server_exceptions=False)

    def test_http_exception_envelope(self):
        resp = self.client.get("/boom")
        self.assertEqual(resp.status_code, 400)
        data = resp.json()
        self.assertEqual(data["detail"], "Invalid payload")
        self.assertEqual(data["error"]["code"], "invalid_request")
        self.assertIn("request_id", data)
        self.assertEqual(resp.headers.get("X-Request-ID"), data["request_id"])

    def test_request_id_passthrough(self):
        resp = self.client.get("/boom", headers={"X-Request-ID": "req-123"})
        data = resp.json()
        self.assertEqual(data["request_id"], "req-123")
        self.assertEqual(resp.headers.get("X-Request-ID"), "req-123")

    def test_validation_error_hides_details_by_default(self):
        resp = self.client.post("/items", json={"name": 123})
        self.assertEqual(resp.status_code, 422)
        data = resp.json()
        self.assertEqual(data["error"]["code"], "validation_error")
        self.assertEqual(data["detail"], "Validation error")
        self.assertNotIn("details", data["error"])

    def test_validation_error_details_when_enabled(self):
        with patch.dict(os.environ, {"ERROR_INCLUDE_DETAILS": "true"}):
            resp = self.client.post("/items", json={"name": 123})
        self.assertTrue(resp.json()["error"]["details"])

    def test_unhandled_exception_is_generic(self):
        resp = self.client.get("/crash")
        self.assertEqual(resp.status_code, 500)
        self.assertNotIn("/srv/secret/path", resp.text)
        self.assertEqual(resp.json()["error"]["code"], "internal_error")

    def test_declared_body_too_large(self):
        resp = self.client.post(
            "/items", content=b"x" * 2048, headers={"content-type": "application/json"}
        )
        self.assertEqual(resp.status_code, 413)


class TestRateLimit(unittest.TestCase):
    def test_rate_limit_when_enabled(self):
        app = create_app(
            security_settings=SecuritySettings(
                rate_limit_requests=2,
                rate_limit_window=60,
                max_body_size=0,
                enable_https=True,
            )
        )

        @app.get("/ping")
        def ping():
            return {"ok": True}

        client = TestClient(app)
        self.assertEqual(client.get("/ping").status_code, 200)
        resp = client.get("/ping")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("Strict-Transport-Security", resp.headers)
        self.assertEqual(client.get("/ping").status_code, 429)


if __name__ == "__main__":
    unittest.main()
