"""Tests for jose_import.webhook -- the FastAPI webhook endpoint."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from jose_import.models import AppConfig
from jose_import.webhook import create_app

SECRET = "s3cr3t"
ENV = {"WEBHOOK_SECRET": SECRET, "WEBHOOK_USER_ID": "user-1"}


@pytest.fixture
def client(storage, fake_adapter) -> TestClient:
    """Test client over an app wired to temporary storage and a fake AI."""
    app = create_app(config=AppConfig(), storage=storage, adapter=fake_adapter(configured=False))
    return TestClient(app)


def test_health_endpoint(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


class TestWebhookAuth:
    def test_wrong_secret(self, client: TestClient):
        with patch.dict("os.environ", ENV):
            response = client.post("/webhook/transaction", json={"text": "x", "secret": "nope"})
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}

    def test_missing_secret(self, client: TestClient):
        with patch.dict("os.environ", ENV):
            response = client.post("/webhook/transaction", json={"text": "x"})
        assert response.status_code == 401

    def test_unconfigured_secret_rejects_everything(self, client: TestClient):
        with patch.dict("os.environ", {}, clear=True):
            response = client.post("/webhook/transaction", json={"text": "x", "secret": ""})
        assert response.status_code == 401


class TestWebhookImport:
    def test_success(self, client: TestClient, storage):
        with patch.dict("os.environ", ENV):
            response = client.post(
                "/webhook/transaction",
                json={"text": "hoje uber 15,50", "secret": SECRET},
            )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["transactions"][0]["amount"] == -15.5
        assert body["stats"] == {"localParsed": 1, "aiParsed": 0, "total": 1}
        assert len(storage.query_user_transactions("user-1")) == 1

    def test_missing_text(self, client: TestClient):
        with patch.dict("os.environ", ENV):
            response = client.post("/webhook/transaction", json={"secret": SECRET})
        assert response.status_code == 400
        assert response.json()["error"] == "Text required"

    def test_pipeline_failure(self, client: TestClient):
        with patch.dict("os.environ", ENV):
            response = client.post(
                "/webhook/transaction",
                json={"text": "xyz qualquer coisa", "secret": SECRET},
            )
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Configuração de IA não encontrada.",
        }

    def test_user_not_configured(self, client: TestClient):
        with patch.dict("os.environ", {"WEBHOOK_SECRET": SECRET}, clear=True):
            response = client.post(
                "/webhook/transaction",
                json={"text": "hoje uber 15,50", "secret": SECRET},
            )
        assert response.status_code == 500
        assert response.json()["error"] == "Webhook user not configured"

    def test_unexpected_error(self, client: TestClient):
        with (
            patch.dict("os.environ", ENV),
            patch(
                "jose_import.webhook.process_statement_text",
                side_effect=RuntimeError("boom"),
            ),
        ):
            response = client.post(
                "/webhook/transaction",
                json={"text": "hoje uber 15,50", "secret": SECRET},
            )
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "boom"}
