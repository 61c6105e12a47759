import pytest
from fastapi import status
from fastapi.testclient import TestClient

from cpsconnect.main import app


def test_metrics_fail_closed_without_token(monkeypatch):
	from cpsconnect import settings
	monkeypatch.setattr(settings.settings, "obs_admin_token", None)
	monkeypatch.setattr(settings.settings, "obs_metrics_public", False)

	client = TestClient(app)
	response = client.get("/metrics", headers={"X-Admin-Token": "whatever"})

	# No token configured server side: metrics stay private.
	assert response.status_code == status.HTTP_403_FORBIDDEN
	assert response.json()["detail"] == "admin_token_not_configured"
	assert response.json()["request_id"]


def test_metrics_work_with_correct_token(monkeypatch):
	from cpsconnect import settings
	monkeypatch.setattr(settings.settings, "obs_admin_token", "secret-token")
	monkeypatch.setattr(settings.settings, "obs_metrics_public", False)

	client = TestClient(app)
	response = client.get("/metrics", headers={"X-Admin-Token": "secret-token"})
	assert response.status_code == 200
	assert "cpsconnect_alumni_transitions_total" in response.text

	bearer = client.get("/metrics", headers={"Authorization": "Bearer secret-token"})
	assert bearer.status_code == 200


def test_metrics_reject_wrong_token(monkeypatch):
	from cpsconnect import settings
	monkeypatch.setattr(settings.settings, "obs_admin_token", "secret-token")
	monkeypatch.setattr(settings.settings, "obs_metrics_public", False)

	client = TestClient(app)
	response = client.get("/metrics", headers={"X-Admin-Token": "wrong-token"})
	assert response.status_code == status.HTTP_403_FORBIDDEN
	assert response.json()["detail"] == "forbidden"


@pytest.mark.asyncio
async def test_liveness_and_request_id_header(api_client):
	response = await api_client.get("/health/live", headers={"X-Request-Id": "req-123"})
	assert response.status_code == 200
	assert response.json() == {"status": "ok"}
	assert response.headers["X-Request-Id"] == "req-123"
