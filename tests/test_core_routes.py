"""Tests for /health and /metrics."""

import pytest

from app.config import get_settings


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["database"]["type"] == "sqlite"
        assert body["sofascore_configured"] is True
        assert body["sentry_enabled"] is False


class TestMetrics:
    @pytest.mark.asyncio
    async def test_open_without_token_configured(self, client, monkeypatch):
        monkeypatch.setattr(get_settings(), "METRICS_BEARER_TOKEN", "")

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "provider_requests_total" in response.text

    @pytest.mark.asyncio
    async def test_requires_bearer_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(get_settings(), "METRICS_BEARER_TOKEN", "scrape-me")

        missing = await client.get("/metrics")
        wrong = await client.get("/metrics", headers={"Authorization": "Bearer nope"})
        ok = await client.get("/metrics", headers={"Authorization": "Bearer scrape-me"})

        assert missing.status_code == 401
        assert wrong.status_code == 401
        assert ok.status_code == 200
