"""Tests for GET /api/sofascore/standings: cache, mock and stale fallbacks."""

import httpx
import pytest

from app.config import get_settings
from app.etl.sofascore_provider import SofascoreAPIError
from app.routes import standings as standings_route
from app.routes.standings import clear_standings_cache

STANDINGS = {
    "standings": [
        {
            "name": "Brasileirão Série A",
            "rows": [
                {"team": {"id": 1963, "name": "Palmeiras"}, "matches": 2, "wins": 2, "scoresFor": 5, "scoresAgainst": 1, "points": 6},
                {"team": {"id": 5981, "name": "Flamengo"}, "matches": 2, "wins": 1, "losses": 1, "scoresFor": 3, "scoresAgainst": 3, "points": 3},
            ],
        }
    ],
    "tournament": {"id": 325, "name": "Brasileirão Betano", "category": {"name": "Brazil"}},
}


@pytest.fixture(autouse=True)
def _fresh_cache():
    clear_standings_cache()
    yield
    clear_standings_cache()


class TestStandingsEndpoint:
    @pytest.mark.asyncio
    async def test_miss_then_hit(self, client, fake_provider):
        fake_provider.standings = STANDINGS

        first = await client.get("/api/sofascore/standings")
        second = await client.get("/api/sofascore/standings")

        assert first.status_code == 200
        assert first.headers["x-cache"] == "MISS"
        assert second.headers["x-cache"] == "HIT"
        assert "s-maxage=300" in first.headers["cache-control"]
        body = first.json()
        assert [row["team"]["name"] for row in body["standings"]] == ["Palmeiras", "Flamengo"]
        assert body["standings"][0]["goalDifference"] == 4
        assert body["tournament"]["name"] == "Brasileirão Betano"
        assert fake_provider.calls == [("get_standings", 325, 87678)]

    @pytest.mark.asyncio
    async def test_query_params_select_tournament(self, client, fake_provider):
        fake_provider.standings = STANDINGS

        await client.get("/api/sofascore/standings", params={"tournamentId": 390, "seasonId": 72603})

        assert fake_provider.calls == [("get_standings", 390, 72603)]

    @pytest.mark.asyncio
    async def test_without_api_key_serves_mock(self, client, fake_provider, monkeypatch):
        monkeypatch.setattr(get_settings(), "RAPIDAPI_KEY", "")

        response = await client.get("/api/sofascore/standings")

        assert response.status_code == 200
        assert response.headers["x-cache"] == "MOCK"
        assert len(response.json()["standings"]) == 10
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_api_failure_without_cache_serves_mock(self, client, fake_provider):
        fake_provider.error = SofascoreAPIError(503, "Service Unavailable")

        response = await client.get("/api/sofascore/standings")

        assert response.status_code == 200
        assert response.headers["x-cache"] == "MOCK"
        assert response.headers["x-api-failed"] == "true"

    @pytest.mark.asyncio
    async def test_api_failure_serves_stale_cache(self, client, fake_provider, monkeypatch):
        fake_provider.standings = STANDINGS
        await client.get("/api/sofascore/standings")

        # Expire the entry, then break the API
        monkeypatch.setattr(standings_route._standings_cache, "ttl", 0)
        fake_provider.error = httpx.ConnectTimeout("timed out")

        response = await client.get("/api/sofascore/standings")

        assert response.headers["x-cache"] == "STALE"
        assert response.headers["x-api-failed"] == "true"
        assert response.json()["standings"][0]["team"]["name"] == "Palmeiras"

    @pytest.mark.asyncio
    async def test_empty_standings_fall_back_to_mock(self, client, fake_provider):
        fake_provider.standings = {"standings": []}

        response = await client.get("/api/sofascore/standings")

        assert response.headers["x-cache"] == "MOCK"

    @pytest.mark.asyncio
    async def test_group_selection(self, client, fake_provider):
        fake_provider.standings = {
            "standings": [
                {"name": "Group A", "rows": [{"team": {"id": 1, "name": "A1"}}]},
                {"name": "Group B", "rows": [{"team": {"id": 2, "name": "B1"}}]},
            ]
        }

        response = await client.get("/api/sofascore/standings", params={"group": "Group B"})

        assert response.status_code == 200
        assert response.json()["group"] == "Group B"
        assert response.json()["standings"][0]["team"]["id"] == 2

    @pytest.mark.asyncio
    async def test_unknown_group_is_404(self, client, fake_provider):
        fake_provider.standings = {
            "standings": [{"name": "Group A", "rows": [{"team": {"id": 1, "name": "A1"}}]}]
        }

        response = await client.get("/api/sofascore/standings", params={"group": "Group Z"})

        assert response.status_code == 404
        assert response.headers["x-available-groups"] == "Group A"
        assert response.json()["detail"]["available_groups"] == ["Group A"]
