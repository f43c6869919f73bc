"""Tests for the SofaScore RapidAPI client against httpx.MockTransport."""

import httpx
import pytest

from app.etl.sofascore_provider import SofascoreAPIError, SofascoreProvider


def _provider(handler):
    return SofascoreProvider(
        api_key="key-123",
        host="sofascore.p.rapidapi.com",
        transport=httpx.MockTransport(handler),
    )


class TestFetchJson:
    """Headers, status handling and endpoint parameters."""

    @pytest.mark.asyncio
    async def test_sends_rapidapi_headers_and_params(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            seen["headers"] = request.headers
            return httpx.Response(200, json={"standings": [{"name": "Série A", "rows": []}]})

        provider = _provider(handler)
        data = await provider.get_standings(325, 87678)
        await provider.close()

        assert data["standings"][0]["name"] == "Série A"
        assert seen["url"].host == "sofascore.p.rapidapi.com"
        assert seen["url"].path == "/tournaments/get-standings"
        assert seen["url"].params["tournamentId"] == "325"
        assert seen["url"].params["seasonId"] == "87678"
        assert seen["url"].params["type"] == "total"
        assert seen["headers"]["X-RapidAPI-Key"] == "key-123"
        assert seen["headers"]["X-RapidAPI-Host"] == "sofascore.p.rapidapi.com"

    @pytest.mark.asyncio
    async def test_204_is_empty_payload(self):
        provider = _provider(lambda request: httpx.Response(204))
        data = await provider.get_last_matches(325, 1, 0)
        await provider.close()

        assert data["events"] == []
        assert data["seasons"] == []
        assert data["standings"] == []
        assert data["rounds"] == []

    @pytest.mark.asyncio
    async def test_204_payloads_are_independent(self):
        provider = _provider(lambda request: httpx.Response(204))
        first = await provider.get_seasons(325)
        first["seasons"].append({"id": 1})
        second = await provider.get_seasons(325)
        await provider.close()

        assert second["seasons"] == []

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        provider = _provider(lambda request: httpx.Response(429))
        with pytest.raises(SofascoreAPIError) as exc_info:
            await provider.search("brasileirao")
        await provider.close()

        assert exc_info.value.status_code == 429
        assert "SofaScore API error: 429" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_network_error_propagates(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = _provider(handler)
        with pytest.raises(httpx.ConnectError):
            await provider.get_rounds(325, 1)
        await provider.close()


class TestFetchAllEvents:
    """Paging over last/next matches."""

    @pytest.mark.asyncio
    async def test_pages_both_directions_and_dedupes(self):
        pages = {
            ("get-last-matches", "0"): {"events": [{"id": 1, "v": "old"}, {"id": 2}], "hasNextPage": True},
            ("get-last-matches", "1"): {"events": [{"id": 3}], "hasNextPage": False},
            ("get-next-matches", "0"): {"events": [{"id": 1, "v": "new"}, {"id": 4}], "hasNextPage": False},
        }
        requested = []

        def handler(request):
            key = (request.url.path.rsplit("/", 1)[-1], request.url.params["pageIndex"])
            requested.append(key)
            return httpx.Response(200, json=pages[key])

        provider = _provider(handler)
        events = await provider.fetch_all_events(325, 87678)
        await provider.close()

        assert sorted(e["id"] for e in events) == [1, 2, 3, 4]
        assert next(e for e in events if e["id"] == 1)["v"] == "new"
        assert requested == [
            ("get-last-matches", "0"),
            ("get-last-matches", "1"),
            ("get-next-matches", "0"),
        ]

    @pytest.mark.asyncio
    async def test_stops_at_max_pages(self):
        calls = []

        def handler(request):
            calls.append(request.url.path)
            return httpx.Response(200, json={"events": [], "hasNextPage": True})

        provider = _provider(handler)
        await provider.fetch_all_events(325, 1, max_pages=3)
        await provider.close()

        assert len(calls) == 6

    @pytest.mark.asyncio
    async def test_no_content_stops_paging(self):
        provider = _provider(lambda request: httpx.Response(204))
        events = await provider.fetch_all_events(325, 1)
        await provider.close()

        assert events == []
