"""
Sofascore Provider (RapidAPI).

Thin async client for the SofaScore endpoints used by the admin import
actions and the public standings tile.

Usage:
    provider = SofascoreProvider(api_key=settings.RAPIDAPI_KEY)
    events = await provider.fetch_all_events(325, 87678)
    await provider.close()

Endpoints (https://{RAPIDAPI_HOST}):
- /search/all?query=
- /tournaments/get-seasons?tournamentId=
- /tournaments/get-rounds?tournamentId=&seasonId=
- /tournaments/get-last-matches?tournamentId=&seasonId=&pageIndex=
- /tournaments/get-next-matches?tournamentId=&seasonId=&pageIndex=
- /tournaments/get-standings?tournamentId=&seasonId=&type=total

Errors are not retried: a non-2xx answer raises SofascoreAPIError and the
admin action fails with the message.
"""

import logging
import time
from typing import AsyncGenerator, Optional

import httpx

from app.config import get_settings
from app.etl.base import EMPTY_PAYLOAD, SportsDataProvider
from app.telemetry.metrics import record_provider_error, record_provider_request

logger = logging.getLogger(__name__)

PROVIDER_NAME = "sofascore"

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "application/json",
}


class SofascoreAPIError(Exception):
    """Non-2xx answer from the SofaScore API."""

    def __init__(self, status_code: int, reason: str):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"SofaScore API error: {status_code} {reason}")


class SofascoreProvider(SportsDataProvider):
    """SofaScore through RapidAPI."""

    def __init__(
        self,
        api_key: str,
        host: str = "sofascore.p.rapidapi.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.host = host
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"https://{self.host}",
                timeout=self.timeout,
                headers={
                    **DEFAULT_HEADERS,
                    "X-RapidAPI-Key": self.api_key,
                    "X-RapidAPI-Host": self.host,
                },
                transport=self._transport,
            )
        return self._client

    async def _fetch_json(self, endpoint: str, params: dict) -> dict:
        """
        GET ``endpoint`` and return the decoded body.

        HTTP 204 maps to EMPTY_PAYLOAD. Network failures propagate as
        httpx errors; non-2xx answers raise SofascoreAPIError.
        """
        client = await self._get_client()
        start = time.time()

        try:
            response = await client.get(f"/{endpoint}", params=params)
        except httpx.TimeoutException:
            record_provider_error(PROVIDER_NAME, "timeout")
            logger.warning(f"[SOFASCORE] Timeout on {endpoint}")
            raise
        except httpx.RequestError as e:
            record_provider_error(PROVIDER_NAME, "request_error")
            logger.warning(f"[SOFASCORE] Request error on {endpoint}: {e}")
            raise

        latency_ms = (time.time() - start) * 1000
        record_provider_request(PROVIDER_NAME, endpoint, response.status_code, latency_ms)

        if response.status_code == 204:
            logger.debug(f"[SOFASCORE] {endpoint} returned no content")
            return {key: list(value) for key, value in EMPTY_PAYLOAD.items()}

        if not response.is_success:
            error_code = "http_5xx" if response.status_code >= 500 else "http_4xx"
            record_provider_error(PROVIDER_NAME, error_code)
            logger.error(f"[SOFASCORE] {endpoint} failed: {response.status_code} {response.reason_phrase}")
            raise SofascoreAPIError(response.status_code, response.reason_phrase)

        return response.json()

    async def search(self, query: str) -> dict:
        return await self._fetch_json("search/all", {"query": query})

    async def get_seasons(self, tournament_id: int) -> dict:
        return await self._fetch_json(
            "tournaments/get-seasons", {"tournamentId": tournament_id}
        )

    async def get_rounds(self, tournament_id: int, season_id: int) -> dict:
        return await self._fetch_json(
            "tournaments/get-rounds",
            {"tournamentId": tournament_id, "seasonId": season_id},
        )

    async def get_last_matches(self, tournament_id: int, season_id: int, page: int) -> dict:
        return await self._fetch_json(
            "tournaments/get-last-matches",
            {"tournamentId": tournament_id, "seasonId": season_id, "pageIndex": page},
        )

    async def get_next_matches(self, tournament_id: int, season_id: int, page: int) -> dict:
        return await self._fetch_json(
            "tournaments/get-next-matches",
            {"tournamentId": tournament_id, "seasonId": season_id, "pageIndex": page},
        )

    async def get_standings(self, tournament_id: int, season_id: int) -> dict:
        return await self._fetch_json(
            "tournaments/get-standings",
            {"tournamentId": tournament_id, "seasonId": season_id, "type": "total"},
        )

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def build_sofascore_provider() -> SofascoreProvider:
    settings = get_settings()
    return SofascoreProvider(
        api_key=settings.RAPIDAPI_KEY,
        host=settings.RAPIDAPI_HOST,
        timeout=settings.SOFASCORE_TIMEOUT_SECONDS,
    )


async def get_sports_provider() -> AsyncGenerator[SportsDataProvider, None]:
    """Dependency yielding a provider whose client is closed after the request."""
    provider = build_sofascore_provider()
    try:
        yield provider
    finally:
        await provider.close()
