"""Shared fixtures: in-memory database, fake SofaScore provider, auth tokens."""

import os

# Settings and the engine are created at import time
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret-with-enough-bytes-for-hs256"
os.environ["RAPIDAPI_KEY"] = "test-rapidapi-key"
os.environ["SENTRY_DSN"] = ""

from datetime import datetime, timedelta

import httpx
import jwt
import pytest
import pytest_asyncio

from app.database import AsyncSessionLocal, async_engine, drop_db, init_db
from app.etl.base import SportsDataProvider
from app.etl.sofascore_provider import get_sports_provider
from app.main import app
from app.models import Match, UserProfile
from app.security import limiter

limiter.enabled = False

JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]


class FakeProvider(SportsDataProvider):
    """In-memory SportsDataProvider; payloads are set per test."""

    def __init__(self):
        self.search_results: list[dict] = []
        self.seasons: list[dict] = []
        self.rounds: list[dict] = []
        self.current_round = None
        self.last_pages: list[list[dict]] = []
        self.next_pages: list[list[dict]] = []
        self.standings: dict = {"standings": []}
        self.error = None
        self.calls: list[tuple] = []
        self.closed = False

    def _check(self, name, *args):
        self.calls.append((name, *args))
        if self.error is not None:
            raise self.error

    async def search(self, query):
        self._check("search", query)
        return {"results": self.search_results}

    async def get_seasons(self, tournament_id):
        self._check("get_seasons", tournament_id)
        return {"seasons": self.seasons}

    async def get_rounds(self, tournament_id, season_id):
        self._check("get_rounds", tournament_id, season_id)
        return {"rounds": self.rounds, "currentRound": self.current_round}

    @staticmethod
    def _page(pages, page):
        if page >= len(pages):
            return {"events": [], "hasNextPage": False}
        return {"events": pages[page], "hasNextPage": page < len(pages) - 1}

    async def get_last_matches(self, tournament_id, season_id, page):
        self._check("get_last_matches", tournament_id, season_id, page)
        return self._page(self.last_pages, page)

    async def get_next_matches(self, tournament_id, season_id, page):
        self._check("get_next_matches", tournament_id, season_id, page)
        return self._page(self.next_pages, page)

    async def get_standings(self, tournament_id, season_id):
        self._check("get_standings", tournament_id, season_id)
        return self.standings

    async def close(self):
        self.closed = True


def make_event(
    event_id,
    round_number=1,
    status="notstarted",
    home=(1963, "Palmeiras"),
    away=(1961, "Fluminense"),
    score=None,
    start=None,
    round_name=None,
    group_name=None,
):
    """SofaScore-shaped event."""
    start = start or datetime.utcnow() + timedelta(days=2)
    event = {
        "id": event_id,
        "slug": f"{home[1].lower()}-{away[1].lower()}",
        "startTimestamp": int((start - datetime(1970, 1, 1)).total_seconds()),
        "status": {"type": status, "code": 100 if status == "finished" else 0, "description": "Ended" if status == "finished" else "Not started"},
        "homeTeam": {"id": home[0], "name": home[1], "shortName": home[1][:3].upper()},
        "awayTeam": {"id": away[0], "name": away[1], "shortName": away[1][:3].upper()},
        "roundInfo": {"round": round_number},
        "tournament": {
            "name": "Brasileirão Série A",
            "uniqueTournament": {"name": "Brasileirão Série A", "slug": "brasileirao-serie-a"},
        },
    }
    if round_name:
        event["roundInfo"]["name"] = round_name
    if group_name:
        event["tournament"]["groupName"] = group_name
    if score is not None:
        event["homeScore"] = {"current": score[0], "display": score[0]}
        event["awayScore"] = {"current": score[1], "display": score[1]}
    return event


def make_token(user_id, secret=JWT_SECRET, audience="authenticated", expires_in=3600):
    payload = {
        "sub": user_id,
        "aud": audience,
        "exp": datetime.utcnow() + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user_id):
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def build_match(match_id, **overrides):
    values = {
        "id": match_id,
        "round_number": 1,
        "home_team_id": 1963,
        "home_team_name": "Palmeiras",
        "away_team_id": 1961,
        "away_team_name": "Fluminense",
        "slug": f"match-{match_id}",
        "start_time": datetime.utcnow() + timedelta(days=2),
        "start_timestamp": 0,
        "status": "notstarted",
        "tournament_id": 325,
        "tournament_name": "Brasileirão Série A",
        "season_id": 87678,
    }
    values.update(overrides)
    return Match(**values)


@pytest_asyncio.fixture
async def db():
    await init_db()
    yield
    await drop_db()
    # StaticPool keeps one connection; a fresh one per test avoids event loop reuse
    await async_engine.dispose()


@pytest_asyncio.fixture
async def session(db):
    async with AsyncSessionLocal() as session:
        yield session


async def seed(*objects):
    """Insert rows in their own committed session."""
    async with AsyncSessionLocal() as session:
        session.add_all(objects)
        await session.commit()


@pytest_asyncio.fixture
async def users(db):
    admin = UserProfile(id="admin-uuid", firebase_id="001", name="Admin", role="admin")
    alice = UserProfile(id="alice-uuid", firebase_id="002", name="Alice")
    bob = UserProfile(id="bob-uuid", firebase_id="003", name="Bob")
    await seed(admin, alice, bob)
    return {"admin": admin.id, "alice": alice.id, "bob": bob.id}


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest_asyncio.fixture
async def client(db, fake_provider):
    app.dependency_overrides[get_sports_provider] = lambda: fake_provider
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
