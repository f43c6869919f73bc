"""
Admin SofaScore actions.

Each action is one fixed fetch-then-upsert sequence. Failures are not
retried or compensated: the first provider or database error ends the
action and is reported to the admin page.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.db_utils import bulk_upsert, upsert
from app.errors import ApiError
from app.etl.base import SportsDataProvider
from app.etl.mapping import (
    build_season_records,
    build_tournament_record,
    determine_tournament_format,
    event_scores,
    extract_teams_from_standings,
    map_event_to_match,
)
from app.models import Match, Team, Tournament, TournamentSeason
from app.scoring import service as scoring

logger = logging.getLogger(__name__)

TOURNAMENT_NOT_FOUND = "Torneio não encontrado no SofaScore"
ROUND_REQUIRED = "Rodada não informada"
NO_TEAMS_FOUND = "Nenhum time encontrado"


def _unique(values) -> list:
    """Distinct truthy values, first-seen order."""
    seen = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


class SofascoreImporter:
    """Runs admin actions against a SportsDataProvider and the database."""

    def __init__(self, provider: SportsDataProvider, session: AsyncSession):
        self.provider = provider
        self.session = session
        self.settings = get_settings()

    async def _fetch_all_events(self, tournament_id: int, season_id: int) -> list[dict]:
        events = await self.provider.fetch_all_events(
            tournament_id, season_id, max_pages=self.settings.SOFASCORE_MAX_PAGES
        )
        logger.info(f"[SOFASCORE] {len(events)} events for tournament {tournament_id} season {season_id}")
        return events

    async def search_tournament(self, query: str) -> dict:
        data = await self.provider.search(query or "")
        tournaments = [
            r.get("entity")
            for r in data.get("results") or []
            if r.get("type") == "uniqueTournament"
        ]
        return {"tournaments": tournaments}

    async def setup_tournament(
        self,
        tournament_id: int,
        season_id: int,
        tournament_format: Optional[str] = None,
    ) -> dict:
        """
        Register a tournament and its recent seasons.

        The format is detected from the season's rounds unless the admin
        passes one explicitly.
        """
        seasons_data = await self.provider.get_seasons(tournament_id)
        seasons = seasons_data.get("seasons") or []
        if not seasons:
            raise ApiError(404, TOURNAMENT_NOT_FOUND)

        target = next((s for s in seasons if s["id"] == season_id), None)
        if target is None:
            available = ", ".join(f"{s['name']} ({s['id']})" for s in seasons[:5])
            raise ApiError(
                404,
                f"Season ID {season_id} não encontrado. Seasons disponíveis: {available}",
            )

        rounds_data = await self.provider.get_rounds(tournament_id, season_id)
        rounds = rounds_data.get("rounds") or []
        current_round = rounds_data.get("currentRound") or None

        detected_format = determine_tournament_format(rounds)
        final_format = tournament_format or detected_format

        record = build_tournament_record(
            tournament_id, season_id, target["name"], final_format, current_round
        )
        await upsert(self.session, Tournament, record, conflict_columns=["id"])

        season_records = build_season_records(
            seasons, tournament_id, season_id, limit=self.settings.SEASONS_KEPT_ON_SETUP
        )
        await bulk_upsert(self.session, TournamentSeason, season_records, conflict_columns=["id"])
        await self.session.commit()

        tournament = await self.session.get(Tournament, tournament_id, populate_existing=True)
        logger.info(
            f"[SOFASCORE] Tournament {tournament_id} set up as {final_format} "
            f"(detected {detected_format}), {len(season_records)} seasons"
        )

        return {
            "tournament": tournament.model_dump() if tournament else record,
            "seasons": season_records,
            "rounds": rounds,
            "currentRound": current_round,
            "detectedFormat": detected_format,
        }

    async def get_rounds(self, tournament_id: int, season_id: int) -> dict:
        data = await self.provider.get_rounds(tournament_id, season_id)
        return {
            "rounds": data.get("rounds") or [],
            "currentRound": data.get("currentRound") or None,
        }

    async def get_seasons(self, tournament_id: int) -> dict:
        data = await self.provider.get_seasons(tournament_id)
        return {"seasons": data.get("seasons") or []}

    async def import_matches(self, tournament_id: int, season_id: int) -> dict:
        """
        Upsert every event of the season, in batches.

        A failing batch stops the import; rows of earlier batches stay
        committed and their count is reported as ``partialCount``.
        """
        events = await self._fetch_all_events(tournament_id, season_id)
        if not events:
            return {"matches": [], "count": 0}

        rows = [map_event_to_match(e, tournament_id, season_id) for e in events]
        batch_size = self.settings.MATCH_UPSERT_BATCH_SIZE
        inserted = 0

        for start in range(0, len(rows), batch_size):
            batch = rows[start:start + batch_size]
            try:
                await bulk_upsert(self.session, Match, batch, conflict_columns=["id"])
                await self.session.commit()
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error(f"[SOFASCORE] Match batch at {start} failed after {inserted} rows: {e}")
                raise ApiError(500, str(e), partialCount=inserted)
            inserted += len(batch)

        return {
            "count": len(rows),
            "pastCount": sum(1 for r in rows if r["status"] == "finished"),
            "futureCount": sum(1 for r in rows if r["status"] == "notstarted"),
            "groups": _unique(r["group_name"] for r in rows),
            "roundNames": _unique(r["round_name"] for r in rows),
            "roundNumbers": sorted({r["round_number"] for r in rows}),
        }

    async def import_round_matches(
        self,
        tournament_id: int,
        season_id: int,
        round_number: Optional[int],
    ) -> dict:
        if not round_number:
            raise ApiError(400, ROUND_REQUIRED)

        events = await self._fetch_all_events(tournament_id, season_id)
        round_events = [
            e for e in events
            if (e.get("roundInfo") or {}).get("round") == round_number
        ]
        if not round_events:
            raise ApiError(404, f"Nenhuma partida encontrada para rodada {round_number}", count=0)

        rows = [map_event_to_match(e, tournament_id, season_id) for e in round_events]
        await bulk_upsert(self.session, Match, rows, conflict_columns=["id"])
        await self.session.commit()

        return {
            "count": len(rows),
            "round": round_number,
            "statuses": _unique(r["status"] for r in rows),
        }

    async def update_match_scores(self, tournament_id: int, season_id: int) -> dict:
        """Copy final scores onto matches already imported; unknown events are skipped."""
        events = await self._fetch_all_events(tournament_id, season_id)
        finished = [e for e in events if (e.get("status") or {}).get("type") == "finished"]

        updated = 0
        for event in finished:
            match = await self.session.get(Match, event["id"])
            if match is None:
                continue

            status = event.get("status") or {}
            match.home_score, match.away_score = event_scores(event)
            match.status = "finished"
            match.status_code = status.get("code") or 0
            match.status_description = status.get("description") or "Ended"
            match.last_updated = match.updated_at = datetime.utcnow()
            updated += 1

        await self.session.commit()
        logger.info(f"[SOFASCORE] Updated scores of {updated}/{len(finished)} finished matches")
        return {"updated": updated, "total": len(finished)}

    async def calculate_scores(
        self,
        tournament_id: int,
        season_id: Optional[int] = None,
        round_number: Optional[int] = None,
    ) -> dict:
        return await scoring.calculate_scores(self.session, tournament_id, season_id, round_number)

    async def sync_predictions_season(self, tournament_id: int, season_id: int) -> dict:
        updated = await scoring.sync_predictions_season(self.session, tournament_id, season_id)
        return {"updated": updated}

    async def import_teams(self, tournament_id: int, season_id: int) -> dict:
        data = await self.provider.get_standings(tournament_id, season_id)
        standings = data.get("standings") or []
        if not standings:
            raise ApiError(404, NO_TEAMS_FOUND)

        teams = extract_teams_from_standings(standings, tournament_id)
        if not teams:
            raise ApiError(404, NO_TEAMS_FOUND)

        await bulk_upsert(self.session, Team, teams, conflict_columns=["id"])
        await self.session.commit()
        logger.info(f"[SOFASCORE] Imported {len(teams)} teams for tournament {tournament_id}")
        return {"teams": teams, "count": len(teams)}

    async def get_standings(self, tournament_id: int, season_id: int) -> dict:
        data = await self.provider.get_standings(tournament_id, season_id)
        return {
            "standings": data.get("standings") or [],
            "tournament": data.get("tournament") or None,
        }
