"""Admin API - SofaScore actions, generic CRUD and scoring reports.

All endpoints require an admin profile; any auth failure answers
403 {"error": "Não autorizado"}.
"""

import logging
import time
from typing import Any, Literal, Optional

import httpx
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.dashboard.admin import (
    RecordNotFound,
    ValidationError,
    create_row,
    delete_row,
    get_row,
    get_table_model,
    list_rows,
    set_deposit_status,
    set_payment_status,
    update_row,
    upsert_rows,
)
from app.database import get_async_session
from app.errors import UNKNOWN_ACTION, ApiError
from app.etl.base import SportsDataProvider
from app.etl.pipeline import SofascoreImporter
from app.etl.sofascore_provider import SofascoreAPIError, get_sports_provider
from app.scoring.ranking import tournament_ranking
from app.scoring.service import compute_round_scores
from app.security import AdminContext, limiter, require_admin
from app.telemetry.metrics import record_admin_action
from app.telemetry.sentry import capture_exception

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api/admin", tags=["admin"])

TOURNAMENT_REQUIRED = "Torneio não informado"
SEASON_REQUIRED = "Temporada não informada"

# Actions that need a tournament / a season in the body
_NEEDS_TOURNAMENT = {
    "setup_tournament", "get_rounds", "get_seasons", "import_matches",
    "import_round_matches", "update_match_scores", "calculate_scores",
    "sync_predictions_season", "import_teams", "get_standings",
}
_NEEDS_SEASON = _NEEDS_TOURNAMENT - {"get_seasons", "calculate_scores"}
ADMIN_ACTIONS = _NEEDS_TOURNAMENT | {"search_tournament"}


class SofascoreActionRequest(BaseModel):
    """Body of POST /api/admin/sofascore (camelCase like the admin page sends)."""

    model_config = ConfigDict(populate_by_name=True)

    action: str = ""
    tournament_id: Optional[int] = Field(default=None, alias="tournamentId")
    season_id: Optional[int] = Field(default=None, alias="seasonId")
    round: Optional[int] = None
    query: Optional[str] = None
    format: Optional[Literal["league", "knockout", "mixed"]] = None


class CrudRequest(BaseModel):
    """Body of POST /api/admin/crud."""

    model_config = ConfigDict(populate_by_name=True)

    action: str = ""
    table: str = ""
    data: Any = None
    filters: Optional[list[dict]] = None
    select_expr: Optional[str] = Field(default=None, alias="select")
    order_by: Optional[dict] = Field(default=None, alias="orderBy")
    limit: Optional[int] = Field(default=None, ge=0)
    offset: Optional[int] = Field(default=None, ge=0)
    id: Any = None
    id_column: Optional[str] = Field(default=None, alias="idColumn")
    on_conflict: Optional[str] = Field(default=None, alias="onConflict")
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None


# =============================================================================
# SofaScore actions
# =============================================================================


async def _dispatch_action(importer: SofascoreImporter, body: SofascoreActionRequest) -> dict:
    action = body.action
    if action in _NEEDS_TOURNAMENT and not body.tournament_id:
        raise ApiError(400, TOURNAMENT_REQUIRED)
    if action in _NEEDS_SEASON and not body.season_id:
        raise ApiError(400, SEASON_REQUIRED)

    tid, sid = body.tournament_id, body.season_id

    if action == "search_tournament":
        return await importer.search_tournament(body.query or "")
    if action == "setup_tournament":
        return await importer.setup_tournament(tid, sid, body.format)
    if action == "get_rounds":
        return await importer.get_rounds(tid, sid)
    if action == "get_seasons":
        return await importer.get_seasons(tid)
    if action == "import_matches":
        return await importer.import_matches(tid, sid)
    if action == "import_round_matches":
        return await importer.import_round_matches(tid, sid, body.round)
    if action == "update_match_scores":
        return await importer.update_match_scores(tid, sid)
    if action == "calculate_scores":
        return await importer.calculate_scores(tid, sid, body.round)
    if action == "sync_predictions_season":
        return await importer.sync_predictions_season(tid, sid)
    if action == "import_teams":
        return await importer.import_teams(tid, sid)
    if action == "get_standings":
        return await importer.get_standings(tid, sid)

    raise ApiError(400, UNKNOWN_ACTION)


@router.post("/sofascore")
@limiter.limit(settings.RATE_LIMIT_PER_MINUTE)
async def admin_sofascore(
    request: Request,
    body: SofascoreActionRequest,
    admin: AdminContext = Depends(require_admin),
    session: AsyncSession = Depends(get_async_session),
    provider: SportsDataProvider = Depends(get_sports_provider),
):
    """Run one SofaScore import/maintenance action."""
    if not settings.RAPIDAPI_KEY:
        raise ApiError(500, "RAPIDAPI_KEY não configurada")

    importer = SofascoreImporter(provider, session)
    start = time.time()
    status = "error"

    try:
        result = await _dispatch_action(importer, body)
        status = "ok"
        return result
    except (SofascoreAPIError, httpx.HTTPError, SQLAlchemyError) as e:
        await session.rollback()
        logger.error(f"[ADMIN] Action {body.action} failed: {e}")
        capture_exception(e, action=body.action)
        raise ApiError(500, str(e) or type(e).__name__)
    finally:
        duration_ms = (time.time() - start) * 1000
        action_label = body.action if body.action in ADMIN_ACTIONS else "unknown"
        record_admin_action(action_label, status, duration_ms)
        logger.info(
            f"[ADMIN] {admin.firebase_id} ran {body.action} "
            f"(tournament={body.tournament_id}, season={body.season_id}) "
            f"-> {status} in {duration_ms:.0f}ms"
        )


# =============================================================================
# Generic CRUD
# =============================================================================


@router.post("/crud")
async def admin_crud(
    body: CrudRequest,
    admin: AdminContext = Depends(require_admin),
    session: AsyncSession = Depends(get_async_session),
):
    """Allow-listed table CRUD plus payment/deposit review."""
    try:
        get_table_model(body.table)

        if body.action == "list":
            return await list_rows(
                session, body.table, body.filters, body.select_expr,
                body.order_by, body.limit, body.offset,
            )
        if body.action == "get":
            return await get_row(session, body.table, body.id, body.id_column, body.select_expr)
        if body.action == "create":
            return await create_row(session, body.table, body.data)
        if body.action == "update":
            return await update_row(session, body.table, body.id, body.data or {}, body.id_column)
        if body.action == "delete":
            return await delete_row(session, body.table, body.id, body.id_column)
        if body.action == "upsert":
            return await upsert_rows(session, body.table, body.data, body.on_conflict)
        if body.action in ("approve_payment", "reject_payment"):
            return await set_payment_status(
                session, body.id, body.action == "approve_payment", admin, body.rejection_reason
            )
        if body.action in ("approve_deposit", "reject_deposit"):
            return await set_deposit_status(
                session, body.id, body.action == "approve_deposit", body.notes
            )
    except ValidationError as e:
        raise ApiError(400, str(e))
    except RecordNotFound as e:
        raise ApiError(404, str(e))
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"[ADMIN] CRUD {body.action} on {body.table} failed: {e}")
        capture_exception(e, action=f"crud_{body.action}")
        raise ApiError(500, str(e))

    raise ApiError(400, UNKNOWN_ACTION)


# =============================================================================
# Scoring reports
# =============================================================================


@router.get("/scoring/rounds")
async def admin_round_scores(
    tournament_id: int = Query(..., alias="tournamentId"),
    round_number: Optional[int] = Query(None, alias="round"),
    season_id: Optional[int] = Query(None, alias="seasonId"),
    admin: AdminContext = Depends(require_admin),
    session: AsyncSession = Depends(get_async_session),
):
    """Points per user and round."""
    rows = await compute_round_scores(session, tournament_id, round_number, season_id)
    return {"rows": rows}


@router.get("/scoring/tournament-points")
async def admin_tournament_points(
    tournament_id: int = Query(..., alias="tournamentId"),
    admin: AdminContext = Depends(require_admin),
    session: AsyncSession = Depends(get_async_session),
):
    """Per-tournament totals as rebuilt by calculate_scores."""
    return {"ranking": await tournament_ranking(session, tournament_id)}
