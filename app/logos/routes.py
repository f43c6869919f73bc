"""Team crest endpoint."""

from fastapi import APIRouter
from fastapi.responses import Response

from app.logos.service import load_team_logo

router = APIRouter(prefix="/api/team-logo", tags=["logos"])


@router.get("/{team_id}")
async def get_team_logo(team_id: str):
    """SVG crest by SofaScore team id (placeholder badge when unknown)."""
    logo = load_team_logo(team_id)
    return Response(content=logo.content, media_type=logo.media_type, headers=logo.headers)
