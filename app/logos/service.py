"""Team crest lookup.

Crests are SVG files under ``LOGO_DIR``, named after the club
("palmeiras.svg"). SofaScore ids and display names are mapped to those
file names; anything unmapped falls back to a placeholder badge.
"""

import logging
import re
import unicodedata
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from app.config import get_settings
from app.utils.cache import KeyedCache

logger = logging.getLogger(__name__)
settings = get_settings()

SVG_MEDIA_TYPE = "image/svg+xml"
LOGO_URL_PREFIX = "/images/logo"
WAITING_LOGO = f"{LOGO_URL_PREFIX}/waiting.svg"

# SofaScore team id -> file name
TEAM_ID_TO_FILE = {
    # Brasileirão Série A
    "1954": "cruzeiro",
    "1955": "bahia",
    "1977": "atletico-mg",
    "1957": "corinthians",
    "1958": "botafogo",
    "1959": "sport",
    "5981": "flamengo",
    "1961": "fluminense",
    "1962": "vitoria",
    "1963": "palmeiras",
    "2001": "ceara",
    "1968": "santos",
    "1974": "vasco",
    "2020": "fortaleza",
    "21982": "mirassol",
    "5926": "gremio",
    "1966": "internacional",
    "1980": "juventude",
    "1999": "bragantino",
    "1981": "saopaulo",
    "21845": "mirassol",
    # International
    "1644": "psg",
}

# Display name -> file name
TEAM_NAME_TO_FILE = {
    "Atlético Mineiro": "atletico-mg",
    "Atlético-MG": "atletico-mg",
    "Atletico Mineiro": "atletico-mg",
    "Athletico Paranaense": "athletico",
    "Athletico-PR": "athletico",
    "Bahia": "bahia",
    "Botafogo": "botafogo",
    "Ceará": "ceara",
    "Ceara": "ceara",
    "Chapecoense": "chapecoense",
    "Corinthians": "corinthians",
    "Coritiba": "coritiba",
    "Cruzeiro": "cruzeiro",
    "Flamengo": "flamengo",
    "Fluminense": "fluminense",
    "Fortaleza": "fortaleza",
    "Grêmio": "gremio",
    "Gremio": "gremio",
    "Internacional": "internacional",
    "Juventude": "juventude",
    "Mirassol": "mirassol",
    "Palmeiras": "palmeiras",
    "Red Bull Bragantino": "bragantino",
    "Bragantino": "bragantino",
    "Santos": "santos",
    "São Paulo": "saopaulo",
    "Sao Paulo": "saopaulo",
    "Sport Recife": "sport",
    "Sport": "sport",
    "Vasco da Gama": "vasco",
    "Vasco": "vasco",
    "Vitória": "vitoria",
    "Vitoria": "vitoria",
}

_logo_cache = KeyedCache(ttl=settings.LOGO_CACHE_SECONDS)


@dataclass
class LogoResponse:
    content: str
    headers: dict = field(default_factory=dict)
    media_type: str = SVG_MEDIA_TYPE


def placeholder_svg(team_id: str) -> str:
    """Blue badge with the first four characters of the id."""
    return (
        '<svg width="50" height="50" xmlns="http://www.w3.org/2000/svg">'
        '<circle cx="25" cy="25" r="20" fill="#3b82f6"/>'
        '<text x="25" y="25" text-anchor="middle" dy=".3em" fill="white" font-size="10">'
        f"{team_id[:4]}</text></svg>"
    )


def error_svg() -> str:
    return (
        '<svg width="50" height="50" xmlns="http://www.w3.org/2000/svg">'
        '<circle cx="25" cy="25" r="20" fill="#6b7280"/>'
        '<text x="25" y="25" text-anchor="middle" dy=".3em" fill="white" font-size="8">ERR</text>'
        "</svg>"
    )


def file_name_variations(file_name: str) -> list[str]:
    return [
        file_name,
        file_name.lower(),
        re.sub(r"\s+", "-", file_name),
        re.sub(r"\s+", "_", file_name),
    ]


def find_logo_file(file_name: str, logo_dir: Optional[Path] = None) -> Optional[Path]:
    """First existing ``<variation>.svg`` under the logo directory."""
    logo_dir = logo_dir or Path(settings.LOGO_DIR)
    for variation in file_name_variations(file_name):
        candidate = logo_dir / f"{variation}.svg"
        if candidate.is_file():
            return candidate
    return None


def load_team_logo(team_id: str, logo_dir: Optional[Path] = None) -> LogoResponse:
    """
    Crest for a SofaScore team id.

    Found files are cached for LOGO_CACHE_SECONDS; placeholders are never
    cached so a newly added file shows up at once.
    """
    hit, cached = _logo_cache.get(team_id)
    if hit:
        return LogoResponse(
            content=cached,
            headers={"Cache-Control": "public, max-age=86400", "X-Cache": "HIT"},
        )

    file_name = TEAM_ID_TO_FILE.get(team_id, team_id)

    try:
        path = find_logo_file(file_name, logo_dir)
        if path is None:
            return LogoResponse(
                content=placeholder_svg(team_id),
                headers={"Cache-Control": "public, max-age=300", "X-Placeholder": "true"},
            )
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"[LOGOS] Failed to read crest for team {team_id}: {e}")
        return LogoResponse(
            content=error_svg(),
            headers={"Cache-Control": "public, max-age=300", "X-Error": "true"},
        )

    _logo_cache.set(team_id, content)
    return LogoResponse(
        content=content,
        headers={"Cache-Control": "public, max-age=86400", "X-Cache": "MISS"},
    )


def clear_logo_cache() -> None:
    _logo_cache.invalidate()


def _strip_accents(text: str) -> str:
    normalized = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in normalized if unicodedata.category(ch) != "Mn")


def get_team_logo_path(team_name: Optional[str]) -> str:
    """Static crest URL for a team display name."""
    if not team_name:
        return WAITING_LOGO

    mapped = TEAM_NAME_TO_FILE.get(team_name)
    if mapped:
        return f"{LOGO_URL_PREFIX}/{mapped}.svg"

    slug = re.sub(r"\s+", "-", _strip_accents(team_name.lower()))
    return f"{LOGO_URL_PREFIX}/{slug}.svg"
