"""
Standings View Selection Module.

SofaScore answers get-standings with one table per group (a single table
for leagues, "Group A".."Group H" plus auxiliary tables for mixed
tournaments). These functions pick the table to show and reshape its rows
for the dashboard tile.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from app.etl.mapping import team_logo_url

logger = logging.getLogger(__name__)


# Keywords that indicate playoff/auxiliary tables (blacklist)
PLAYOFF_KEYWORDS = [
    "playoff", "play-off", "final", "semifinal", "quarter",
    "championship round", "relegation round", "qualifying round",
    "knockout", "mata-mata", "oitavas", "quartas",
]

DEFAULT_TOURNAMENT_NAME = "Brasileirão Série A"
DEFAULT_CATEGORY = "Brazil"


class StandingsGroupNotFound(Exception):
    """Raised when requested group doesn't exist in standings."""

    def __init__(self, requested: str, available: list[str]):
        self.requested = requested
        self.available = available
        super().__init__(f"Group '{requested}' not found. Available: {available}")


@dataclass
class StandingsViewResult:
    """Result of selecting a standings view."""

    rows: list[dict]
    selected_group: str
    selection_reason: str  # "query_param", "single", "heuristic_*"
    available_groups: list[str]
    tie_warning: Optional[list[str]]


def group_standings_by_name(standings: list[dict]) -> dict[str, list[dict]]:
    """
    Map each standings table's name to its rows.

    Unnamed tables are keyed "Unknown"; tables sharing a name are merged.
    """
    groups: dict[str, list[dict]] = {}
    for table in standings:
        group_name = table.get("name") or "Unknown"
        groups.setdefault(group_name, []).extend(table.get("rows") or [])
    return groups


def select_standings_view(
    standings: list[dict],
    requested_group: Optional[str] = None,
) -> StandingsViewResult:
    """
    Select the table to display.

    Args:
        standings: ``standings`` array of a get-standings payload
        requested_group: Query param ?group= (optional)

    Raises:
        StandingsGroupNotFound: If requested_group doesn't exist
    """
    if not standings:
        return StandingsViewResult(
            rows=[],
            selected_group="",
            selection_reason="empty",
            available_groups=[],
            tie_warning=None,
        )

    groups = group_standings_by_name(standings)
    available_groups = list(groups.keys())

    if requested_group:
        if requested_group not in groups:
            raise StandingsGroupNotFound(
                requested=requested_group,
                available=available_groups,
            )
        return StandingsViewResult(
            rows=groups[requested_group],
            selected_group=requested_group,
            selection_reason="query_param",
            available_groups=available_groups,
            tie_warning=None,
        )

    if len(groups) == 1:
        return StandingsViewResult(
            rows=groups[available_groups[0]],
            selected_group=available_groups[0],
            selection_reason="single",
            available_groups=available_groups,
            tie_warning=None,
        )

    selected_group, reason = select_default_standings_group(groups)
    tie_warning = detect_standings_tie(groups)

    if tie_warning:
        logger.info(
            f"[STANDINGS] TIE detected: {tie_warning}. "
            f"Selected '{selected_group}' via {reason}"
        )

    return StandingsViewResult(
        rows=groups[selected_group],
        selected_group=selected_group,
        selection_reason=reason,
        available_groups=available_groups,
        tie_warning=tie_warning,
    )


def is_playoff_group(name: str) -> bool:
    name_lower = name.lower()
    return any(kw in name_lower for kw in PLAYOFF_KEYWORDS)


def select_default_standings_group(groups: dict[str, list[dict]]) -> tuple[str, str]:
    """
    Select the default group to display in standings.

    Returns:
        Tuple (selected_group_name, selection_reason)

    Priorities:
    1. A table named "Overall" (or similar)
    2. MAX(team_count) excluding tables with playoff keywords; the first
       table wins a tie
    """
    if not groups:
        return ("", "empty")

    candidates = {
        name: rows
        for name, rows in groups.items()
        if not is_playoff_group(name)
    }

    # Fallback: if all tables are playoffs, use all
    if not candidates:
        candidates = groups

    for name in candidates:
        if "overall" in name.lower() or "geral" in name.lower():
            return (name, "heuristic_overall")

    max_group = max(candidates.items(), key=lambda x: len(x[1]))
    return (max_group[0], "heuristic_max_teams")


def detect_standings_tie(groups: dict[str, list[dict]]) -> Optional[list[str]]:
    """
    Detect if multiple groups have the same (MAX) team count.

    Returns:
        List of group names in TIE, or None if no tie.
    """
    if not groups:
        return None

    counts = [(name, len(rows)) for name, rows in groups.items()]
    max_count = max(c[1] for c in counts)

    tied = [name for name, count in counts if count == max_count]

    if len(tied) > 1:
        return tied
    return None


def transform_standing_rows(rows: list[dict]) -> list[dict]:
    """
    Reshape SofaScore rows for the tile.

    Position is the row's index in the table, not SofaScore's ``position``.
    """
    standings = []
    for index, row in enumerate(rows):
        team = row["team"]
        scores_for = row.get("scoresFor") or 0
        scores_against = row.get("scoresAgainst") or 0
        standings.append({
            "team": {
                "id": team["id"],
                "name": team["name"],
                "shortName": team.get("shortName"),
                "logo": team_logo_url(team["id"]),
                "country": (team.get("country") or {}).get("name") or DEFAULT_CATEGORY,
            },
            "position": index + 1,
            "matches": row.get("matches") or 0,
            "wins": row.get("wins") or 0,
            "draws": row.get("draws") or 0,
            "losses": row.get("losses") or 0,
            "scoresFor": scores_for,
            "scoresAgainst": scores_against,
            "goalDifference": scores_for - scores_against,
            "points": row.get("points") or 0,
        })
    return standings


def build_standings_response(
    data: dict,
    tournament_id: int,
    requested_group: Optional[str] = None,
) -> Optional[dict]:
    """
    Tile payload from a get-standings answer, or None when it has no rows.

    Raises:
        StandingsGroupNotFound: If requested_group doesn't exist
    """
    view = select_standings_view(data.get("standings") or [], requested_group)
    if not view.rows:
        return None

    tournament = data.get("tournament") or {}
    category = tournament.get("category")
    if isinstance(category, dict):
        category = category.get("name")

    return {
        "standings": transform_standing_rows(view.rows),
        "tournament": {
            "id": tournament.get("id") or tournament_id,
            "name": tournament.get("name") or DEFAULT_TOURNAMENT_NAME,
            "category": category or DEFAULT_CATEGORY,
        },
        "group": view.selected_group,
        "groups": view.available_groups,
    }


def _mock_row(team_id, name, short, played, wins, draws, losses, gf, ga, points):
    return {
        "team": {"id": team_id, "name": name, "shortName": short, "country": {"name": "Brazil"}},
        "matches": played,
        "wins": wins,
        "draws": draws,
        "losses": losses,
        "scoresFor": gf,
        "scoresAgainst": ga,
        "points": points,
    }


# Top ten of a finished Brasileirão, shown when the API key is missing or the API is down
MOCK_STANDINGS_ROWS = [
    _mock_row(1963, "Palmeiras", "PAL", 38, 23, 9, 6, 72, 39, 78),
    _mock_row(1958, "Botafogo", "BOT", 38, 22, 10, 6, 65, 35, 76),
    _mock_row(1961, "Flamengo", "FLA", 38, 21, 8, 9, 68, 42, 71),
    _mock_row(1967, "Fortaleza", "FOR", 38, 19, 11, 8, 58, 38, 68),
    _mock_row(1981, "Internacional", "INT", 38, 18, 11, 9, 55, 40, 65),
    _mock_row(1966, "São Paulo", "SAO", 38, 17, 12, 9, 52, 38, 63),
    _mock_row(1957, "Corinthians", "COR", 38, 16, 11, 11, 50, 42, 59),
    _mock_row(1955, "Bahia", "BAH", 38, 15, 13, 10, 48, 40, 58),
    _mock_row(1954, "Cruzeiro", "CRU", 38, 15, 11, 12, 46, 44, 56),
    _mock_row(5926, "Vasco da Gama", "VAS", 38, 14, 12, 12, 44, 45, 54),
]


def mock_standings() -> dict:
    return {
        "standings": transform_standing_rows(MOCK_STANDINGS_ROWS),
        "tournament": {"id": 325, "name": DEFAULT_TOURNAMENT_NAME, "category": DEFAULT_CATEGORY},
        "group": DEFAULT_TOURNAMENT_NAME,
        "groups": [DEFAULT_TOURNAMENT_NAME],
    }
