"""
SofaScore payload -> table row mapping.

Pure functions: no I/O, no session. Timestamps are naive UTC, as stored by
the rest of the application.
"""

import re
from datetime import datetime
from typing import Optional

FORMAT_LEAGUE = "league"
FORMAT_KNOCKOUT = "knockout"
FORMAT_MIXED = "mixed"
TOURNAMENT_FORMATS = (FORMAT_LEAGUE, FORMAT_KNOCKOUT, FORMAT_MIXED)

DEFAULT_COUNTRY = {"name": "Brazil", "alpha2": "BR", "alpha3": "BRA"}


def determine_tournament_format(rounds: list[dict]) -> str:
    """
    Infer a tournament format from its rounds.

    Named rounds ("Quarterfinals") are knockout phases, unnamed ones are
    numbered league rounds. Both kinds together mean a group stage followed
    by knockouts. An empty list is a league.
    """
    has_named = any(r.get("name") for r in rounds)
    has_plain = any(not r.get("name") for r in rounds)

    if has_named and has_plain:
        return FORMAT_MIXED
    if has_named:
        return FORMAT_KNOCKOUT
    return FORMAT_LEAGUE


def slugify(name: str) -> str:
    slug = re.sub(r"\s+", "-", name.lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def team_logo_url(team_id: int) -> str:
    return f"/api/team-logo/{team_id}"


def _score(score: Optional[dict]) -> int:
    # display, then current, then 0
    score = score or {}
    if score.get("display") is not None:
        return score["display"]
    if score.get("current") is not None:
        return score["current"]
    return 0


def event_scores(event: dict) -> tuple[int, int]:
    """(home, away) score of an event."""
    return _score(event.get("homeScore")), _score(event.get("awayScore"))


def map_event_to_match(event: dict, tournament_id: int, season_id: int) -> dict:
    """Turn a SofaScore event into a ``matches`` row."""
    round_info = event.get("roundInfo") or {}
    tournament = event.get("tournament") or {}
    unique = tournament.get("uniqueTournament") or {}
    status = event.get("status") or {}
    home = event["homeTeam"]
    away = event["awayTeam"]
    home_score, away_score = event_scores(event)
    now = datetime.utcnow()

    is_knockout = bool(round_info.get("cupRoundType") or round_info.get("name"))

    return {
        "id": event["id"],
        "round_number": round_info.get("round") or 0,
        "round_name": round_info.get("name") or None,
        "round_type": "cup" if is_knockout else "league",
        "cup_round_type": round_info.get("cupRoundType") or None,
        "group_name": tournament.get("groupName") or None,
        "home_team_id": home["id"],
        "home_team_name": home["name"],
        "home_team_short_name": home.get("shortName") or home.get("nameCode") or None,
        "home_team_logo": team_logo_url(home["id"]),
        "away_team_id": away["id"],
        "away_team_name": away["name"],
        "away_team_short_name": away.get("shortName") or away.get("nameCode") or None,
        "away_team_logo": team_logo_url(away["id"]),
        "slug": event.get("slug") or "",
        "start_time": datetime.utcfromtimestamp(event["startTimestamp"]),
        "start_timestamp": event["startTimestamp"],
        "status": status.get("type") or "notstarted",
        "status_code": status.get("code") or 0,
        "status_description": status.get("description") or None,
        "home_score": home_score,
        "away_score": away_score,
        "tournament_id": tournament_id,
        "tournament_name": unique.get("name") or tournament.get("name") or "",
        "tournament_slug": unique.get("slug") or tournament.get("slug") or None,
        "season_id": season_id,
        "source": "sofascore",
        "last_updated": now,
        "updated_at": now,
    }


def describe_phase(current_round: Optional[dict]) -> Optional[str]:
    """Label of the current phase: the round name, else "Rodada N"."""
    if not current_round:
        return None
    if current_round.get("name"):
        return current_round["name"]
    if current_round.get("round"):
        return f"Rodada {current_round['round']}"
    return None


def build_tournament_record(
    tournament_id: int,
    season_id: int,
    name: str,
    tournament_format: str,
    current_round: Optional[dict],
) -> dict:
    """``tournaments`` row for setup_tournament."""
    now = datetime.utcnow()
    return {
        "id": tournament_id,
        "name": name,
        "slug": slugify(name),
        "format": tournament_format,
        "has_rounds": tournament_format in (FORMAT_LEAGUE, FORMAT_MIXED),
        "has_groups": tournament_format == FORMAT_MIXED,
        "has_playoff_series": False,
        "status": "active",
        "season_id": season_id,
        "current_phase": describe_phase(current_round),
        "updated_at": now,
        "last_sync_at": now,
    }


def build_season_records(
    seasons: list[dict],
    tournament_id: int,
    current_season_id: int,
    limit: int = 10,
) -> list[dict]:
    """``tournament_seasons`` rows for the first ``limit`` seasons."""
    now = datetime.utcnow()
    return [
        {
            "id": s["id"],
            "tournament_id": tournament_id,
            "name": s["name"],
            "year": s.get("year") or None,
            "is_current": s["id"] == current_season_id,
            "updated_at": now,
        }
        for s in seasons[:limit]
    ]


def extract_teams_from_standings(standings: list[dict], tournament_id: int) -> list[dict]:
    """
    Distinct ``teams`` rows across every standings table.

    The first occurrence of a team wins. Country defaults to Brazil.
    """
    now = datetime.utcnow()
    teams: dict[int, dict] = {}

    for standing in standings:
        for row in standing.get("rows") or []:
            team = row["team"]
            if team["id"] in teams:
                continue
            country = team.get("country") or {}
            colors = team.get("teamColors") or {}
            teams[team["id"]] = {
                "id": team["id"],
                "name": team["name"],
                "short_name": team.get("shortName") or None,
                "name_code": team.get("nameCode") or None,
                "slug": team.get("slug") or None,
                "country_name": country.get("name") or DEFAULT_COUNTRY["name"],
                "country_alpha2": country.get("alpha2") or DEFAULT_COUNTRY["alpha2"],
                "country_alpha3": country.get("alpha3") or DEFAULT_COUNTRY["alpha3"],
                "primary_color": colors.get("primary") or None,
                "secondary_color": colors.get("secondary") or None,
                "text_color": colors.get("text") or None,
                "primary_tournament_id": tournament_id,
                "updated_at": now,
                "last_sync_at": now,
            }

    return list(teams.values())
