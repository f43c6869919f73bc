"""Database models using SQLModel.

Table and column names mirror the managed Supabase schema. Tournaments, seasons,
teams and matches are keyed by their SofaScore ids so imports can upsert by id.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel


def _uuid() -> str:
    return str(uuid4())


class Tournament(SQLModel, table=True):
    """Competition tracked by the pool (Brasileirão, Copa do Brasil, ...)."""

    __tablename__ = "tournaments"

    id: int = Field(primary_key=True, description="SofaScore uniqueTournament id")
    name: str = Field(max_length=255)
    slug: str = Field(max_length=255, index=True)
    short_name: Optional[str] = Field(default=None, max_length=100)
    logo_url: Optional[str] = Field(default=None, max_length=500)
    format: str = Field(
        default="league", max_length=20, description="'league', 'knockout' or 'mixed'"
    )
    has_rounds: bool = Field(default=True)
    has_groups: bool = Field(default=False)
    has_playoff_series: bool = Field(default=False)
    status: str = Field(default="active", max_length=20, index=True)
    season_id: Optional[int] = Field(default=None, description="Current SofaScore season id")
    current_phase: Optional[str] = Field(default=None, max_length=100)
    display_order: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    last_sync_at: Optional[datetime] = Field(default=None)


class TournamentSeason(SQLModel, table=True):
    """A SofaScore season of a tournament."""

    __tablename__ = "tournament_seasons"

    id: int = Field(primary_key=True, description="SofaScore season id")
    tournament_id: int = Field(index=True)
    name: str = Field(max_length=255)
    year: Optional[str] = Field(default=None, max_length=20)
    is_current: bool = Field(default=False)
    current_round_number: Optional[int] = Field(default=None)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Team(SQLModel, table=True):
    """Club imported from SofaScore standings."""

    __tablename__ = "teams"

    id: int = Field(primary_key=True, description="SofaScore team id")
    name: str = Field(max_length=255)
    short_name: Optional[str] = Field(default=None, max_length=100)
    name_code: Optional[str] = Field(default=None, max_length=10)
    slug: Optional[str] = Field(default=None, max_length=255)
    logo_url: Optional[str] = Field(default=None, max_length=500)
    country_name: Optional[str] = Field(default=None, max_length=100)
    country_alpha2: Optional[str] = Field(default=None, max_length=2)
    country_alpha3: Optional[str] = Field(default=None, max_length=3)
    primary_color: Optional[str] = Field(default=None, max_length=20)
    secondary_color: Optional[str] = Field(default=None, max_length=20)
    text_color: Optional[str] = Field(default=None, max_length=20)
    primary_tournament_id: Optional[int] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    last_sync_at: Optional[datetime] = Field(default=None)


class Player(SQLModel, table=True):
    """Squad member, maintained by admins."""

    __tablename__ = "players"

    id: Optional[int] = Field(default=None, primary_key=True)
    team_id: int = Field(index=True)
    name: str = Field(max_length=255)
    slug: Optional[str] = Field(default=None, max_length=255)
    shirt_number: Optional[int] = Field(default=None)
    position: Optional[str] = Field(default=None, max_length=20)
    date_of_birth: Optional[str] = Field(default=None, max_length=10)
    country_name: Optional[str] = Field(default=None, max_length=100)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Match(SQLModel, table=True):
    """Match imported from SofaScore events (team names are denormalized)."""

    __tablename__ = "matches"

    id: int = Field(primary_key=True, description="SofaScore event id")
    round_number: int = Field(default=0, index=True)
    round_name: Optional[str] = Field(default=None, max_length=100)
    round_type: str = Field(default="league", max_length=10, description="'cup' or 'league'")
    cup_round_type: Optional[int] = Field(default=None)
    group_name: Optional[str] = Field(default=None, max_length=100)

    home_team_id: int = Field(index=True)
    home_team_name: str = Field(max_length=255)
    home_team_short_name: Optional[str] = Field(default=None, max_length=100)
    home_team_logo: Optional[str] = Field(default=None, max_length=500)
    away_team_id: int = Field(index=True)
    away_team_name: str = Field(max_length=255)
    away_team_short_name: Optional[str] = Field(default=None, max_length=100)
    away_team_logo: Optional[str] = Field(default=None, max_length=500)

    slug: str = Field(max_length=255)
    start_time: datetime = Field(index=True, description="Kick-off (naive UTC)")
    start_timestamp: int = Field(description="Kick-off as unix seconds")
    status: str = Field(
        default="notstarted", max_length=20, index=True,
        description="SofaScore status type: notstarted, inprogress, finished, ...",
    )
    status_code: int = Field(default=0)
    status_description: Optional[str] = Field(default=None, max_length=100)
    home_score: int = Field(default=0)
    away_score: int = Field(default=0)

    tournament_id: int = Field(index=True)
    tournament_name: str = Field(default="", max_length=255)
    tournament_slug: Optional[str] = Field(default=None, max_length=255)
    season_id: Optional[int] = Field(default=None, index=True)

    source: str = Field(default="sofascore", max_length=20)
    last_updated: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class UserProfile(SQLModel, table=True):
    """Pool participant. `id` is the Supabase auth user id."""

    __tablename__ = "users_profiles"

    id: str = Field(primary_key=True, max_length=36)
    firebase_id: str = Field(unique=True, index=True, max_length=20, description="Legacy login id (001-011)")
    name: str = Field(max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    role: str = Field(default="user", max_length=10, description="'user' or 'admin'")

    points: int = Field(default=0)
    predictions_count: int = Field(default=0)
    xp: int = Field(default=0)
    level: int = Field(default=1)

    favorite_team_id: Optional[int] = Field(default=None)
    favorite_team_name: Optional[str] = Field(default=None, max_length=255)
    favorite_team_logo: Optional[str] = Field(default=None, max_length=500)
    public_profile: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Prediction(SQLModel, table=True):
    """A user's forecast of a match's final score."""

    __tablename__ = "predictions"
    __table_args__ = (
        UniqueConstraint("user_id", "match_id", name="uq_prediction_user_match"),
    )

    id: str = Field(default_factory=_uuid, primary_key=True, max_length=36)
    user_id: str = Field(index=True, max_length=36)
    match_id: int = Field(index=True)
    home_team_goals: int = Field(ge=0)
    away_team_goals: int = Field(ge=0)
    winner: str = Field(max_length=10, description="'home', 'away' or 'draw'")

    predicted_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    locked: bool = Field(default=False)

    # Filled by calculate_scores
    points_earned: int = Field(default=0)
    is_correct: Optional[bool] = Field(default=None)
    is_exact_score: Optional[bool] = Field(default=None)
    tournament_id: Optional[int] = Field(default=None, index=True)
    season_id: Optional[int] = Field(default=None)


class Payment(SQLModel, table=True):
    """Payout request reviewed by an admin."""

    __tablename__ = "payments"

    id: str = Field(default_factory=_uuid, primary_key=True, max_length=36)
    user_id: str = Field(index=True, max_length=36)
    user_name: Optional[str] = Field(default=None, max_length=255)
    user_team: Optional[str] = Field(default=None, max_length=255)
    amount: float = Field(ge=0)
    status: str = Field(default="pending", max_length=20, index=True)
    pix_key: Optional[str] = Field(default=None, max_length=255)
    transaction_id: Optional[str] = Field(default=None, max_length=255)
    request_date: datetime = Field(default_factory=datetime.utcnow)

    admin_id: Optional[str] = Field(default=None, max_length=20)
    admin_name: Optional[str] = Field(default=None, max_length=255)
    processed_at: Optional[datetime] = Field(default=None)
    rejection_reason: Optional[str] = Field(default=None, max_length=500)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Deposit(SQLModel, table=True):
    """Entry fee paid into the prize pool."""

    __tablename__ = "deposits"

    id: str = Field(default_factory=_uuid, primary_key=True, max_length=36)
    user_id: str = Field(index=True, max_length=36)
    amount: float = Field(ge=0)
    status: str = Field(default="pending", max_length=20, index=True)
    payment_method: str = Field(default="pix", max_length=20)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    confirmed_at: Optional[datetime] = Field(default=None)
    cancelled_at: Optional[datetime] = Field(default=None)
    notes: Optional[str] = Field(default=None, max_length=500)


class UserTournamentPoints(SQLModel, table=True):
    """Per-tournament totals, rebuilt after scoring."""

    __tablename__ = "user_tournament_points"
    __table_args__ = (
        UniqueConstraint("user_id", "tournament_id", name="uq_user_tournament"),
    )

    id: str = Field(default_factory=_uuid, primary_key=True, max_length=36)
    user_id: str = Field(index=True, max_length=36)
    tournament_id: int = Field(index=True)
    points: int = Field(default=0)
    predictions_count: int = Field(default=0)
    exact_scores: int = Field(default=0)
    correct_results: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class PrizePool(SQLModel, table=True):
    """Display-only aggregate of deposits for a tournament."""

    __tablename__ = "prize_pools"

    id: str = Field(default_factory=_uuid, primary_key=True, max_length=36)
    tournament_id: Optional[int] = Field(default=None, index=True)
    season_id: Optional[int] = Field(default=None)
    total_approved: float = Field(default=0.0)
    total_pending: float = Field(default=0.0)
    total_distributed: float = Field(default=0.0)
    participants_count: int = Field(default=0)
    currency: str = Field(default="BRL", max_length=3)
    status: str = Field(default="active", max_length=20, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CurrentRound(SQLModel, table=True):
    """Round highlighted on the dashboard."""

    __tablename__ = "current_round"

    id: str = Field(default_factory=_uuid, primary_key=True, max_length=36)
    round_number: int
    name: str = Field(max_length=100)
    start_date: Optional[datetime] = Field(default=None)
    end_date: Optional[datetime] = Field(default=None)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Notification(SQLModel, table=True):
    """In-app notification."""

    __tablename__ = "notifications"

    id: str = Field(default_factory=_uuid, primary_key=True, max_length=36)
    user_id: str = Field(index=True, max_length=36)
    type: str = Field(max_length=30)
    title: str = Field(max_length=255)
    message: str
    action_url: Optional[str] = Field(default=None, max_length=500)
    extra: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    is_read: bool = Field(default=False)
    read_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)


# Table name -> model, for the admin CRUD endpoint
TABLE_MODELS: dict[str, type[SQLModel]] = {
    "users_profiles": UserProfile,
    "matches": Match,
    "predictions": Prediction,
    "teams": Team,
    "players": Player,
    "tournaments": Tournament,
    "tournament_seasons": TournamentSeason,
    "payments": Payment,
    "deposits": Deposit,
    "current_round": CurrentRound,
    "prize_pools": PrizePool,
    "user_tournament_points": UserTournamentPoints,
    "notifications": Notification,
}
