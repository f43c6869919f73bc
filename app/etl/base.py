"""Abstract base class for sports data providers."""

from abc import ABC, abstractmethod


# Body returned for HTTP 204 (no content) so callers can always index these keys
EMPTY_PAYLOAD = {"events": [], "seasons": [], "standings": [], "rounds": []}


class SportsDataProvider(ABC):
    """
    Abstract base class for the match-data API behind the admin actions.

    Methods return the provider's JSON payload unchanged; mapping into table
    rows lives in app.etl.mapping.
    """

    @abstractmethod
    async def search(self, query: str) -> dict:
        """
        Free-text search across tournaments, teams and players.

        Returns:
            Payload with a ``results`` list of ``{type, entity}`` items.
        """
        pass

    @abstractmethod
    async def get_seasons(self, tournament_id: int) -> dict:
        """
        Fetch the seasons of a tournament, most recent first.

        Returns:
            Payload with a ``seasons`` list of ``{id, name, year}``.
        """
        pass

    @abstractmethod
    async def get_rounds(self, tournament_id: int, season_id: int) -> dict:
        """
        Fetch the rounds of a season.

        Returns:
            Payload with ``rounds`` (``{round, name?, slug?}``) and ``currentRound``.
        """
        pass

    @abstractmethod
    async def get_last_matches(self, tournament_id: int, season_id: int, page: int) -> dict:
        """
        Fetch one page of past events.

        Returns:
            Payload with ``events`` and ``hasNextPage``.
        """
        pass

    @abstractmethod
    async def get_next_matches(self, tournament_id: int, season_id: int, page: int) -> dict:
        """
        Fetch one page of upcoming events.

        Returns:
            Payload with ``events`` and ``hasNextPage``.
        """
        pass

    @abstractmethod
    async def get_standings(self, tournament_id: int, season_id: int) -> dict:
        """
        Fetch total standings of a season (one table per group).

        Returns:
            Payload with ``standings`` and ``tournament``.
        """
        pass

    async def fetch_all_events(
        self,
        tournament_id: int,
        season_id: int,
        max_pages: int = 20,
    ) -> list[dict]:
        """
        Collect every event of a season: past pages first, then upcoming.

        Each direction is paged from 0 while ``hasNextPage`` is true, up to
        ``max_pages`` pages. Events are de-duplicated by id; a later page
        overwrites an earlier copy.
        """
        events_by_id: dict[int, dict] = {}

        for fetch_page in (self.get_last_matches, self.get_next_matches):
            page = 0
            has_next = True
            while has_next and page < max_pages:
                data = await fetch_page(tournament_id, season_id, page)
                for event in data.get("events") or []:
                    events_by_id[event["id"]] = event
                has_next = data.get("hasNextPage") is True
                page += 1

        return list(events_by_id.values())

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        pass
