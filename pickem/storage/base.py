"""Abstract persistence interface for the pick'em data."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pickem.utils.scoring import compute_winner

# Provider status codes for a game that has ended
FINISHED_STATUSES = frozenset({"FT", "AOT"})


@dataclass
class GameResultData:
    """Data transfer object for one fetched game result."""

    game_id: str
    week: int
    home_team: str
    away_team: str
    home_score: Optional[int]
    away_score: Optional[int]
    game_date: Optional[datetime]
    status: Optional[str] = None

    @property
    def winner_team(self) -> Optional[str]:
        return compute_winner(
            self.home_team, self.away_team, self.home_score, self.away_score
        )

    @property
    def is_final(self) -> bool:
        return self.status in FINISHED_STATUSES


class PicksStore(ABC):
    """
    Storage contract used by the HTTP views and the results job.

    Adapters translate each call into their backend's create, upsert,
    query-by-key and ordered-scan primitives. Methods that write commit
    their own unit of work.
    """

    # Users

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[dict]:
        pass

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[dict]:
        pass

    @abstractmethod
    def create_user(self, username: str) -> dict:
        """Insert a user; raises ConflictError if the username is taken."""
        pass

    # Schedule

    @abstractmethod
    def list_games(self, week: Optional[int] = None) -> list[dict]:
        """Games ordered by week then kickoff."""
        pass

    @abstractmethod
    def get_week_game_codes(self, week: int) -> set[str]:
        pass

    @abstractmethod
    def get_first_game_time(self, week: int) -> Optional[datetime]:
        """Earliest kickoff of the week, or None when it has no games."""
        pass

    @abstractmethod
    def list_week_starts(self) -> list[tuple[int, datetime]]:
        """(week id, start date) pairs ordered by start date."""
        pass

    # Picks

    @abstractmethod
    def save_picks(self, user_id: int, week: int, picks: dict[str, str]) -> int:
        """
        Upsert the picks and set the week's status flag in one transaction.

        Returns the number of picks written.
        """
        pass

    @abstractmethod
    def get_picks_status(self, user_id: int, week: int) -> bool:
        pass

    @abstractmethod
    def set_picks_status(self, user_id: int, week: int, has_picks: bool) -> None:
        pass

    @abstractmethod
    def get_user_saved_picks(
        self, user_id: int, week: Optional[int] = None
    ) -> list[dict]:
        pass

    @abstractmethod
    def get_week_pick_details(self, week: int) -> list[dict]:
        pass

    @abstractmethod
    def get_grand_totals(self, week: int) -> list[dict]:
        pass

    # Results

    @abstractmethod
    def get_game_results(self, game_ids: list[str]) -> list[dict]:
        pass

    @abstractmethod
    def record_game_result(self, result: GameResultData) -> int:
        """
        Upsert a result keyed on game_id and grade the game's picks.

        Returns the number of picks graded.
        """
        pass
