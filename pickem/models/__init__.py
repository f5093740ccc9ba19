from pickem import db  # noqa: F401 - imported for model imports

from .game import Game
from .game_result import GameResult
from .user import User
from .user_pick import UserPick
from .week import Week
from .week_picks_status import WeekPicksStatus

__all__ = [
    "User",
    "Week",
    "Game",
    "GameResult",
    "UserPick",
    "WeekPicksStatus",
]
