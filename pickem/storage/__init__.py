from .base import GameResultData, PicksStore
from .sql import SQLAlchemyStore

__all__ = ["GameResultData", "PicksStore", "SQLAlchemyStore"]
