import logging
from datetime import datetime, timezone

from sqlalchemy import and_, case, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from pickem.errors import ConflictError
from pickem.models import Game, GameResult, User, UserPick, Week, WeekPicksStatus
from pickem.storage.base import PicksStore
from pickem.utils.scoring import is_pick_correct
from pickem.utils.timezone_utils import to_naive_utc

logger = logging.getLogger(__name__)


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _serialize_row(row):
    """Convert a result row to a JSON-ready dict"""
    data = dict(row._mapping)
    for key, value in data.items():
        if isinstance(value, datetime):
            data[key] = value.isoformat()
    return data


class SQLAlchemyStore(PicksStore):
    """Relational adapter on top of the Flask-SQLAlchemy session"""

    def __init__(self, session):
        self.session = session

    # Upsert support

    def _insert_for_dialect(self, model):
        dialect = self.session.get_bind(mapper=model).dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert

            return insert
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert

            return insert
        return None

    def _upsert(self, model, values, index_elements, update_values):
        """
        INSERT ... ON CONFLICT (index_elements) DO UPDATE SET update_values.

        ``update_values`` maps column name to either a literal or the string
        "excluded", meaning take the value from the incoming row.
        """
        insert = self._insert_for_dialect(model)

        if insert is None:
            return self._upsert_fallback(model, values, index_elements, update_values)

        stmt = insert(model.__table__).values(**values)
        set_ = {
            column: (stmt.excluded[column] if value == "excluded" else value)
            for column, value in update_values.items()
        }
        stmt = stmt.on_conflict_do_update(index_elements=index_elements, set_=set_)
        self.session.execute(stmt)

    def _upsert_fallback(self, model, values, index_elements, update_values):
        """Select-then-write upsert for dialects without ON CONFLICT"""
        keys = {column: values[column] for column in index_elements}
        existing = self.session.query(model).filter_by(**keys).first()

        if existing is None:
            self.session.add(model(**values))
            return

        for column, value in update_values.items():
            setattr(existing, column, values[column] if value == "excluded" else value)

    # Users

    def get_user(self, user_id):
        user = self.session.get(User, user_id)
        return user.to_dict() if user else None

    def get_user_by_username(self, username):
        user = self.session.query(User).filter_by(username=username).first()
        return user.to_dict() if user else None

    def create_user(self, username):
        if self.get_user_by_username(username):
            raise ConflictError("Username already exists")

        user = User(username=username)
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            # Lost a race with a concurrent insert of the same name
            self.session.rollback()
            raise ConflictError("Username already exists")

        logger.info(f"Created user {user.id} ({username})")
        return user.to_dict()

    # Schedule

    def list_games(self, week=None):
        query = self.session.query(Game)
        if week is not None:
            query = query.filter(Game.week_id == week)
        games = query.order_by(Game.week_id, Game.game_date).all()
        return [game.to_dict() for game in games]

    def get_week_game_codes(self, week):
        rows = self.session.query(Game.game_code).filter(Game.week_id == week).all()
        return {row.game_code for row in rows}

    def get_first_game_time(self, week):
        return (
            self.session.query(func.min(Game.game_date))
            .filter(Game.week_id == week)
            .scalar()
        )

    def list_week_starts(self):
        rows = (
            self.session.query(Week.id, Week.start_date)
            .order_by(Week.start_date.asc())
            .all()
        )
        return [(row.id, row.start_date) for row in rows]

    # Picks

    def save_picks(self, user_id, week, picks):
        now = _utcnow()
        try:
            for game_id, picked_team in picks.items():
                self._upsert(
                    UserPick,
                    {
                        "user_id": user_id,
                        "week": week,
                        "game_id": str(game_id),
                        "picked_team": picked_team,
                    },
                    index_elements=["user_id", "week", "game_id"],
                    update_values={"picked_team": "excluded"},
                )

            self._upsert(
                WeekPicksStatus,
                {"user_id": user_id, "week": week, "has_picks": True, "updated_at": now},
                index_elements=["user_id", "week"],
                update_values={"has_picks": True, "updated_at": now},
            )
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

        return len(picks)

    def get_picks_status(self, user_id, week):
        status = (
            self.session.query(WeekPicksStatus)
            .filter_by(user_id=user_id, week=week)
            .first()
        )
        return bool(status and status.has_picks)

    def set_picks_status(self, user_id, week, has_picks):
        now = _utcnow()
        try:
            self._upsert(
                WeekPicksStatus,
                {
                    "user_id": user_id,
                    "week": week,
                    "has_picks": has_picks,
                    "updated_at": now,
                },
                index_elements=["user_id", "week"],
                update_values={"has_picks": "excluded", "updated_at": now},
            )
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def get_user_saved_picks(self, user_id, week=None):
        query = (
            self.session.query(
                UserPick.game_id,
                UserPick.picked_team,
                UserPick.week,
                UserPick.is_correct,
                Game.game_code,
                Game.home_team,
                Game.away_team,
                Game.game_date,
            )
            .join(Game, UserPick.game_id == Game.game_code)
            .filter(UserPick.user_id == user_id)
        )
        if week is not None:
            query = query.filter(UserPick.week == week)

        rows = query.order_by(UserPick.week, Game.game_date).all()
        return [_serialize_row(row) for row in rows]

    def get_week_pick_details(self, week):
        rows = (
            self.session.query(
                UserPick.user_id,
                User.username,
                UserPick.game_id,
                UserPick.picked_team,
                GameResult.winner_team,
            )
            .join(User, UserPick.user_id == User.id)
            .outerjoin(GameResult, UserPick.game_id == GameResult.game_id)
            .filter(UserPick.week == week)
            .order_by(User.username, UserPick.game_id)
            .all()
        )
        return [_serialize_row(row) for row in rows]

    def get_grand_totals(self, week):
        total = func.coalesce(
            func.sum(case((UserPick.is_correct.is_(True), 1), else_=0)), 0
        )
        rows = (
            self.session.query(
                User.id.label("user_id"),
                User.username,
                total.label("grand_total_correct"),
            )
            .outerjoin(
                UserPick, and_(UserPick.user_id == User.id, UserPick.week <= week)
            )
            .group_by(User.id, User.username)
            .order_by(total.desc(), User.id)
            .all()
        )
        return [
            {
                "user_id": row.user_id,
                "username": row.username,
                "grand_total_correct": int(row.grand_total_correct or 0),
            }
            for row in rows
        ]

    # Results

    def get_game_results(self, game_ids):
        if not game_ids:
            return []
        results = (
            self.session.query(GameResult)
            .filter(GameResult.game_id.in_(game_ids))
            .order_by(GameResult.game_id)
            .all()
        )
        return [result.to_dict() for result in results]

    def record_game_result(self, result):
        now = _utcnow()
        winner = result.winner_team
        try:
            self._upsert(
                GameResult,
                {
                    "game_id": result.game_id,
                    "week": result.week,
                    "home_team": result.home_team,
                    "away_team": result.away_team,
                    "home_score": result.home_score,
                    "away_score": result.away_score,
                    "winner_team": winner,
                    "game_date": to_naive_utc(result.game_date),
                    "updated_at": now,
                },
                index_elements=["game_id"],
                update_values={
                    "home_score": "excluded",
                    "away_score": "excluded",
                    "winner_team": "excluded",
                    "game_date": "excluded",
                    "updated_at": now,
                },
            )

            graded = self._grade_picks(result.game_id, winner, result.is_final)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

        return graded

    def _grade_picks(self, game_id, winner_team, is_final):
        """Mark picks right or wrong; ungraded while the game has no outcome"""
        picks = self.session.query(UserPick).filter(UserPick.game_id == game_id).all()

        if winner_team is None and not is_final:
            # Level or unscored mid-game: drop any grade from an earlier leader
            for pick in picks:
                pick.is_correct = None
            return 0

        for pick in picks:
            if winner_team is None:
                # Final and tied: nobody picked the winner
                pick.is_correct = False
            else:
                pick.is_correct = is_pick_correct(pick.picked_team, winner_team)
        return len(picks)
