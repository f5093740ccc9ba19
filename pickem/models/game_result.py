from datetime import datetime, timezone

from pickem import db


class GameResult(db.Model):
    __tablename__ = "game_results"

    id = db.Column(db.Integer, primary_key=True)

    # Fixture id from the results provider (matches Game.game_code)
    game_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    week = db.Column(db.Integer, nullable=False)

    home_team = db.Column(db.String(100), nullable=False)
    away_team = db.Column(db.String(100), nullable=False)

    # Scores (null until the provider reports them)
    home_score = db.Column(db.Integer)
    away_score = db.Column(db.Integer)
    winner_team = db.Column(db.String(100))  # Null on a tie or missing scores

    game_date = db.Column(db.DateTime)
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc).replace(tzinfo=None),
        onupdate=lambda: datetime.now(timezone.utc).replace(tzinfo=None),
    )

    __table_args__ = (db.Index("idx_game_result_week", "week"),)

    def __repr__(self):
        return f"<GameResult {self.game_id} {self.home_score}-{self.away_score}>"

    def to_dict(self):
        return {
            "game_id": self.game_id,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "winner_team": self.winner_team,
            "game_date": self.game_date.isoformat() if self.game_date else None,
        }
