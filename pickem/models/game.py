from pickem import db


class Game(db.Model):
    __tablename__ = "games"

    id = db.Column(db.Integer, primary_key=True)

    # External ID from the schedule provider; picks and results key on this
    game_code = db.Column(db.String(50), unique=True, nullable=False, index=True)
    week_id = db.Column(db.Integer, db.ForeignKey("weeks.id"), nullable=False)

    # Teams
    home_team = db.Column(db.String(100), nullable=False)
    away_team = db.Column(db.String(100), nullable=False)

    # Kickoff, naive UTC
    game_date = db.Column(db.DateTime, nullable=False)

    __table_args__ = (
        db.Index("idx_game_week_date", "week_id", "game_date"),
        db.CheckConstraint("home_team != away_team", name="different_teams"),
    )

    def __repr__(self):
        return f"<Game {self.away_team} @ {self.home_team} Week {self.week_id}>"

    def to_dict(self):
        """Convert game to dictionary for API responses"""
        return {
            "id": self.id,
            "game_code": self.game_code,
            "week_id": self.week_id,
            "home_team": self.home_team,
            "away_team": self.away_team,
            "game_date": self.game_date.isoformat() if self.game_date else None,
        }
