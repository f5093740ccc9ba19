from pickem import db


class UserPick(db.Model):
    __tablename__ = "user_picks"

    id = db.Column(db.Integer, primary_key=True)

    # Pick identification
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    week = db.Column(db.Integer, nullable=False)
    game_id = db.Column(
        db.String(50), db.ForeignKey("games.game_code"), nullable=False
    )

    # Pick details
    picked_team = db.Column(db.String(100), nullable=False)

    # Result (set once the game has a winner)
    is_correct = db.Column(db.Boolean)

    # Constraints and indexes
    __table_args__ = (
        db.UniqueConstraint("user_id", "week", "game_id", name="unique_user_week_game"),
        db.Index("idx_user_pick_game", "game_id"),
        db.Index("idx_user_pick_week", "week"),
    )

    def __repr__(self):
        return f"<UserPick user_id={self.user_id} game_id={self.game_id} team={self.picked_team}>"

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "week": self.week,
            "game_id": self.game_id,
            "picked_team": self.picked_team,
            "is_correct": self.is_correct,
        }
