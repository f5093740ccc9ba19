from datetime import datetime, timezone

from pickem import db


class WeekPicksStatus(db.Model):
    """Per user/week flag so clients can ask whether picks were submitted"""

    __tablename__ = "user_week_picks_status"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    week = db.Column(db.Integer, nullable=False)
    has_picks = db.Column(db.Boolean, nullable=False, default=False)
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc).replace(tzinfo=None),
        onupdate=lambda: datetime.now(timezone.utc).replace(tzinfo=None),
    )

    __table_args__ = (
        db.UniqueConstraint("user_id", "week", name="unique_user_week_status"),
    )

    def __repr__(self):
        return f"<WeekPicksStatus user_id={self.user_id} week={self.week} has_picks={self.has_picks}>"
