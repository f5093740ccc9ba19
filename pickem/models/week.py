from pickem import db


class Week(db.Model):
    __tablename__ = "weeks"

    id = db.Column(db.Integer, primary_key=True)  # Week number
    start_date = db.Column(db.DateTime, nullable=False)

    # Relationships
    games = db.relationship("Game", backref="week", lazy="dynamic")

    __table_args__ = (db.Index("idx_week_start_date", "start_date"),)

    def __repr__(self):
        return f"<Week {self.id} starts {self.start_date}>"

    def to_dict(self):
        return {
            "id": self.id,
            "start_date": self.start_date.isoformat() if self.start_date else None,
        }
