from ..extensions import db

ACTIVITY_FORMATS = (
    "presentation",
    "exercice",
    "travail_de_groupe",
    "jeu",
    "recherche_information",
    "synthese",
    "evaluation",
)

class Activity(db.Model):
    __tablename__ = "activities"
    id = db.Column(db.Integer, primary_key=True)
    half_day_id = db.Column(db.Integer, db.ForeignKey("half_days.id", ondelete="CASCADE"),
                            nullable=False, index=True)
    specific_objective = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text, nullable=False)
    duration_minutes = db.Column(db.SmallInteger, nullable=False)
    format = db.Column(db.Enum(*ACTIVITY_FORMATS, name="activity_format"), nullable=False)
    materials = db.Column(db.Text)
    position = db.Column(db.SmallInteger)      # 1..N inside the half-day, NULL on legacy rows
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    __table_args__ = (
        db.CheckConstraint("duration_minutes > 0", name="ck_duration_positive"),
    )

    half_day = db.relationship("HalfDay", back_populates="activities")

    def to_dict(self):
        return {
            "id": self.id,
            "halfDayId": self.half_day_id,
            "objective": self.specific_objective,
            "description": self.description,
            "duration": self.duration_minutes,
            "format": self.format,
            "materials": self.materials,
            "position": self.position,
        }
