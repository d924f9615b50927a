from ..extensions import db
from ..services.calendar import Period

PERIOD_ENUM = db.Enum(
    Period, name="period", values_callable=lambda e: [m.value for m in e]
)

class Course(db.Model):
    __tablename__ = "courses"
    id = db.Column(db.Integer, primary_key=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey("teachers.id", ondelete="SET NULL"),
                           index=True)
    teacher = db.Column(db.String(255), nullable=False)     # display name on the canvas
    class_name = db.Column("class", db.String(100), nullable=False)
    room = db.Column(db.String(100), nullable=False)
    module_number = db.Column(db.String(50), nullable=False)
    module_name = db.Column(db.String(255), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    start_period = db.Column(PERIOD_ENUM, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    owner = db.relationship("Teacher", back_populates="courses")
    half_days = db.relationship("HalfDay", back_populates="course",
                                cascade="all, delete-orphan",
                                order_by=lambda: [HalfDay.week_number, HalfDay.slot_index])

    def to_dict(self):
        return {
            "id": self.id,
            "teacher": self.teacher,
            "className": self.class_name,
            "room": self.room,
            "moduleNumber": self.module_number,
            "moduleName": self.module_name,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "startPeriod": self.start_period.value if self.start_period else None,
        }

class HalfDay(db.Model):
    __tablename__ = "half_days"
    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"),
                          nullable=False)
    week_number = db.Column(db.SmallInteger, nullable=False)   # 1..5
    slot_index = db.Column(db.SmallInteger, nullable=False)    # 0..2 inside the week
    # projection of the course start, written by services.schedule only
    session_date = db.Column(db.Date, nullable=False)
    period = db.Column(PERIOD_ENUM, nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    __table_args__ = (
        db.UniqueConstraint("course_id", "week_number", "slot_index", name="uq_half_days"),
    )

    course = db.relationship("Course", back_populates="half_days")
    activities = db.relationship("Activity", back_populates="half_day",
                                 cascade="all, delete-orphan")

    @property
    def key(self):
        return (self.week_number, self.slot_index)

    def to_dict(self):
        return {
            "id": self.id,
            "courseId": self.course_id,
            "week": self.week_number,
            "slot": self.slot_index,
            "sessionDate": self.session_date.isoformat(),
            "period": self.period.value,
            "notes": self.notes,
        }
