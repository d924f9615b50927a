from ..extensions import db
from .teacher import Teacher
from .course import Course, HalfDay
from .activity import Activity, ACTIVITY_FORMATS

__all__ = [
    "Teacher", "Course", "HalfDay", "Activity", "ACTIVITY_FORMATS",
]
