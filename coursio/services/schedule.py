"""Courses and their materialized half-day calendar.

Half-day dates are a stored projection of the course start computed by
``calendar.map_slot``. This module is the only writer of
``HalfDay.session_date`` and ``HalfDay.period``: ``ensure_half_days`` fills
missing rows and never rewrites existing ones, ``reschedule`` is the single
path that overwrites them.
"""
import logging
from datetime import date

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Course, HalfDay
from . import calendar
from .errors import NotFoundError, OperationFailed
from .transaction import atomic
from .validation import parse_date, parse_period, parse_slot, parse_week

logger = logging.getLogger(__name__)

COURSE_FIELDS = ("teacher", "class_name", "room", "module_number", "module_name")


def get_course(course_id, owner_id=None):
    q = Course.query.filter_by(id=course_id)
    if owner_id is not None:
        q = q.filter_by(teacher_id=owner_id)
    course = q.one_or_none()
    if course is None:
        raise NotFoundError("Course not found")
    return course


def list_courses(owner_id):
    return (Course.query.filter_by(teacher_id=owner_id)
            .order_by(Course.start_date.desc(), Course.id.desc()).all())


def create_course(owner_id, fields, start_date, start_period):
    """Create a course; its half-days are materialized on first access."""
    course = Course(teacher_id=owner_id,
                    start_date=parse_date(start_date, "startDate"),
                    start_period=parse_period(start_period),
                    **{k: fields[k] for k in COURSE_FIELDS})
    with atomic("create course"):
        db.session.add(course)
    logger.info("course %s created for teacher %s", course.id, owner_id)
    return course


def delete_course(course_id, owner_id=None):
    course = get_course(course_id, owner_id)
    with atomic("delete course"):
        db.session.delete(course)
    logger.info("course %s deleted", course_id)


def ensure_default_course(owner_id, settings, today=None):
    """Return the owner's demo course, creating it on first call.

    The course is keyed by ``DEFAULT_MODULE_NUMBER`` and starts on the
    Monday of the current week in the morning.
    """
    module_number = settings["DEFAULT_MODULE_NUMBER"]
    course = (Course.query.filter_by(teacher_id=owner_id, module_number=module_number)
              .order_by(Course.id).first())
    if course is not None:
        return course
    monday = calendar.week_start_monday(today or date.today())
    return create_course(owner_id, {
        "teacher": settings["DEFAULT_TEACHER"],
        "class_name": settings["DEFAULT_CLASS"],
        "room": settings["DEFAULT_ROOM"],
        "module_number": module_number,
        "module_name": settings["DEFAULT_MODULE_NAME"],
    }, monday, calendar.Period.MORNING)


def _half_days(course_id):
    return (HalfDay.query.filter_by(course_id=course_id)
            .order_by(HalfDay.week_number, HalfDay.slot_index).all())


def ensure_half_days(course_id, owner_id=None):
    """Make sure all 15 half-days of a course exist and return them in order.

    Missing rows are inserted in one transaction; existing rows keep their
    dates. When a concurrent request wins a unique key, the insert is rolled
    back and retried for whatever is still missing. Returns ``[]`` when the
    course has no start to derive from.
    """
    course = get_course(course_id, owner_id)
    if course.start_date is None or course.start_period is None:
        return []

    # each conflict means another request inserted at least one row
    for _ in range(calendar.HALF_DAYS_PER_COURSE + 1):
        existing = _half_days(course.id)
        if len(existing) == calendar.HALF_DAYS_PER_COURSE:
            return existing

        present = {hd.key for hd in existing}
        missing = [
            HalfDay(course_id=course.id, week_number=week, slot_index=slot,
                    session_date=session_date, period=period)
            for week, slot, session_date, period
            in calendar.expected_schedule(course.start_date, course.start_period)
            if (week, slot) not in present
        ]
        try:
            db.session.add_all(missing)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.warning("half-days of course %s created concurrently, re-reading", course.id)
        except Exception as exc:
            db.session.rollback()
            logger.exception("materializing half-days of course %s failed", course.id)
            raise OperationFailed("Could not create the course calendar") from exc
        else:
            logger.info("materialized %d half-days for course %s", len(missing), course.id)
    raise OperationFailed("Could not create the course calendar")


def resolve_half_day(course_id, week, slot, owner_id=None):
    """Find the half-day at ``(week, slot)`` of a course, materializing if needed."""
    key = (parse_week(week), parse_slot(slot))
    for half_day in ensure_half_days(course_id, owner_id):
        if half_day.key == key:
            return half_day
    raise NotFoundError("Half-day not found")


def get_half_day(half_day_id, owner_id=None):
    q = HalfDay.query.filter(HalfDay.id == half_day_id)
    if owner_id is not None:
        q = q.join(Course).filter(Course.teacher_id == owner_id)
    half_day = q.one_or_none()
    if half_day is None:
        raise NotFoundError("Half-day not found")
    return half_day


def reschedule(course_id, from_week_number, new_start_date, owner_id=None):
    """Shift the calendar of weeks ``from_week_number``..5.

    ``new_start_date`` becomes the first day of ``from_week_number``; the
    course keeps its start period. From week 1 the course start date moves
    too. Earlier weeks are left as they are.
    """
    from_week = parse_week(from_week_number)
    new_start = parse_date(new_start_date, "startDate")
    course = get_course(course_id, owner_id)

    with atomic("reschedule"):
        if from_week == 1:
            course.start_date = new_start
        current = {hd.key: hd for hd in _half_days(course.id) if hd.week_number >= from_week}
        for week, slot, session_date, period in calendar.expected_schedule(
                new_start, course.start_period, first_week=from_week):
            half_day = current.get((week, slot))
            if half_day is None:
                db.session.add(HalfDay(course_id=course.id, week_number=week, slot_index=slot,
                                       session_date=session_date, period=period))
            else:
                half_day.session_date = session_date
                half_day.period = period
    logger.info("course %s rescheduled from week %d to start %s",
                course.id, from_week, new_start.isoformat())
    return _half_days(course.id)


def update_half_day_notes(half_day_id, notes, owner_id=None):
    half_day = get_half_day(half_day_id, owner_id)
    with atomic("update half-day notes"):
        half_day.notes = notes.strip() if isinstance(notes, str) and notes.strip() else None
    return half_day
