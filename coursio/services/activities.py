"""Ordering of activities inside half-days.

Within a half-day, positions are always exactly 1..N. Every write that
changes membership of a half-day rewrites the positions of the whole
half-day in canonical order (position, legacy NULLs last, then id), so gaps
left by older rows are closed on the next write.

Writers lock the half-day rows they touch (``SELECT ... FOR UPDATE``),
in id order, and only then the activity rows inside them. Backends without
row locks, such as SQLite, ignore the lock.
"""
import logging

from ..extensions import db
from ..models import Activity, Course, HalfDay
from .errors import ConflictError, NotFoundError, ValidationError
from .schedule import get_half_day, resolve_half_day
from .transaction import atomic
from .validation import clean_activity_fields

logger = logging.getLogger(__name__)

MAX_LOCK_ATTEMPTS = 3


def _activity_query(activity_id, owner_id):
    q = Activity.query.filter(Activity.id == activity_id)
    if owner_id is not None:
        q = q.join(HalfDay).join(Course).filter(Course.teacher_id == owner_id)
    return q


def get_activity(activity_id, owner_id=None):
    activity = _activity_query(activity_id, owner_id).one_or_none()
    if activity is None:
        raise NotFoundError("Activity not found")
    return activity


def _lock_half_days(*half_day_ids):
    ids = sorted(set(half_day_ids))
    HalfDay.query.filter(HalfDay.id.in_(ids)).order_by(HalfDay.id).with_for_update().all()


def _lock_activity(activity_id, owner_id, *half_day_ids):
    """Lock the half-days involved, then the activity row.

    Half-days always come before activity rows, the order every writer
    follows. The source half-day is read without a lock first; if a
    concurrent move changed it before the activity lock was granted, the
    new source is locked and the activity read again.
    """
    source_id = get_activity(activity_id, owner_id).half_day_id
    for _ in range(MAX_LOCK_ATTEMPTS):
        _lock_half_days(source_id, *half_day_ids)
        activity = (_activity_query(activity_id, owner_id)
                    .with_for_update(of=Activity).populate_existing().one_or_none())
        if activity is None:
            raise NotFoundError("Activity not found")
        if activity.half_day_id == source_id:
            return activity
        source_id = activity.half_day_id
    raise ConflictError("Activity is being moved by another request")


def _ordered(half_day_id, lock=False):
    q = (Activity.query.filter_by(half_day_id=half_day_id)
         .order_by(Activity.position.is_(None), Activity.position, Activity.id))
    if lock:
        q = q.with_for_update().populate_existing()
    return q.all()


def _write_positions(ordered):
    for index, activity in enumerate(ordered, start=1):
        if activity.position != index:
            activity.position = index


def _resequence(half_day_id):
    ordered = _ordered(half_day_id, lock=True)
    _write_positions(ordered)
    return ordered


def _place(activity, target, requested_position):
    """Insert ``activity`` into ``target`` and rewrite both orderings.

    Returns the 0-based index applied. Runs inside the caller's transaction.
    """
    source_id = activity.half_day_id
    ordered = [a for a in _ordered(target.id, lock=True) if a.id != activity.id]
    if requested_position is None:
        index = len(ordered)
    else:
        index = max(0, min(requested_position, len(ordered)))
    ordered.insert(index, activity)
    activity.half_day = target
    _write_positions(ordered)
    if source_id is not None and source_id != target.id:
        _resequence(source_id)
    return index


def list_activities(half_day_id, owner_id=None):
    half_day = get_half_day(half_day_id, owner_id)
    return _ordered(half_day.id)


def resequence(half_day_id, owner_id=None):
    """Rewrite the positions of a half-day to 1..N, e.g. to repair legacy rows."""
    with atomic("resequence"):
        half_day = get_half_day(half_day_id, owner_id)
        _lock_half_days(half_day.id)
        ordered = _resequence(half_day.id)
    return ordered


def append(half_day_id, data, owner_id=None):
    """Create an activity at the end of a half-day."""
    fields = clean_activity_fields(data)
    with atomic("create activity"):
        half_day = get_half_day(half_day_id, owner_id)
        _lock_half_days(half_day.id)
        ordered = _ordered(half_day.id, lock=True)
        activity = Activity(half_day=half_day, **fields)
        db.session.add(activity)
        ordered.append(activity)
        _write_positions(ordered)
    logger.info("activity %s appended to half-day %s at %d",
                activity.id, half_day.id, activity.position)
    return activity


def move(activity_id, target_half_day_id, requested_position=None, owner_id=None):
    """Move an activity into a half-day, possibly the one it is already in.

    ``requested_position`` is a 0-based insertion index into the target list
    without the moved activity; it is clamped to the list bounds and
    defaults to the end. Returns the 1-based position applied.
    """
    if requested_position is not None and (
            isinstance(requested_position, bool) or not isinstance(requested_position, int)):
        raise ValidationError("Position must be an integer")
    with atomic("move activity"):
        target = get_half_day(target_half_day_id, owner_id)
        activity = _lock_activity(activity_id, owner_id, target.id)
        source_id = activity.half_day_id
        index = _place(activity, target, requested_position)
    logger.info("activity %s moved from half-day %s to %s at %d",
                activity_id, source_id, target.id, index + 1)
    return index + 1


def edit(activity_id, data, new_half_day_key=None, owner_id=None):
    """Update an activity's content, and its half-day when the key changes it.

    ``new_half_day_key`` is a ``(week, slot)`` pair of the activity's course.
    A changed half-day appends the activity there and closes the gap it
    leaves; content-only edits keep the position.
    """
    fields = clean_activity_fields(data, partial=True)
    target = None
    if new_half_day_key is not None:
        course_id = get_activity(activity_id, owner_id).half_day.course_id
        week, slot = new_half_day_key
        target = resolve_half_day(course_id, week, slot, owner_id)

    with atomic("edit activity"):
        extra = (target.id,) if target is not None else ()
        activity = _lock_activity(activity_id, owner_id, *extra)
        for name, value in fields.items():
            setattr(activity, name, value)
        if target is not None and target.id != activity.half_day_id:
            index = _place(activity, target, None)
            logger.info("activity %s edited into half-day %s at %d",
                        activity.id, target.id, index + 1)
    return activity


def delete(activity_id, owner_id=None):
    """Delete an activity and close the gap in its half-day."""
    with atomic("delete activity"):
        activity = _lock_activity(activity_id, owner_id)
        half_day_id = activity.half_day_id
        db.session.delete(activity)
        db.session.flush()
        _resequence(half_day_id)
    logger.info("activity %s deleted from half-day %s", activity_id, half_day_id)
