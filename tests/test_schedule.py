from datetime import date

import pytest
from sqlalchemy import event
from sqlalchemy.orm import Session

from coursio.extensions import db
from coursio.models import Course, HalfDay
from coursio.services import schedule
from coursio.services.calendar import Period
from coursio.services.errors import NotFoundError, OperationFailed, ValidationError

DEFAULTS = {
    "DEFAULT_TEACHER": "Équipe Coursio",
    "DEFAULT_CLASS": "Démonstration",
    "DEFAULT_ROOM": "En ligne",
    "DEFAULT_MODULE_NUMBER": "DEMO-001",
    "DEFAULT_MODULE_NAME": "Atelier de planification",
}


def snapshot(course_id):
    rows = HalfDay.query.filter_by(course_id=course_id).all()
    return {(hd.week_number, hd.slot_index): (hd.id, hd.session_date, hd.period) for hd in rows}


def test_ensure_half_days_materializes_the_whole_course(make_teacher, make_course):
    course = make_course(make_teacher())
    items = schedule.ensure_half_days(course.id)
    assert len(items) == 15
    assert [hd.key for hd in items] == [(w, s) for w in range(1, 6) for s in range(3)]
    assert (items[0].session_date, items[0].period) == (date(2024, 1, 1), Period.MORNING)
    assert (items[2].session_date, items[2].period) == (date(2024, 1, 2), Period.MORNING)
    assert items[3].session_date == date(2024, 1, 8)


def test_ensure_half_days_is_idempotent(make_teacher, make_course):
    course = make_course(make_teacher())
    schedule.ensure_half_days(course.id)
    before = snapshot(course.id)
    schedule.ensure_half_days(course.id)
    assert snapshot(course.id) == before


def test_ensure_half_days_fills_gaps_without_touching_existing_rows(make_teacher, make_course):
    course = make_course(make_teacher())
    schedule.ensure_half_days(course.id)
    HalfDay.query.filter_by(course_id=course.id, week_number=2, slot_index=1).delete()
    kept = HalfDay.query.filter_by(course_id=course.id, week_number=4, slot_index=0).one()
    kept.session_date = date(2024, 6, 3)
    db.session.commit()

    items = schedule.ensure_half_days(course.id)

    assert len(items) == 15
    by_key = {hd.key: hd for hd in items}
    assert by_key[(2, 1)].session_date == date(2024, 1, 8)
    assert by_key[(2, 1)].period is Period.AFTERNOON
    assert by_key[(4, 0)].session_date == date(2024, 6, 3)


def test_ensure_half_days_scoped_to_owner(make_teacher, make_course):
    owner, other = make_teacher(), make_teacher()
    course = make_course(owner)
    assert len(schedule.ensure_half_days(course.id, owner.id)) == 15
    with pytest.raises(NotFoundError):
        schedule.ensure_half_days(course.id, other.id)


def test_concurrent_materialization_is_absorbed(make_teacher, make_course, monkeypatch):
    course = make_course(make_teacher())
    schedule.ensure_half_days(course.id)
    real = schedule._half_days
    calls = []

    def stale_first_read(course_id):
        calls.append(course_id)
        return [] if len(calls) == 1 else real(course_id)

    # first read misses rows another request already committed
    monkeypatch.setattr(schedule, "_half_days", stale_first_read)
    items = schedule.ensure_half_days(course.id)
    assert len(items) == 15
    assert HalfDay.query.filter_by(course_id=course.id).count() == 15


def test_concurrent_partial_materialization_is_completed(make_teacher, make_course, monkeypatch):
    course = make_course(make_teacher())
    # only weeks 4-5 exist, as if another request stopped halfway
    schedule.reschedule(course.id, 4, date(2024, 1, 22))
    real = schedule._half_days
    calls = []

    def stale_first_read(course_id):
        calls.append(course_id)
        return [] if len(calls) == 1 else real(course_id)

    monkeypatch.setattr(schedule, "_half_days", stale_first_read)
    items = schedule.ensure_half_days(course.id)

    assert [hd.key for hd in items] == [(w, s) for w in range(1, 6) for s in range(3)]
    assert HalfDay.query.filter_by(course_id=course.id).count() == 15
    by_key = {hd.key: hd for hd in items}
    assert by_key[(1, 0)].session_date == date(2024, 1, 1)
    assert by_key[(4, 0)].session_date == date(2024, 1, 22)
    assert schedule.resolve_half_day(course.id, 1, 2).session_date == date(2024, 1, 2)


def test_materialization_failure_inserts_nothing(make_teacher, make_course):
    course = make_course(make_teacher())
    state = {"failed": False}

    def fail_once(session, flush_context):
        if not state["failed"]:
            state["failed"] = True
            raise RuntimeError("disk full")

    event.listen(Session, "after_flush", fail_once)
    try:
        with pytest.raises(OperationFailed):
            schedule.ensure_half_days(course.id)
    finally:
        event.remove(Session, "after_flush", fail_once)

    assert state["failed"]
    assert HalfDay.query.filter_by(course_id=course.id).count() == 0
    assert len(schedule.ensure_half_days(course.id)) == 15


def test_reschedule_from_week_three_leaves_earlier_weeks(make_teacher, make_course):
    course = make_course(make_teacher())
    schedule.ensure_half_days(course.id)
    before = snapshot(course.id)

    items = schedule.reschedule(course.id, 3, date(2024, 2, 5))

    after = snapshot(course.id)
    assert len(items) == 15
    for key in before:
        if key[0] < 3:
            assert after[key] == before[key]
    assert after[(3, 0)][1:] == (date(2024, 2, 5), Period.MORNING)
    assert after[(3, 2)][1:] == (date(2024, 2, 6), Period.MORNING)
    assert after[(5, 1)][1:] == (date(2024, 2, 19), Period.AFTERNOON)
    assert after[(3, 0)][0] == before[(3, 0)][0]
    assert db.session.get(Course, course.id).start_date == date(2024, 1, 1)


def test_reschedule_from_week_one_moves_the_course_start(make_teacher, make_course):
    course = make_course(make_teacher(), start_period=Period.AFTERNOON)
    schedule.ensure_half_days(course.id)

    items = schedule.reschedule(course.id, 1, "2024-09-02")

    refreshed = db.session.get(Course, course.id)
    assert refreshed.start_date == date(2024, 9, 2)
    assert refreshed.start_period is Period.AFTERNOON
    assert (items[0].session_date, items[0].period) == (date(2024, 9, 2), Period.AFTERNOON)
    # later calls keep the rescheduled calendar
    assert schedule.ensure_half_days(course.id)[0].session_date == date(2024, 9, 2)


def test_reschedule_inserts_missing_half_days(make_teacher, make_course):
    course = make_course(make_teacher())
    items = schedule.reschedule(course.id, 4, date(2024, 3, 4))
    assert [hd.key for hd in items] == [(4, 0), (4, 1), (4, 2), (5, 0), (5, 1), (5, 2)]
    assert len(schedule.ensure_half_days(course.id)) == 15


def test_reschedule_rolls_back_on_failure(make_teacher, make_course, monkeypatch):
    course = make_course(make_teacher())
    schedule.ensure_half_days(course.id)
    before = snapshot(course.id)
    real = schedule.calendar.expected_schedule

    def broken(*args, **kwargs):
        rows = real(*args, **kwargs)
        yield from rows[:4]
        raise RuntimeError("store went away")

    monkeypatch.setattr(schedule.calendar, "expected_schedule", broken)
    with pytest.raises(OperationFailed):
        schedule.reschedule(course.id, 1, date(2025, 1, 6))

    assert snapshot(course.id) == before
    assert db.session.get(Course, course.id).start_date == date(2024, 1, 1)


@pytest.mark.parametrize("week", [0, 6, "x", None])
def test_reschedule_rejects_bad_weeks(make_teacher, make_course, week):
    course = make_course(make_teacher())
    with pytest.raises(ValidationError):
        schedule.reschedule(course.id, week, date(2024, 2, 5))


def test_reschedule_rejects_bad_dates(make_teacher, make_course):
    course = make_course(make_teacher())
    with pytest.raises(ValidationError):
        schedule.reschedule(course.id, 2, "05/02/2024")


def test_resolve_half_day(make_teacher, make_course):
    course = make_course(make_teacher())
    half_day = schedule.resolve_half_day(course.id, "2", 2)
    assert half_day.key == (2, 2)
    assert half_day.session_date == date(2024, 1, 9)
    with pytest.raises(ValidationError):
        schedule.resolve_half_day(course.id, 2, 3)


def test_update_half_day_notes(make_teacher, make_course):
    owner = make_teacher()
    course = make_course(owner)
    half_day = schedule.ensure_half_days(course.id)[0]
    assert schedule.update_half_day_notes(half_day.id, "  bring laptops ", owner.id).notes \
        == "bring laptops"
    assert schedule.update_half_day_notes(half_day.id, "   ", owner.id).notes is None
    with pytest.raises(NotFoundError):
        schedule.update_half_day_notes(half_day.id, "x", make_teacher().id)


def test_ensure_default_course_is_created_once(make_teacher):
    owner = make_teacher()
    first = schedule.ensure_default_course(owner.id, DEFAULTS, today=date(2024, 1, 4))
    second = schedule.ensure_default_course(owner.id, DEFAULTS, today=date(2024, 5, 1))
    assert first.id == second.id
    assert first.start_date == date(2024, 1, 1)
    assert first.start_period is Period.MORNING
    assert first.module_number == "DEMO-001"
    assert Course.query.filter_by(teacher_id=owner.id).count() == 1


def test_delete_course_cascades(make_teacher, make_course):
    owner = make_teacher()
    course = make_course(owner)
    schedule.ensure_half_days(course.id)
    schedule.delete_course(course.id, owner.id)
    assert HalfDay.query.count() == 0
    with pytest.raises(NotFoundError):
        schedule.get_course(course.id)
