from datetime import date

import pytest
from werkzeug.security import generate_password_hash

from coursio import create_app
from coursio.extensions import db
from coursio.models import Activity, Course, Teacher
from coursio.services.calendar import Period


@pytest.fixture
def app():
    app = create_app("config.TestConfig")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_teacher(app):
    counter = {"n": 0}

    def _make(email=None, password="secret123"):
        counter["n"] += 1
        t = Teacher(email=email or f"teacher{counter['n']}@example.org",
                    display_name=f"Teacher {counter['n']}",
                    password_hash=generate_password_hash(password))
        db.session.add(t)
        db.session.commit()
        return t

    return _make


@pytest.fixture
def make_course(app):
    def _make(owner, start_date=date(2024, 1, 1), start_period=Period.MORNING):
        c = Course(teacher_id=owner.id, teacher=owner.display_name, class_name="3B",
                   room="B12", module_number="M-101", module_name="Planning",
                   start_date=start_date, start_period=start_period)
        db.session.add(c)
        db.session.commit()
        return c

    return _make


@pytest.fixture
def add_activity():
    """Insert a row directly, bypassing the sequencer (legacy data)."""
    def _add(half_day, name, position=None):
        a = Activity(half_day_id=half_day.id, specific_objective=name,
                     description="-", duration_minutes=30, format="jeu",
                     position=position)
        db.session.add(a)
        db.session.commit()
        return a

    return _add


@pytest.fixture
def logged_in(client):
    resp = client.post("/auth/register", json={
        "email": "anna@example.org", "displayName": "Anna", "password": "secret123",
    })
    assert resp.status_code == 201
    return client
