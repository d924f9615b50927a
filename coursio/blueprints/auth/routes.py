from flask import current_app, jsonify, request
from werkzeug.security import check_password_hash, generate_password_hash
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy.exc import IntegrityError
from ...extensions import db
from ...models import Teacher
from ...services.errors import ConflictError, ValidationError
from ...services.schedule import ensure_default_course
from . import bp

MIN_PASSWORD_LENGTH = 6

@bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    name = (data.get("displayName") or "").strip()
    password = data.get("password") or ""
    if not email or not name:
        raise ValidationError("Email and display name are required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    t = Teacher(email=email, display_name=name,
                password_hash=generate_password_hash(password))
    db.session.add(t)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("An account already exists for this email") from None
    current_app.logger.info("teacher %s registered", t.id)

    login_user(t)
    course = ensure_default_course(t.id, current_app.config)
    return jsonify({"teacher": t.to_dict(), "defaultCourseId": course.id}), 201

@bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    t = Teacher.query.filter_by(email=email).one_or_none()
    if t and check_password_hash(t.password_hash, password):
        login_user(t)
        return jsonify({"teacher": t.to_dict()})
    return jsonify({"error": "Incorrect email or password"}), 401

@bp.post("/logout")
@login_required
def logout():
    logout_user()
    return "", 204

@bp.get("/me")
@login_required
def me():
    return jsonify({"teacher": current_user.to_dict()})
