from flask import current_app, jsonify, request
from flask_login import login_required, current_user
from ...services import activities, schedule
from ...services.errors import ValidationError
from ...services.validation import parse_id, parse_position
from . import bp

COURSE_INPUT = {
    "teacher": "teacher",
    "className": "class_name",
    "room": "room",
    "moduleNumber": "module_number",
    "moduleName": "module_name",
}

def owner_id():
    return current_user.id

def json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("A JSON object body is required")
    return data

def half_day_payload(half_day, items):
    d = half_day.to_dict()
    d["activities"] = [a.to_dict() for a in items]
    return d

# ---------- Courses ----------
@bp.get("/courses")
@login_required
def courses():
    items = schedule.list_courses(owner_id())
    return jsonify({"courses": [c.to_dict() for c in items]})

@bp.post("/courses")
@login_required
def create_course():
    data = json_body()
    fields = {}
    for key, column in COURSE_INPUT.items():
        value = data.get(key)
        value = value.strip() if isinstance(value, str) else ""
        if not value:
            raise ValidationError(f"{key} is required")
        fields[column] = value
    course = schedule.create_course(owner_id(), fields,
                                    data.get("startDate"), data.get("startPeriod"))
    return jsonify({"course": course.to_dict()}), 201

@bp.get("/courses/<int:cid>")
@login_required
def course_detail(cid):
    return jsonify({"course": schedule.get_course(cid, owner_id()).to_dict()})

@bp.delete("/courses/<int:cid>")
@login_required
def delete_course(cid):
    schedule.delete_course(cid, owner_id())
    return "", 204

@bp.get("/courses/<int:cid>/half-days")
@login_required
def half_days(cid):
    items = schedule.ensure_half_days(cid, owner_id())
    return jsonify({"halfDays": [
        half_day_payload(hd, activities.list_activities(hd.id)) for hd in items
    ]})

@bp.post("/courses/<int:cid>/reschedule")
@login_required
def reschedule(cid):
    data = json_body()
    items = schedule.reschedule(cid, data.get("week"), data.get("startDate"), owner_id())
    current_app.logger.info("teacher %s rescheduled course %s", owner_id(), cid)
    return jsonify({"halfDays": [hd.to_dict() for hd in items]})

# ---------- Half-days ----------
@bp.patch("/half-days/<int:hid>")
@login_required
def update_half_day(hid):
    data = json_body()
    half_day = schedule.update_half_day_notes(hid, data.get("notes"), owner_id())
    return jsonify({"halfDay": half_day.to_dict()})

@bp.get("/half-days/<int:hid>/activities")
@login_required
def half_day_activities(hid):
    items = activities.list_activities(hid, owner_id())
    return jsonify({"activities": [a.to_dict() for a in items]})

@bp.post("/half-days/<int:hid>/activities")
@login_required
def append_to_half_day(hid):
    activity = activities.append(hid, json_body(), owner_id())
    return jsonify({"activity": activity.to_dict()}), 201

# ---------- Activities ----------
@bp.post("/courses/<int:cid>/activities")
@login_required
def create_activity(cid):
    data = json_body()
    half_day = schedule.resolve_half_day(cid, data.get("week"), data.get("slot"), owner_id())
    activity = activities.append(half_day.id, data, owner_id())
    return jsonify({
        "activityId": activity.id,
        "halfDayId": half_day.id,
        "sessionDate": half_day.session_date.isoformat(),
        "period": half_day.period.value,
        "position": activity.position,
    }), 201

@bp.patch("/activities/<int:aid>")
@login_required
def edit_activity(aid):
    data = json_body()
    key = None
    if "week" in data or "slot" in data:
        key = (data.get("week"), data.get("slot"))
    activity = activities.edit(aid, data, key, owner_id())
    return jsonify({"activity": activity.to_dict()})

@bp.post("/activities/<int:aid>/move")
@login_required
def move_activity(aid):
    data = json_body()
    target = parse_id(data.get("halfDayId"), "halfDayId")
    requested = None
    if data.get("position") is not None:
        # clients count from 1, the sequencer takes an insertion index
        requested = parse_position(data["position"]) - 1
    position = activities.move(aid, target, requested, owner_id())
    return jsonify({"activityId": aid, "halfDayId": target, "position": position})

@bp.delete("/activities/<int:aid>")
@login_required
def delete_activity(aid):
    activities.delete(aid, owner_id())
    return "", 204
