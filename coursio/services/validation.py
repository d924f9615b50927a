"""Input checks shared by the HTTP layer and the services."""
from datetime import date

from ..models.activity import ACTIVITY_FORMATS
from .calendar import SLOTS_PER_WEEK, WEEKS_PER_COURSE, Period
from .errors import ValidationError

DEFAULT_DESCRIPTION = "Description à compléter"

PERIOD_ALIASES = {
    "matin": Period.MORNING,
    "morning": Period.MORNING,
    "apres_midi": Period.AFTERNOON,
    "afternoon": Period.AFTERNOON,
}


def _as_int(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def parse_week(value):
    week = _as_int(value)
    if week is None or not 1 <= week <= WEEKS_PER_COURSE:
        raise ValidationError(f"Week must be between 1 and {WEEKS_PER_COURSE}")
    return week


def parse_slot(value):
    slot = _as_int(value)
    if slot is None or not 0 <= slot < SLOTS_PER_WEEK:
        raise ValidationError(f"Slot must be between 0 and {SLOTS_PER_WEEK - 1}")
    return slot


def parse_date(value, field="date"):
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise ValidationError(f"{field} must be a YYYY-MM-DD date") from None


def parse_period(value):
    if isinstance(value, Period):
        return value
    period = PERIOD_ALIASES.get(value.strip().lower()) if isinstance(value, str) else None
    if period is None:
        raise ValidationError("Period must be 'matin' or 'apres_midi'")
    return period


def parse_duration(value):
    minutes = _as_int(value)
    if minutes is None or minutes <= 0:
        raise ValidationError("Duration (in minutes) must be a positive integer")
    return minutes


def parse_format(value):
    if not isinstance(value, str) or value not in ACTIVITY_FORMATS:
        raise ValidationError("Unknown activity format")
    return value


def parse_position(value):
    position = _as_int(value)
    if position is None:
        raise ValidationError("Position must be an integer")
    return position


def _text(value):
    return value.strip() if isinstance(value, str) else ""


def clean_activity_fields(data, partial=False):
    """Map request data onto Activity columns.

    Keys follow the API: ``name``, ``details``, ``duration``, ``format`` and
    ``materials``. With ``partial`` only the keys present are checked and
    returned.
    """
    fields = {}
    if not partial or "name" in data:
        objective = _text(data.get("name"))
        if not objective:
            raise ValidationError("Activity name is required")
        fields["specific_objective"] = objective
    if not partial or "details" in data:
        fields["description"] = _text(data.get("details")) or DEFAULT_DESCRIPTION
    if not partial or "duration" in data:
        fields["duration_minutes"] = parse_duration(data.get("duration"))
    if not partial or "format" in data:
        fields["format"] = parse_format(data.get("format"))
    if not partial or "materials" in data:
        fields["materials"] = _text(data.get("materials")) or None
    return fields


def parse_id(value, field="id"):
    ident = _as_int(value)
    if ident is None or ident <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return ident
