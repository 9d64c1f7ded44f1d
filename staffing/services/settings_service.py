"""
Notification settings - key/value switches and thresholds for detection jobs.

Values are stored as text: booleans as 'true'/'false', numbers as decimal
strings and lists as JSON.
"""

import json
import logging
import math
from functools import partial
from typing import Any

from sqlalchemy.orm import Session

from staffing.db.models import NotificationSetting

logger = logging.getLogger(__name__)


class SettingsValidationError(ValueError):
    """A setting value has the wrong type or is out of range."""


EVENT_REMINDER_ENABLED = "event_reminder_enabled"
EVENT_REMINDER_DAYS = "event_reminder_days"
DUPLICATE_DETECTION_ENABLED = "duplicate_detection_enabled"
DUPLICATE_THRESHOLD = "duplicate_threshold"
STAFFING_WARNING_ENABLED = "staffing_warning_enabled"
COUNSELLOR_OVERLOAD_THRESHOLD = "counsellor_overload_threshold"
ANOMALY_DETECTION_ENABLED = "anomaly_detection_enabled"
WEEKLY_REPORT_ENABLED = "weekly_report_enabled"
WEEKLY_REPORT_DAY = "weekly_report_day"

# key -> (default value, description)
DEFAULT_SETTINGS: dict[str, tuple[str, str]] = {
    EVENT_REMINDER_ENABLED: ("true", "Enable event reminders"),
    EVENT_REMINDER_DAYS: ("[30,14,7,3,1]", "Days before event to send reminders"),
    DUPLICATE_DETECTION_ENABLED: ("true", "Enable duplicate submission detection"),
    DUPLICATE_THRESHOLD: ("0.7", "Similarity threshold for duplicates (0-1)"),
    STAFFING_WARNING_ENABLED: ("true", "Enable counsellor overload warnings"),
    COUNSELLOR_OVERLOAD_THRESHOLD: ("5", "Max events per counsellor in 30 days"),
    ANOMALY_DETECTION_ENABLED: ("true", "Enable anomaly detection"),
    WEEKLY_REPORT_ENABLED: ("true", "Enable weekly intelligence report"),
    WEEKLY_REPORT_DAY: ("1", "Day of week for report (0=Sun, 1=Mon)"),
}

TRUE_VALUES = ("true", "1")


def ensure_default_settings(db: Session) -> int:
    """Insert any missing default rows. Returns count inserted."""
    existing = {key for (key,) in db.query(NotificationSetting.setting_key).all()}
    inserted = 0
    for key, (value, description) in DEFAULT_SETTINGS.items():
        if key in existing:
            continue
        db.add(NotificationSetting(setting_key=key, setting_value=value, description=description))
        inserted += 1
    if inserted:
        db.commit()
        logger.info("Seeded %s default notification settings", inserted)
    return inserted


def get_setting(db: Session, key: str) -> str | None:
    """Raw stored value, or None when the key is unknown."""
    row = db.query(NotificationSetting).filter(NotificationSetting.setting_key == key).first()
    return row.setting_value if row else None


def is_enabled(db: Session, key: str) -> bool:
    """A switch is on only when stored as 'true' or '1'."""
    return get_setting(db, key) in TRUE_VALUES


def get_float(db: Session, key: str) -> float:
    return float(_value_or_default(db, key))


def get_int(db: Session, key: str) -> int:
    return int(_value_or_default(db, key))


def get_int_list(db: Session, key: str) -> list[int]:
    return [int(v) for v in json.loads(_value_or_default(db, key))]


def _value_or_default(db: Session, key: str) -> str:
    value = get_setting(db, key)
    if value is None or value == "":
        return DEFAULT_SETTINGS[key][0]
    return value


def get_all_settings(db: Session) -> dict[str, dict[str, Any]]:
    """All settings as {key: {value, description}}."""
    rows = db.query(NotificationSetting).order_by(NotificationSetting.setting_key).all()
    return {
        row.setting_key: {"value": row.setting_value, "description": row.description}
        for row in rows
    }


def serialize_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _as_bool(key: str, value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str) and value.strip().lower() in ("true", "false", "1", "0"):
        return "true" if value.strip().lower() in TRUE_VALUES else "false"
    raise SettingsValidationError(f"{key} must be true or false")


def _as_int(key: str, value: Any, minimum: int, maximum: int | None = None) -> str:
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise SettingsValidationError(f"{key} must be a whole number") from None
    if isinstance(value, bool) or not isinstance(value, int):
        raise SettingsValidationError(f"{key} must be a whole number")
    if maximum is not None and not minimum <= value <= maximum:
        raise SettingsValidationError(f"{key} must be between {minimum} and {maximum}")
    if value < minimum:
        raise SettingsValidationError(f"{key} must be at least {minimum}")
    return str(value)


def _as_ratio(key: str, value: Any) -> str:
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise SettingsValidationError(f"{key} must be a number between 0 and 1") from None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SettingsValidationError(f"{key} must be a number between 0 and 1")
    if not math.isfinite(value) or not 0 <= value <= 1:
        raise SettingsValidationError(f"{key} must be a number between 0 and 1")
    return str(value)


def _as_day_list(key: str, value: Any) -> str:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise SettingsValidationError(f"{key} must be a list of day counts") from None
    if not isinstance(value, list) or any(
        isinstance(day, bool) or not isinstance(day, int) or day < 0 for day in value
    ):
        raise SettingsValidationError(f"{key} must be a list of day counts")
    return serialize_value(value)


# key -> validator returning the stored text
VALIDATORS = {
    EVENT_REMINDER_ENABLED: _as_bool,
    EVENT_REMINDER_DAYS: _as_day_list,
    DUPLICATE_DETECTION_ENABLED: _as_bool,
    DUPLICATE_THRESHOLD: _as_ratio,
    STAFFING_WARNING_ENABLED: _as_bool,
    COUNSELLOR_OVERLOAD_THRESHOLD: partial(_as_int, minimum=1),
    ANOMALY_DETECTION_ENABLED: _as_bool,
    WEEKLY_REPORT_ENABLED: _as_bool,
    WEEKLY_REPORT_DAY: partial(_as_int, minimum=0, maximum=6),
}


def validate_value(key: str, value: Any) -> str:
    validator = VALIDATORS.get(key)
    return validator(key, value) if validator else serialize_value(value)


def update_settings(db: Session, updates: dict[str, Any]) -> list[str]:
    """
    Update existing keys only; unknown keys are ignored.

    Every value is checked before anything is written.

    Returns the keys that were written.

    Raises:
        SettingsValidationError: a value has the wrong type or range
    """
    values = {key: validate_value(key, value) for key, value in updates.items()}
    rows = (
        db.query(NotificationSetting)
        .filter(NotificationSetting.setting_key.in_(list(values)))
        .all()
    )
    for row in rows:
        row.setting_value = values[row.setting_key]
    db.commit()
    return sorted(row.setting_key for row in rows)
