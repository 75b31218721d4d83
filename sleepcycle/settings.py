"""
User settings sanitization.

Persisted settings may be missing, partial, hand-edited or written by an
older version. They are cleaned once at the storage boundary so the
calculator only ever sees values inside their documented bounds.
"""

import logging
from dataclasses import asdict
from typing import Any, Mapping

from .calculator import recommended_ideal_sleep_hours
from .types import SleepSettings, UserSettings

logger = logging.getLogger(__name__)

# Numeric settings: wire key -> (field name, low, high, default)
# A default of None means "derive from age".
SETTINGS_BOUNDS: dict[str, tuple[str, float, float, float | None]] = {
    "age": ("age", 1, 120, 30),
    "cycleDuration": ("cycle_duration", 60, 120, 90),
    "fallAsleepTime": ("fall_asleep_time", 0, 120, 15),
    "idealSleepHours": ("ideal_sleep_hours", 4, 12, None),
    "bedtimeReminderMinutes": ("bedtime_reminder_minutes", 0, 240, 30),
}
INTEGER_SETTINGS = {"age", "cycle_duration", "fall_asleep_time", "bedtime_reminder_minutes"}

TIME_FORMATS = ("12h", "24h")
THEME_PREFERENCES = ("light", "dark")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == value


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def sanitize_user_settings(raw: Mapping[str, Any] | None) -> UserSettings:
    """
    Build a valid UserSettings from an arbitrary mapping.

    Numeric fields are clamped to SETTINGS_BOUNDS, values of the wrong type
    fall back to defaults, enums are coerced to a valid member and unknown
    keys are ignored. Never raises.

    Args:
        raw: Deserialized settings blob with camelCase keys (may be None)

    Returns:
        UserSettings safe to hand to the calculator
    """
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.warning("Discarding settings blob of type %s", type(raw).__name__)
        raw = {}

    values: dict[str, Any] = {}
    for key, (field_name, low, high, default) in SETTINGS_BOUNDS.items():
        value = raw.get(key)
        if not _is_number(value):
            if key in raw:
                logger.warning("Invalid value for %s: %r, using default", key, value)
            values[field_name] = default
            continue

        clamped = _clamp(value, low, high)
        if clamped != value:
            logger.warning("Clamped %s from %r to %r", key, value, clamped)
        values[field_name] = clamped

    for field_name in INTEGER_SETTINGS:
        values[field_name] = int(round(values[field_name]))

    if values["ideal_sleep_hours"] is None:
        values["ideal_sleep_hours"] = recommended_ideal_sleep_hours(values["age"])
    values["ideal_sleep_hours"] = float(values["ideal_sleep_hours"])

    time_format = raw.get("timeFormat")
    theme = raw.get("themePreference")
    notifications = raw.get("notificationsEnabled")

    return UserSettings(
        **values,
        notifications_enabled=notifications if isinstance(notifications, bool) else False,
        time_format=time_format if time_format in TIME_FORMATS else "12h",
        theme_preference=theme if theme in THEME_PREFERENCES else "light",
    )


def settings_for_age(age: int, **overrides: Any) -> UserSettings:
    """
    Initial settings for a new user.

    The ideal sleep duration comes from the age band; any camelCase
    override (e.g. cycleDuration=100) is applied before sanitizing.
    """
    raw = {"age": age, "idealSleepHours": recommended_ideal_sleep_hours(age)}
    raw.update(overrides)
    return sanitize_user_settings(raw)


def sleep_settings(user_settings: UserSettings) -> SleepSettings:
    """The subset of user settings the calculator needs."""
    return SleepSettings(
        cycle_duration=user_settings.cycle_duration,
        fall_asleep_time=user_settings.fall_asleep_time,
        ideal_sleep_hours=user_settings.ideal_sleep_hours,
    )


def user_settings_to_dict(user_settings: UserSettings) -> dict[str, Any]:
    """Serialize settings with camelCase keys for storage."""
    data = asdict(user_settings)
    return {
        "age": data["age"],
        "cycleDuration": data["cycle_duration"],
        "fallAsleepTime": data["fall_asleep_time"],
        "idealSleepHours": data["ideal_sleep_hours"],
        "notificationsEnabled": data["notifications_enabled"],
        "bedtimeReminderMinutes": data["bedtime_reminder_minutes"],
        "timeFormat": data["time_format"],
        "themePreference": data["theme_preference"],
    }
