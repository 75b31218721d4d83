"""
Creation and serialization of sleep, nap and questionnaire records.

Records are stored as JSON with camelCase keys, calendar dates as
"YYYY-MM-DD" and instants as ISO-8601 strings.
"""

import dataclasses
import math
from dataclasses import asdict
from datetime import date, datetime, timedelta
from typing import Any, Iterable
from uuid import uuid4

from .calculator import compute_night_debt
from .time_math import MINUTES_PER_DAY, minutes_between, parse_iso_date, parse_iso_datetime
from .types import NapRecord, NapType, SleepRecord, SleepSettings, WeeklyQuestionnaire

# Nap type -> (duration minutes, flat debt credit minutes)
# Credit is fixed per type regardless of how long the nap actually lasted.
NAP_PROFILES: dict[str, tuple[int, int]] = {
    "power": (20, 15),
    "cycle": (90, 60),
}

MIN_WAKE_RATING = 1
MAX_WAKE_RATING = 5


def new_record_id() -> str:
    return uuid4().hex


def _valid_rating(rating: Any) -> bool:
    return (
        isinstance(rating, int)
        and not isinstance(rating, bool)
        and MIN_WAKE_RATING <= rating <= MAX_WAKE_RATING
    )


def build_sleep_record(
    bedtime: datetime,
    wake_time: datetime,
    settings: SleepSettings,
    fall_asleep_minutes: int | None = None,
    wake_quality_rating: int | None = None,
    notes: str | None = None,
    is_damage_control: bool = False,
    record_id: str | None = None,
) -> SleepRecord | None:
    """
    Turn a logged bedtime/wake time pair into a SleepRecord.

    Args:
        bedtime: When the user went to bed
        wake_time: When the user woke up (must be after bedtime)
        settings: Settings snapshot used for cycles and ideal duration
        fall_asleep_minutes: Override for this night (defaults to settings)
        wake_quality_rating: Optional 1-5 rating
        notes: Optional free text
        is_damage_control: True when the night followed a damage control plan
        record_id: Explicit id (a fresh one is generated otherwise)

    Returns:
        SleepRecord, or None if the input can't describe a real night
        (wake not after bed, more than 24h in bed, rating not an integer
        1-5, negative fall-asleep override)
    """
    if bedtime >= wake_time:
        return None

    minutes_in_bed = minutes_between(bedtime, wake_time)
    if minutes_in_bed < 0 or minutes_in_bed > MINUTES_PER_DAY:
        return None

    if wake_quality_rating is not None and not _valid_rating(wake_quality_rating):
        return None

    if fall_asleep_minutes is None:
        fall_asleep_minutes = settings.fall_asleep_time
    elif isinstance(fall_asleep_minutes, bool) or fall_asleep_minutes < 0:
        return None

    estimated_sleep_time = bedtime + timedelta(minutes=fall_asleep_minutes)
    total_sleep_minutes = max(
        0, min(MINUTES_PER_DAY, minutes_between(estimated_sleep_time, wake_time))
    )
    ideal_sleep_minutes = settings.ideal_sleep_hours * 60

    return SleepRecord(
        id=record_id or new_record_id(),
        date=estimated_sleep_time.date(),
        bedtime=bedtime,
        estimated_sleep_time=estimated_sleep_time,
        wake_time=wake_time,
        total_sleep_minutes=total_sleep_minutes,
        ideal_sleep_minutes=ideal_sleep_minutes,
        debt_minutes=compute_night_debt(total_sleep_minutes, ideal_sleep_minutes),
        cycles=math.floor(total_sleep_minutes / settings.cycle_duration),
        is_damage_control=is_damage_control,
        wake_quality_rating=wake_quality_rating,
        notes=notes or None,
    )


def build_nap_record(
    start_time: datetime, nap_type: NapType, record_id: str | None = None
) -> NapRecord:
    """Log a nap; duration and debt credit come from NAP_PROFILES."""
    if nap_type not in NAP_PROFILES:
        raise ValueError(f"Unknown nap type: {nap_type}")

    duration, debt_reduction = NAP_PROFILES[nap_type]
    return NapRecord(
        id=record_id or new_record_id(),
        date=start_time.date(),
        start_time=start_time,
        duration=duration,
        type=nap_type,
        debt_reduction=debt_reduction,
    )


def apply_check_in(
    records: Iterable[SleepRecord],
    today: date,
    rating: int,
    notes: str | None = None,
) -> SleepRecord | None:
    """
    Attach a morning wake-quality rating to today's record.

    Returns an updated copy (the input is left untouched), or None when
    there is no record for today or the rating is outside 1-5.
    """
    if not _valid_rating(rating):
        return None

    for record in records:
        if record.date == today:
            return dataclasses.replace(record, wake_quality_rating=rating, notes=notes or record.notes)
    return None


def extra_minutes(record: SleepRecord, cycle_duration: int) -> float:
    """Minutes slept past the last complete cycle."""
    return record.total_sleep_minutes % cycle_duration


# =============================================================================
# Serialization
# =============================================================================


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _to_wire(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _number(data: dict[str, Any], key: str, default: float | None = None) -> Any:
    """Numeric field of a stored record. Raises TypeError for non-numbers (and bools)."""
    value = data[key] if default is None else data.get(key, default)
    if value is None and default is not None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value != value:
        raise TypeError(f"{key} must be a number, got {value!r}")
    return value


def _to_dict(record: Any) -> dict[str, Any]:
    return {
        _camel(key): _to_wire(value)
        for key, value in asdict(record).items()
        if value is not None
    }


def sleep_record_to_dict(record: SleepRecord) -> dict[str, Any]:
    return _to_dict(record)


def sleep_record_from_dict(data: dict[str, Any]) -> SleepRecord:
    """Inverse of sleep_record_to_dict. Raises KeyError on missing fields."""
    return SleepRecord(
        id=str(data["id"]),
        date=parse_iso_date(data["date"]),
        bedtime=parse_iso_datetime(data["bedtime"]),
        estimated_sleep_time=parse_iso_datetime(data["estimatedSleepTime"]),
        wake_time=parse_iso_datetime(data["wakeTime"]),
        total_sleep_minutes=_number(data, "totalSleepMinutes"),
        ideal_sleep_minutes=_number(data, "idealSleepMinutes"),
        debt_minutes=_number(data, "debtMinutes", default=0),
        cycles=_number(data, "cycles"),
        is_damage_control=bool(data.get("isDamageControl", False)),
        wake_quality_rating=data.get("wakeQualityRating"),
        notes=data.get("notes"),
    )


def nap_record_to_dict(nap: NapRecord) -> dict[str, Any]:
    return _to_dict(nap)


def nap_record_from_dict(data: dict[str, Any]) -> NapRecord:
    return NapRecord(
        id=str(data["id"]),
        date=parse_iso_date(data["date"]),
        start_time=parse_iso_datetime(data["startTime"]),
        duration=_number(data, "duration"),
        type=data["type"],
        debt_reduction=_number(data, "debtReduction", default=0),
    )


def questionnaire_to_dict(questionnaire: WeeklyQuestionnaire) -> dict[str, Any]:
    return _to_dict(questionnaire)


def questionnaire_from_dict(data: dict[str, Any]) -> WeeklyQuestionnaire:
    return WeeklyQuestionnaire(
        id=str(data["id"]),
        week_start_date=parse_iso_date(data["weekStartDate"]),
        feeling_on_waking=data["feelingOnWaking"],
        sleep_restorative=data["sleepRestorative"],
        post_exertion_malaise=data["postExertionMalaise"],
        too_tired_days_count=data["tooTiredDaysCount"],
        concentration_difficulties=bool(data["concentrationDifficulties"]),
        risk_score=data["riskScore"],
    )
