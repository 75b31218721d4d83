"""
Personalized suggestions from logged nights.

Each suggestion needs a minimum amount of data; below it the functions
return None instead of a guess.
"""

from collections import defaultdict
from typing import Sequence

from .ledger import WEEKDAYS
from .settings import SETTINGS_BOUNDS
from .types import SleepRecord

MIN_RATED_NIGHTS = 5
MIN_NIGHTS_PER_CYCLE_DURATION = 3
MIN_NIGHTS_PER_CYCLE_COUNT = 2
MIN_NIGHTS_FOR_WEEKDAY = 7
MIN_NIGHTS_PER_WEEKDAY = 2
DAMAGE_CONTROL_USES = 3


def _average(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _rated(records: Sequence[SleepRecord]) -> list[SleepRecord]:
    return [r for r in records if r.wake_quality_rating]


def suggest_cycle_duration(
    records: Sequence[SleepRecord], current_cycle_duration: int = 90
) -> int | None:
    """
    Cycle length the user seems to wake best from.

    Each rated night implies an observed cycle length of
    total_sleep_minutes / cycles. Lengths seen on at least three nights are
    compared by average rating.

    Returns:
        Suggested cycle length in minutes, or None with fewer than five rated
        nights, no qualifying length, or when it matches the current setting
    """
    rated = _rated(records)
    if len(rated) < MIN_RATED_NIGHTS:
        return None

    _, low, high, _ = SETTINGS_BOUNDS["cycleDuration"]
    ratings: dict[int, list[int]] = defaultdict(list)
    for record in rated:
        if record.cycles <= 0:
            continue
        observed = round(record.total_sleep_minutes / record.cycles)
        if low <= observed <= high:
            ratings[observed].append(record.wake_quality_rating)

    best_duration = None
    best_average = 0.0
    for duration, values in ratings.items():
        if len(values) >= MIN_NIGHTS_PER_CYCLE_DURATION and _average(values) > best_average:
            best_average = _average(values)
            best_duration = duration

    if best_duration is None or best_duration == current_cycle_duration:
        return None
    return best_duration


def best_cycle_count(records: Sequence[SleepRecord]) -> int | None:
    """Number of complete cycles after which wake ratings are highest."""
    rated = _rated(records)
    if len(rated) < MIN_RATED_NIGHTS:
        return None

    ratings: dict[int, list[int]] = defaultdict(list)
    for record in rated:
        ratings[record.cycles].append(record.wake_quality_rating)

    best_cycles = 0
    best_average = 0.0
    for cycles, values in ratings.items():
        if len(values) >= MIN_NIGHTS_PER_CYCLE_COUNT and _average(values) > best_average:
            best_average = _average(values)
            best_cycles = cycles

    return best_cycles if best_cycles > 0 else None


def worst_weekday(records: Sequence[SleepRecord]) -> str | None:
    """Weekday with the highest average debt, once there's a week of data."""
    if len(records) < MIN_NIGHTS_FOR_WEEKDAY:
        return None

    debts: dict[str, list[float]] = defaultdict(list)
    for record in records:
        debts[WEEKDAYS[record.date.weekday()]].append(record.debt_minutes)

    worst_day = None
    worst_average = 0.0
    for day, values in debts.items():
        if len(values) >= MIN_NIGHTS_PER_WEEKDAY and _average(values) > worst_average:
            worst_average = _average(values)
            worst_day = day
    return worst_day


def personalized_insights(records: Sequence[SleepRecord], cycle_duration: int = 90) -> list[str]:
    """
    Human-readable insight strings.

    Empty with less than a week of nights, or when nothing stands out.
    """
    if len(records) < MIN_NIGHTS_FOR_WEEKDAY:
        return []

    insights = []

    day = worst_weekday(records)
    if day:
        night_before = WEEKDAYS[(WEEKDAYS.index(day) - 1) % 7]
        insights.append(
            f"You typically sleep worst on {day}s. "
            f"Try going to bed 30 minutes earlier on {night_before} night."
        )

    cycles = best_cycle_count(records)
    if cycles:
        hours = cycles * cycle_duration / 60
        insights.append(
            f"You feel best after {cycles} cycles ({hours:.1f} hours) of sleep "
            "based on your wake quality ratings."
        )

    damage_control_count = sum(1 for r in records if r.is_damage_control)
    if damage_control_count >= DAMAGE_CONTROL_USES:
        insights.append(
            f"You've used Damage Control {damage_control_count} times recently. "
            "Consider setting a consistent bedtime to avoid emergency situations."
        )

    return insights
