"""
Sleep debt ledger.

Debt is recomputed from the records on every query; there is no stored
running total. Editing a past record is therefore always reflected in the
next query, at the cost of one scan over the (small) trailing window.
"""

import math
from collections import defaultdict
from datetime import datetime, time, timedelta
from typing import Iterable

from .calculator import compute_bedtime
from .time_math import minutes_between
from .types import (
    DebtLevel,
    DebtTier,
    HistorySummary,
    NapRecord,
    NightPlan,
    RecoveryPlan,
    SleepRecord,
    SleepSettings,
)

DEFAULT_WINDOW_DAYS = 14

# Debt tiers: (exclusive upper bound in hours, tier, label)
DEBT_TIERS: list[tuple[float, DebtTier, str]] = [
    (2, "good", "Good"),
    (7, "caution", "Caution"),
    (14, "moderate", "Moderate"),
]

# Minutes to move bedtime earlier for each tier
DEBT_RECOVERY_MINUTES: dict[str, int] = {
    "good": 0,
    "caution": 30,
    "moderate": 60,
    "critical": 90,
}
RECOVERY_PER_NIGHT_MINUTES = 35  # Average payback per night with an earlier bedtime

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def records_in_window(
    records: Iterable[SleepRecord], now: datetime, window_days: int = DEFAULT_WINDOW_DAYS
) -> list[SleepRecord]:
    """Sleep records whose date (at midnight) falls in [now - window_days, now]."""
    start = now - timedelta(days=window_days)
    return [r for r in records if start <= datetime.combine(r.date, time.min) <= now]


def naps_in_window(
    naps: Iterable[NapRecord], now: datetime, window_days: int = DEFAULT_WINDOW_DAYS
) -> list[NapRecord]:
    """Nap records whose start time falls in [now - window_days, now]."""
    start = now - timedelta(days=window_days)
    return [n for n in naps if start <= n.start_time <= now]


def total_debt(
    records: Iterable[SleepRecord],
    naps: Iterable[NapRecord],
    now: datetime,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> float:
    """
    Current sleep debt in minutes over the trailing window.

    Sums debt of nights with positive recorded sleep, subtracts the flat
    credit of every nap in the window, and clamps at zero. Nights with zero
    total sleep are left out entirely, even if their debt field is nonzero.

    Args:
        records: All known sleep records
        naps: All known nap records
        now: End of the window
        window_days: Length of the trailing window

    Returns:
        Non-negative debt in minutes (0 when no nights fall in the window)
    """
    recent = records_in_window(records, now, window_days)
    if not recent:
        return 0

    sleep_debt = sum(r.debt_minutes or 0 for r in recent if r.total_sleep_minutes > 0)
    nap_recovery = sum(n.debt_reduction or 0 for n in naps_in_window(naps, now, window_days))

    return max(0, sleep_debt - nap_recovery)


def classify_debt(total_minutes: float) -> DebtLevel:
    """
    Classify total debt into a severity tier.

    <2h good, <7h caution, <14h moderate, else critical. Each bound is
    exclusive, so exactly 7h is moderate.
    """
    hours = total_minutes / 60
    for upper_hours, level, label in DEBT_TIERS:
        if hours < upper_hours:
            return DebtLevel(level=level, label=label)
    return DebtLevel(level="critical", label="Critical")


def debt_recovery_minutes(level: DebtTier) -> int:
    """How much earlier to go to bed for a given debt tier."""
    return DEBT_RECOVERY_MINUTES[level]


def plan_night(
    wake_time: datetime,
    cycles: int,
    settings: SleepSettings,
    current_debt: float,
) -> NightPlan:
    """
    Plan tonight's bedtime, moved earlier when there is debt to pay back.

    Args:
        wake_time: Tomorrow's wake time
        cycles: Number of cycles wanted
        settings: Cycle length and fall-asleep time
        current_debt: Current total debt in minutes

    Returns:
        NightPlan with the standard and, if warranted, debt-adjusted bedtime
    """
    calculation = compute_bedtime(wake_time, cycles, settings)
    fall_asleep = timedelta(minutes=settings.fall_asleep_time)

    plan = NightPlan(
        bedtime=calculation.bedtime,
        sleep_time=calculation.bedtime + fall_asleep,
        wake_time=calculation.wake_time,
        total_hours=calculation.total_sleep_minutes / 60,
        debt_minutes=current_debt,
    )

    if current_debt <= 0:
        return plan

    recovery_minutes = debt_recovery_minutes(classify_debt(current_debt).level)
    if recovery_minutes > 0:
        adjusted_bedtime = calculation.bedtime - timedelta(minutes=recovery_minutes)
        adjusted_sleep_time = adjusted_bedtime + fall_asleep

        plan.debt_adjusted_bedtime = adjusted_bedtime
        plan.debt_adjusted_sleep_time = adjusted_sleep_time
        plan.debt_adjusted_total_hours = minutes_between(adjusted_sleep_time, wake_time) / 60
        plan.debt_recovery_minutes = recovery_minutes
        plan.recovery_nights = math.ceil(current_debt / RECOVERY_PER_NIGHT_MINUTES)

    return plan


def recovery_plans(total_debt_minutes: float) -> list[RecoveryPlan]:
    """The two standard recovery strategies for the current debt."""
    return [
        RecoveryPlan(
            id="progressive",
            type="progressive",
            debt_to_recover=total_debt_minutes,
            duration=14,
            daily_extra_sleep=30,
            description="Add 30 minutes of sleep each night for 2 weeks",
            estimated_recovery_time=14,
        ),
        RecoveryPlan(
            id="intensive",
            type="intensive",
            debt_to_recover=total_debt_minutes,
            duration=7,
            weekend_extra_sleep=120,
            naps_per_week=5,
            nap_duration=20,
            description="Sleep 2 extra hours on weekends + daily 20-minute naps",
            estimated_recovery_time=7,
        ),
    ]


def cumulative_debt_series(records: Iterable[SleepRecord]) -> list[tuple[str, float]]:
    """Running debt total per night, oldest first, for charting."""
    cumulative = 0.0
    series = []
    for record in sorted(records, key=lambda r: r.date):
        cumulative += record.debt_minutes
        series.append((record.date.isoformat(), cumulative))
    return series


def summarize_history(records: list[SleepRecord]) -> HistorySummary | None:
    """Totals, averages and worst night/weekday for a list of records."""
    if not records:
        return None

    total = sum(r.debt_minutes for r in records)
    worst_night = max(records, key=lambda r: r.debt_minutes)

    by_weekday: dict[str, list[float]] = defaultdict(list)
    for record in records:
        by_weekday[WEEKDAYS[record.date.weekday()]].append(record.debt_minutes)
    worst_day, worst_debts = max(by_weekday.items(), key=lambda item: sum(item[1]) / len(item[1]))

    return HistorySummary(
        record_count=len(records),
        total_debt_minutes=total,
        average_debt_minutes=total / len(records),
        average_sleep_minutes=sum(r.total_sleep_minutes for r in records) / len(records),
        worst_night=worst_night,
        worst_weekday=worst_day,
        worst_weekday_average_debt=sum(worst_debts) / len(worst_debts),
    )
