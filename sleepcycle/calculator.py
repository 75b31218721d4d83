"""
Sleep-cycle calculations.

Every function here is pure: settings and instants come in as arguments,
plain result objects come out.

Model:
- Sleep runs in fixed-length cycles (default 90 min); waking at a cycle
  boundary beats waking mid-cycle.
- Falling asleep takes a fixed number of minutes after going to bed.
- Debt for one night is the shortfall against the ideal, never a credit.
"""

import math
from datetime import datetime, timedelta

from .time_math import format_time, minutes_between, round_half_up
from .types import BedtimeCalculation, DamageControlResult, SleepSettings, TimeFormat

# Damage control thresholds (minutes)
MIN_AVAILABLE_TO_SLEEP = 30  # Below this, sleeping makes things worse
POWER_NAP_MINUTES = 20  # Shortest sleep ever recommended
REMAINDER_WARNING_MINUTES = 30  # Unused time worth telling the user about

# Age bands for recommended sleep: (exclusive upper age, hours)
AGE_SLEEP_BANDS = [
    (18, 9.0),  # Teenagers: 8-10 hours
    (26, 8.5),  # Young adults: 7-9 hours
    (65, 8.0),  # Adults: 7-9 hours
]
OLDER_ADULT_SLEEP_HOURS = 7.5  # 65+: 7-8 hours


def compute_bedtime(
    wake_time: datetime, target_cycles: int, settings: SleepSettings
) -> BedtimeCalculation:
    """
    Calculate the bedtime that yields whole cycles before a fixed wake time.

    bedtime = wake_time - (target_cycles * cycle_duration + fall_asleep_time)

    Args:
        wake_time: When the user has to be up
        target_cycles: Number of complete cycles wanted (typically 3-6)
        settings: Cycle length and fall-asleep time

    Returns:
        BedtimeCalculation with bedtime, wake time and planned sleep minutes
    """
    total_sleep_minutes = target_cycles * settings.cycle_duration
    total_minutes_needed = total_sleep_minutes + settings.fall_asleep_time

    return BedtimeCalculation(
        bedtime=wake_time - timedelta(minutes=total_minutes_needed),
        wake_time=wake_time,
        cycles=target_cycles,
        total_sleep_minutes=total_sleep_minutes,
    )


def compute_ideal_cycles(settings: SleepSettings) -> int:
    """
    Number of cycles closest to the ideal sleep duration.

    Rounds to nearest: this is a target, unlike a logged night which only
    counts complete cycles.
    """
    return round_half_up((settings.ideal_sleep_hours * 60) / settings.cycle_duration)


def compute_damage_control(
    now: datetime,
    wake_deadline: datetime,
    settings: SleepSettings,
    time_format: TimeFormat = "12h",
) -> DamageControlResult:
    """
    Decide the best sleep window when the wake deadline is already close.

    Tiers:
    - < 30 min available: don't sleep
    - >= 1 complete cycle fits after falling asleep: sleep that many cycles
    - 20 min up to one cycle: 20-minute power nap
    - otherwise: don't sleep

    Complete cycles always win over a partial one, and nothing shorter than
    a 20-minute nap is ever recommended.

    Args:
        now: Current time
        wake_deadline: Time the user must be awake
        settings: Cycle length and fall-asleep time
        time_format: Clock format used inside the recommendation text

    Returns:
        DamageControlResult describing whether and how long to sleep
    """
    cycle_duration = settings.cycle_duration
    fall_asleep_time = settings.fall_asleep_time

    available_minutes = minutes_between(now, wake_deadline)

    if available_minutes < MIN_AVAILABLE_TO_SLEEP:
        return DamageControlResult(
            can_sleep=False,
            cycles=0,
            recommendation=(
                "Don't sleep. At this point, 30 minutes or less will make you "
                "feel worse. Stay awake and take a 20-minute power nap later "
                "in the day."
            ),
            warning="Critical: Less than 30 minutes available",
        )

    effective_minutes = available_minutes - fall_asleep_time
    complete_cycles = math.floor(effective_minutes / cycle_duration)

    if complete_cycles >= 1:
        total_minutes = complete_cycles * cycle_duration
        sleep_until = now + timedelta(minutes=total_minutes + fall_asleep_time)
        wake_at = format_time(sleep_until, time_format)

        warning = None
        remainder_minutes = effective_minutes - total_minutes
        if remainder_minutes > REMAINDER_WARNING_MINUTES:
            warning = (
                f"You have {round_half_up(remainder_minutes)} extra minutes. "
                f"Consider setting alarm for {wake_at} to wake between cycles."
            )

        plural = "s" if complete_cycles > 1 else ""
        return DamageControlResult(
            can_sleep=True,
            cycles=complete_cycles,
            sleep_until=sleep_until,
            total_minutes=total_minutes,
            recommendation=(
                f"Sleep now until {wake_at} = {complete_cycles} complete "
                f"cycle{plural}. This is optimal - you'll wake between cycles."
            ),
            warning=warning,
        )

    if POWER_NAP_MINUTES <= effective_minutes < cycle_duration:
        nap_until = now + timedelta(minutes=POWER_NAP_MINUTES + fall_asleep_time)
        return DamageControlResult(
            can_sleep=True,
            cycles=0,
            sleep_until=nap_until,
            total_minutes=POWER_NAP_MINUTES,
            recommendation=(
                f"Take a 20-minute power nap until {format_time(nap_until, time_format)}. "
                "Not enough time for a full cycle, but this will help you "
                "function better."
            ),
            warning="Less than one full cycle available",
        )

    return DamageControlResult(
        can_sleep=False,
        cycles=0,
        recommendation="Stay awake and take a 20-minute power nap later in the day when possible.",
    )


def compute_night_debt(actual_sleep_minutes: float, ideal_sleep_minutes: float) -> float:
    """Shortfall for one night. Oversleeping gives zero, never a credit."""
    return max(0, ideal_sleep_minutes - actual_sleep_minutes)


def recommended_ideal_sleep_hours(age: float) -> float:
    """
    Recommended nightly sleep for an age.

    Bands: <18 -> 9h, <26 -> 8.5h, <65 -> 8h, else 7.5h.
    """
    for upper_age, hours in AGE_SLEEP_BANDS:
        if age < upper_age:
            return hours
    return OLDER_ADULT_SLEEP_HOURS
