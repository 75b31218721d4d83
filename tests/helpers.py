"""
Test helper functions for building records.

These functions can be imported by test modules to set up ledger and
insight scenarios.
"""

import sys
from datetime import date, datetime, timedelta
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sleepcycle.records import build_nap_record
from sleepcycle.types import NapRecord, SleepRecord


def make_record(
    night: date,
    total_sleep_minutes: float = 420,
    debt_minutes: float | None = None,
    ideal_sleep_minutes: float = 480,
    cycles: int | None = None,
    rating: int | None = None,
    is_damage_control: bool = False,
    record_id: str | None = None,
) -> SleepRecord:
    """
    Build a SleepRecord directly, bypassing build_sleep_record.

    Lets tests create records whose fields disagree with each other, e.g. a
    zero-sleep night that still carries debt.

    Args:
        night: Date the record is attributed to
        total_sleep_minutes: Minutes asleep
        debt_minutes: Debt field (defaults to ideal - total, floored at 0)
        ideal_sleep_minutes: Ideal minutes snapshot
        cycles: Complete cycles (defaults to floor(total / 90))
        rating: Optional wake quality rating
        is_damage_control: Damage control flag
        record_id: Explicit id (defaults to the date)

    Returns:
        SleepRecord with bedtime at 23:00 the evening before
    """
    bedtime = datetime.combine(night, datetime.min.time()) - timedelta(hours=1)
    sleep_start = bedtime + timedelta(minutes=15)
    if debt_minutes is None:
        debt_minutes = max(0, ideal_sleep_minutes - total_sleep_minutes)
    if cycles is None:
        cycles = int(total_sleep_minutes // 90)

    return SleepRecord(
        id=record_id or night.isoformat(),
        date=night,
        bedtime=bedtime,
        estimated_sleep_time=sleep_start,
        wake_time=sleep_start + timedelta(minutes=max(total_sleep_minutes, 1)),
        total_sleep_minutes=total_sleep_minutes,
        ideal_sleep_minutes=ideal_sleep_minutes,
        debt_minutes=debt_minutes,
        cycles=cycles,
        is_damage_control=is_damage_control,
        wake_quality_rating=rating,
    )


def make_nap(start: datetime, nap_type: str = "cycle") -> NapRecord:
    """Nap record with a deterministic id."""
    return build_nap_record(start, nap_type, record_id=f"nap-{start.isoformat()}")


def nights_before(today: date, count: int) -> list[date]:
    """The `count` dates ending with today, oldest first."""
    return [today - timedelta(days=offset) for offset in range(count - 1, -1, -1)]
