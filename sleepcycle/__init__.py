"""
Sleepcycle: sleep-cycle and sleep-debt calculations.

Recommends bedtimes aligned to whole sleep cycles, works out the best
emergency sleep window before a hard wake deadline, and keeps a rolling
14-day sleep debt ledger from logged nights and naps.
"""

from .calculator import (
    compute_bedtime,
    compute_damage_control,
    compute_ideal_cycles,
    compute_night_debt,
    recommended_ideal_sleep_hours,
)
from .ledger import classify_debt, plan_night, recovery_plans, total_debt
from .records import build_nap_record, build_sleep_record
from .settings import sanitize_user_settings, sleep_settings
from .storage import JsonFileStorage, MemoryStorage, SleepStore, StoragePort
from .time_math import format_duration, format_time
from .types import (
    BedtimeCalculation,
    DamageControlResult,
    DebtLevel,
    NapRecord,
    NightPlan,
    SleepRecord,
    SleepSettings,
    UserSettings,
    WeeklyQuestionnaire,
)

__all__ = [
    # Types
    "SleepSettings",
    "UserSettings",
    "SleepRecord",
    "NapRecord",
    "WeeklyQuestionnaire",
    "BedtimeCalculation",
    "DamageControlResult",
    "DebtLevel",
    "NightPlan",
    # Formatting
    "format_duration",
    "format_time",
    # Calculator
    "compute_bedtime",
    "compute_ideal_cycles",
    "compute_damage_control",
    "compute_night_debt",
    "recommended_ideal_sleep_hours",
    # Ledger
    "total_debt",
    "classify_debt",
    "plan_night",
    "recovery_plans",
    # Records and settings
    "build_sleep_record",
    "build_nap_record",
    "sanitize_user_settings",
    "sleep_settings",
    # Storage
    "StoragePort",
    "MemoryStorage",
    "JsonFileStorage",
    "SleepStore",
]
