"""
Data structures for sleep logging and calculation results.

Records (SleepRecord, NapRecord, WeeklyQuestionnaire) are value objects:
none owns another, they only relate through matching dates at query time.
Result types are plain containers returned by the calculator and ledger.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal

TimeFormat = Literal["12h", "24h"]
ThemePreference = Literal["light", "dark"]
NapType = Literal["power", "cycle"]
RiskScore = Literal["low", "medium", "high"]
DebtTier = Literal["good", "caution", "moderate", "critical"]


# =============================================================================
# Settings
# =============================================================================


@dataclass
class SleepSettings:
    """The three values every sleep calculation depends on."""

    cycle_duration: int = 90  # minutes, 60-120
    fall_asleep_time: int = 15  # minutes, 0-120
    ideal_sleep_hours: float = 8.0  # 4-12, derived from age at onboarding


@dataclass
class UserSettings:
    """Persisted singleton of user preferences (always sanitized)."""

    age: int = 30
    cycle_duration: int = 90
    fall_asleep_time: int = 15
    ideal_sleep_hours: float = 8.0
    notifications_enabled: bool = False
    bedtime_reminder_minutes: int = 30  # Minutes before bedtime to remind
    time_format: TimeFormat = "12h"
    theme_preference: ThemePreference = "light"


# =============================================================================
# Records
# =============================================================================


@dataclass
class SleepRecord:
    """
    One logged night of sleep.

    Invariants: bedtime < wake_time, debt_minutes >= 0, and cycles is the
    floor of total_sleep_minutes / cycle_duration (complete cycles only).
    """

    id: str
    date: date  # Calendar day the session is attributed to
    bedtime: datetime
    estimated_sleep_time: datetime  # bedtime + fall asleep time
    wake_time: datetime
    total_sleep_minutes: float  # wake_time - estimated_sleep_time, in [0, 1440]
    ideal_sleep_minutes: float  # Snapshot of the setting at logging time
    debt_minutes: float
    cycles: int
    is_damage_control: bool = False
    wake_quality_rating: int | None = None  # 1-5
    notes: str | None = None


@dataclass
class NapRecord:
    """A logged nap. Duration and debt credit are fixed by nap type."""

    id: str
    date: date
    start_time: datetime
    duration: int  # 20 (power) or 90 (cycle)
    type: NapType
    debt_reduction: int  # Flat credit: 15 (power) or 60 (cycle)


FeelingOnWaking = Literal["exhausted", "tired", "acceptable", "good"]
SleepRestorative = Literal["yes", "no", "partially"]
PostExertionMalaise = Literal["never", "sometimes", "often", "always"]


@dataclass
class QuestionnaireAnswers:
    """The five self-report answers of the weekly questionnaire."""

    feeling_on_waking: FeelingOnWaking
    sleep_restorative: SleepRestorative
    post_exertion_malaise: PostExertionMalaise
    too_tired_days_count: int  # 0-7
    concentration_difficulties: bool


@dataclass
class WeeklyQuestionnaire:
    """Submitted questionnaire; created once and never mutated."""

    id: str
    week_start_date: date  # Monday of the week
    feeling_on_waking: FeelingOnWaking
    sleep_restorative: SleepRestorative
    post_exertion_malaise: PostExertionMalaise
    too_tired_days_count: int
    concentration_difficulties: bool
    risk_score: RiskScore


# =============================================================================
# Calculation results
# =============================================================================


@dataclass
class BedtimeCalculation:
    """Bedtime aligned to whole cycles before a fixed wake time."""

    bedtime: datetime
    wake_time: datetime
    cycles: int
    total_sleep_minutes: int


@dataclass
class DamageControlResult:
    """Best achievable sleep window before a hard wake deadline."""

    can_sleep: bool
    cycles: int
    recommendation: str
    sleep_until: datetime | None = None
    total_minutes: int | None = None
    warning: str | None = None


@dataclass
class DebtLevel:
    """Severity tier for a total debt figure."""

    level: DebtTier
    label: str


@dataclass
class NightPlan:
    """
    Normal-mode bedtime plan for tonight.

    The debt_adjusted_* fields and recovery_nights are only populated when
    there is outstanding debt whose tier calls for going to bed earlier.
    """

    bedtime: datetime
    sleep_time: datetime  # bedtime + fall asleep time
    wake_time: datetime
    total_hours: float
    debt_minutes: float
    debt_adjusted_bedtime: datetime | None = None
    debt_adjusted_sleep_time: datetime | None = None
    debt_adjusted_total_hours: float | None = None
    debt_recovery_minutes: int | None = None
    recovery_nights: int | None = None


RecoveryPlanType = Literal["progressive", "intensive"]


@dataclass
class RecoveryPlan:
    """A suggested strategy for paying back accumulated debt."""

    id: str
    type: RecoveryPlanType
    debt_to_recover: float  # minutes
    duration: int  # days
    description: str
    estimated_recovery_time: int  # days
    daily_extra_sleep: int | None = None  # minutes
    weekend_extra_sleep: int | None = None  # minutes
    naps_per_week: int | None = None
    nap_duration: int | None = None  # minutes


@dataclass
class HistorySummary:
    """Aggregate statistics over a set of sleep records."""

    record_count: int
    total_debt_minutes: float
    average_debt_minutes: float
    average_sleep_minutes: float
    worst_night: SleepRecord
    worst_weekday: str
    worst_weekday_average_debt: float
