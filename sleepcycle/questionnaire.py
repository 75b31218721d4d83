"""
Weekly fatigue questionnaire scoring and the chronic-fatigue alert.

Simple threshold counting: each answer that points towards fatigue is one
risk factor, and the alert needs several high-risk weeks on top of a
large sleep debt.
"""

from datetime import date, datetime, timedelta
from typing import Sequence

from .records import new_record_id
from .types import QuestionnaireAnswers, RiskScore, WeeklyQuestionnaire

HIGH_RISK_FACTORS = 4
MEDIUM_RISK_FACTORS = 2
TOO_TIRED_DAYS_THRESHOLD = 4

# Chronic fatigue alert
ALERT_WINDOW_WEEKS = 4  # Most recent questionnaires considered
ALERT_HIGH_RISK_WEEKS = 3
ALERT_DEBT_HOURS = 14  # Debt must exceed this

PROMPT_INTERVAL_DAYS = 7


def count_risk_factors(answers: QuestionnaireAnswers) -> int:
    """Number of answers (out of five) that indicate fatigue."""
    factors = [
        answers.feeling_on_waking in ("exhausted", "tired"),
        answers.sleep_restorative in ("no", "partially"),
        answers.post_exertion_malaise in ("often", "always"),
        answers.too_tired_days_count >= TOO_TIRED_DAYS_THRESHOLD,
        answers.concentration_difficulties,
    ]
    return sum(1 for factor in factors if factor)


def compute_risk_score(answers: QuestionnaireAnswers) -> RiskScore:
    """4+ risk factors is high, 2-3 medium, otherwise low."""
    factors = count_risk_factors(answers)
    if factors >= HIGH_RISK_FACTORS:
        return "high"
    elif factors >= MEDIUM_RISK_FACTORS:
        return "medium"
    return "low"


def week_start_date(today: date) -> date:
    """Monday of the week containing today."""
    return today - timedelta(days=today.weekday())


def build_questionnaire(
    answers: QuestionnaireAnswers, today: date, record_id: str | None = None
) -> WeeklyQuestionnaire:
    """Score the answers and stamp them with the week they belong to."""
    return WeeklyQuestionnaire(
        id=record_id or new_record_id(),
        week_start_date=week_start_date(today),
        feeling_on_waking=answers.feeling_on_waking,
        sleep_restorative=answers.sleep_restorative,
        post_exertion_malaise=answers.post_exertion_malaise,
        too_tired_days_count=answers.too_tired_days_count,
        concentration_difficulties=answers.concentration_difficulties,
        risk_score=compute_risk_score(answers),
    )


def should_alert_chronic_fatigue(
    questionnaires: Sequence[WeeklyQuestionnaire], total_debt_minutes: float
) -> bool:
    """
    Whether to show the chronic fatigue alert.

    Args:
        questionnaires: Submitted questionnaires, most recent first
        total_debt_minutes: Current total debt

    Returns:
        False until four questionnaires exist; then True when at least three
        of the last four are high risk and debt exceeds 14 hours
    """
    recent = questionnaires[:ALERT_WINDOW_WEEKS]
    if len(recent) < ALERT_WINDOW_WEEKS:
        return False

    high_risk_weeks = sum(1 for q in recent if q.risk_score == "high")
    return high_risk_weeks >= ALERT_HIGH_RISK_WEEKS and total_debt_minutes / 60 > ALERT_DEBT_HOURS


def should_show_questionnaire_prompt(
    has_logged_sleep: bool,
    app_start: datetime | None,
    last_prompt: datetime | None,
    now: datetime,
) -> bool:
    """
    Whether the weekly questionnaire is due.

    Only after the first logged night, no sooner than a week after the app
    was first used, and at most once a week.
    """
    if not has_logged_sleep or app_start is None:
        return False

    if (now - app_start).days < PROMPT_INTERVAL_DAYS:
        return False

    if last_prompt is None:
        return True

    return (now - last_prompt).days >= PROMPT_INTERVAL_DAYS
