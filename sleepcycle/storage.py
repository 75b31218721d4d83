"""
Key-value persistence for records and settings.

StoragePort is the only thing the store needs: get/set/remove of string
values by key. Construct one at application start and pass it to
SleepStore; nothing in the calculator or ledger touches storage.
"""

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Protocol, TypeVar

from . import ledger
from .questionnaire import should_show_questionnaire_prompt
from .records import (
    nap_record_from_dict,
    nap_record_to_dict,
    questionnaire_from_dict,
    questionnaire_to_dict,
    sleep_record_from_dict,
    sleep_record_to_dict,
)
from .settings import sanitize_user_settings, user_settings_to_dict
from .time_math import parse_iso_datetime
from .types import NapRecord, SleepRecord, UserSettings, WeeklyQuestionnaire

logger = logging.getLogger(__name__)

T = TypeVar("T")

STORAGE_KEYS = {
    "SLEEP_RECORDS": "sleepRecords",
    "USER_SETTINGS": "userSettings",
    "QUESTIONNAIRES": "questionnaires",
    "ONBOARDING_COMPLETE": "onboardingComplete",
    "LAST_QUESTIONNAIRE_PROMPT": "lastQuestionnairePrompt",
    "NAP_RECORDS": "napRecords",
    "FIRST_SLEEP_LOG_DATE": "firstSleepLogDate",
    "APP_START_DATE": "appStartDate",
}


class StoragePort(Protocol):
    """String key-value storage."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage, for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """
    Storage backed by a single JSON object on disk.

    The whole file is rewritten on every set/remove; a missing file reads
    as empty storage.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring unreadable storage file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring storage file %s: not a JSON object", self.path)
            return {}
        return data

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class SleepStore:
    """
    Typed access to everything the app persists.

    Records are kept as JSON lists under one key per record type. Settings
    are sanitized on the way in and on the way out.
    """

    def __init__(self, storage: StoragePort):
        self.storage = storage

    # -- helpers ---------------------------------------------------------------

    def _read_json(self, key: str) -> Any:
        raw = self.storage.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Corrupt JSON under %s: %s", key, e)
            return None

    def _write_json(self, key: str, value: Any) -> None:
        self.storage.set(key, json.dumps(value))

    def _read_list(self, key: str, from_dict: Callable[[dict[str, Any]], T]) -> list[T]:
        data = self._read_json(key)
        if not isinstance(data, list):
            return []

        items = []
        for entry in data:
            try:
                items.append(from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed entry under %s: %s", key, e)
        return items

    # -- sleep records ---------------------------------------------------------

    def save_sleep_record(self, record: SleepRecord) -> None:
        """Insert or replace by id; records stay sorted newest date first."""
        records = [r for r in self.get_sleep_records() if r.id != record.id]
        records.append(record)
        records.sort(key=lambda r: r.date, reverse=True)

        self._write_json(STORAGE_KEYS["SLEEP_RECORDS"], [sleep_record_to_dict(r) for r in records])
        logger.debug("Saved sleep record %s for %s", record.id, record.date)

        if self.get_first_sleep_log_date() is None:
            self.storage.set(STORAGE_KEYS["FIRST_SLEEP_LOG_DATE"], record.date.isoformat())

    def get_sleep_records(self) -> list[SleepRecord]:
        return self._read_list(STORAGE_KEYS["SLEEP_RECORDS"], sleep_record_from_dict)

    def get_sleep_records_in_range(self, start: datetime, end: datetime) -> list[SleepRecord]:
        return [
            r
            for r in self.get_sleep_records()
            if start <= datetime.combine(r.date, datetime.min.time()) <= end
        ]

    def get_recent_sleep_records(
        self, days: int = ledger.DEFAULT_WINDOW_DAYS, now: datetime | None = None
    ) -> list[SleepRecord]:
        if now is None:
            now = datetime.now()
        return ledger.records_in_window(self.get_sleep_records(), now, days)

    def has_logged_sleep(self) -> bool:
        return len(self.get_sleep_records()) > 0

    # -- naps ------------------------------------------------------------------

    def save_nap_record(self, nap: NapRecord) -> None:
        """Insert or replace by id; naps stay sorted newest start first."""
        naps = [n for n in self.get_nap_records() if n.id != nap.id]
        naps.append(nap)
        naps.sort(key=lambda n: n.start_time, reverse=True)

        self._write_json(STORAGE_KEYS["NAP_RECORDS"], [nap_record_to_dict(n) for n in naps])
        logger.debug("Saved %s nap %s", nap.type, nap.id)

    def get_nap_records(self) -> list[NapRecord]:
        return self._read_list(STORAGE_KEYS["NAP_RECORDS"], nap_record_from_dict)

    def get_recent_nap_records(
        self, days: int = ledger.DEFAULT_WINDOW_DAYS, now: datetime | None = None
    ) -> list[NapRecord]:
        if now is None:
            now = datetime.now()
        return ledger.naps_in_window(self.get_nap_records(), now, days)

    # -- debt --------------------------------------------------------------------

    def total_debt(
        self, now: datetime | None = None, window_days: int = ledger.DEFAULT_WINDOW_DAYS
    ) -> float:
        """Current debt, recomputed from the stored records."""
        if now is None:
            now = datetime.now()
        return ledger.total_debt(self.get_sleep_records(), self.get_nap_records(), now, window_days)

    # -- settings ----------------------------------------------------------------

    def save_user_settings(self, settings: UserSettings) -> UserSettings:
        """Sanitize and persist; returns what was actually stored."""
        clean = sanitize_user_settings(user_settings_to_dict(settings))
        self._write_json(STORAGE_KEYS["USER_SETTINGS"], user_settings_to_dict(clean))
        return clean

    def get_user_settings(self) -> UserSettings | None:
        """
        Stored settings, sanitized. None only when nothing was ever saved;
        a corrupt blob comes back as defaults.
        """
        if self.storage.get(STORAGE_KEYS["USER_SETTINGS"]) is None:
            return None

        data = self._read_json(STORAGE_KEYS["USER_SETTINGS"])
        settings = sanitize_user_settings(data)
        if not isinstance(data, dict) or data != user_settings_to_dict(settings):
            # Persist the migrated/cleaned form so the next read is exact
            self._write_json(STORAGE_KEYS["USER_SETTINGS"], user_settings_to_dict(settings))
        return settings

    # -- questionnaires ----------------------------------------------------------

    def save_questionnaire(self, questionnaire: WeeklyQuestionnaire) -> None:
        """Insert or replace by id; questionnaires stay sorted newest week first."""
        questionnaires = [q for q in self.get_questionnaires() if q.id != questionnaire.id]
        questionnaires.append(questionnaire)
        questionnaires.sort(key=lambda q: q.week_start_date, reverse=True)
        self._write_json(
            STORAGE_KEYS["QUESTIONNAIRES"], [questionnaire_to_dict(q) for q in questionnaires]
        )

    def get_questionnaires(self) -> list[WeeklyQuestionnaire]:
        return self._read_list(STORAGE_KEYS["QUESTIONNAIRES"], questionnaire_from_dict)

    def should_show_questionnaire_prompt(self, now: datetime | None = None) -> bool:
        """Weekly prompt check; the first call also records the app start date."""
        if now is None:
            now = datetime.now()

        if not self.has_logged_sleep():
            return False

        app_start = self.get_app_start_date()
        if app_start is None:
            self.set_app_start_date(now)
            return False

        return should_show_questionnaire_prompt(
            has_logged_sleep=True,
            app_start=app_start,
            last_prompt=self._read_datetime(STORAGE_KEYS["LAST_QUESTIONNAIRE_PROMPT"]),
            now=now,
        )

    def set_questionnaire_prompt_shown(self, now: datetime | None = None) -> None:
        when = now or datetime.now()
        self.storage.set(STORAGE_KEYS["LAST_QUESTIONNAIRE_PROMPT"], when.isoformat())

    # -- flags and dates -----------------------------------------------------------

    def _read_datetime(self, key: str) -> datetime | None:
        raw = self.storage.get(key)
        if raw is None:
            return None
        try:
            return parse_iso_datetime(raw)
        except ValueError:
            logger.warning("Ignoring unparseable timestamp under %s: %r", key, raw)
            return None

    def set_onboarding_complete(self, complete: bool) -> None:
        self.storage.set(STORAGE_KEYS["ONBOARDING_COMPLETE"], "true" if complete else "false")

    def is_onboarding_complete(self) -> bool:
        return self.storage.get(STORAGE_KEYS["ONBOARDING_COMPLETE"]) == "true"

    def get_first_sleep_log_date(self) -> date | None:
        raw = self.storage.get(STORAGE_KEYS["FIRST_SLEEP_LOG_DATE"])
        if not raw:
            return None
        try:
            return date.fromisoformat(raw)
        except ValueError:
            logger.warning("Ignoring unparseable first sleep log date: %r", raw)
            return None

    def set_app_start_date(self, now: datetime | None = None) -> None:
        """Record when the app was first used. Never overwrites."""
        if self.storage.get(STORAGE_KEYS["APP_START_DATE"]) is None:
            when = now or datetime.now()
            self.storage.set(STORAGE_KEYS["APP_START_DATE"], when.isoformat())

    def get_app_start_date(self) -> datetime | None:
        return self._read_datetime(STORAGE_KEYS["APP_START_DATE"])

    def clear_all_data(self) -> None:
        for key in STORAGE_KEYS.values():
            self.storage.remove(key)
        logger.info("Cleared all stored sleep data")
