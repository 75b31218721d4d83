"""
Tests for storage backends and the SleepStore.
"""

import json
import time_machine
from datetime import date, datetime, timedelta

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from helpers import make_nap, make_record
from sleepcycle.storage import STORAGE_KEYS, JsonFileStorage, MemoryStorage, SleepStore
from sleepcycle.types import UserSettings, WeeklyQuestionnaire


def _questionnaire(qid: str, week: date, risk: str = "low") -> WeeklyQuestionnaire:
    return WeeklyQuestionnaire(
        id=qid,
        week_start_date=week,
        feeling_on_waking="good",
        sleep_restorative="yes",
        post_exertion_malaise="never",
        too_tired_days_count=0,
        concentration_difficulties=False,
        risk_score=risk,
    )


class TestJsonFileStorage:
    """Tests for the file-backed storage."""

    def test_missing_file_reads_empty(self, tmp_path):
        """A file that doesn't exist yet is empty storage."""
        storage = JsonFileStorage(tmp_path / "data.json")
        assert storage.get("sleepRecords") is None

    def test_set_get_remove(self, tmp_path):
        """Values persist across instances and can be removed."""
        path = tmp_path / "nested" / "data.json"
        JsonFileStorage(path).set("onboardingComplete", "true")

        storage = JsonFileStorage(path)
        assert storage.get("onboardingComplete") == "true"

        storage.remove("onboardingComplete")
        assert JsonFileStorage(path).get("onboardingComplete") is None

    def test_corrupt_file_reads_empty(self, tmp_path):
        """Unparseable files are ignored rather than raising."""
        path = tmp_path / "data.json"
        path.write_text("{not json")
        assert JsonFileStorage(path).get("sleepRecords") is None

    def test_non_object_file_reads_empty(self, tmp_path):
        """A JSON file that isn't an object is ignored."""
        path = tmp_path / "data.json"
        path.write_text("[1, 2, 3]")
        assert JsonFileStorage(path).get("sleepRecords") is None

    def test_store_over_file(self, tmp_path, today):
        """SleepStore works the same over a file."""
        path = tmp_path / "data.json"
        SleepStore(JsonFileStorage(path)).save_sleep_record(make_record(today))

        records = SleepStore(JsonFileStorage(path)).get_sleep_records()
        assert [r.date for r in records] == [today]


class TestSleepRecords:
    """Tests for sleep record persistence."""

    def test_empty_store(self, store):
        """Nothing logged yet."""
        assert store.get_sleep_records() == []
        assert store.has_logged_sleep() is False
        assert store.get_first_sleep_log_date() is None

    def test_sorted_newest_first(self, store, today):
        """Records come back sorted by date, newest first."""
        for offset in (3, 0, 5, 1):
            store.save_sleep_record(make_record(today - timedelta(days=offset)))

        dates = [r.date for r in store.get_sleep_records()]
        assert dates == sorted(dates, reverse=True)
        assert len(dates) == 4

    def test_save_same_id_replaces(self, store, today):
        """Saving an existing id overwrites instead of duplicating."""
        store.save_sleep_record(make_record(today, total_sleep_minutes=300))
        store.save_sleep_record(make_record(today, total_sleep_minutes=450))

        records = store.get_sleep_records()
        assert len(records) == 1
        assert records[0].total_sleep_minutes == 450

    def test_round_trip_preserves_record(self, store, today):
        """What is saved is what is read."""
        record = make_record(today, rating=4)
        store.save_sleep_record(record)
        assert store.get_sleep_records() == [record]

    def test_first_log_date_set_once(self, store, today):
        """The first log date is the first record saved, not the earliest."""
        store.save_sleep_record(make_record(today))
        store.save_sleep_record(make_record(today - timedelta(days=3)))
        assert store.get_first_sleep_log_date() == today

    def test_recent_records(self, store, now, today):
        """Only records inside the window are returned."""
        store.save_sleep_record(make_record(today - timedelta(days=2)))
        store.save_sleep_record(make_record(today - timedelta(days=20)))

        recent = store.get_recent_sleep_records(days=14, now=now)
        assert [r.date for r in recent] == [today - timedelta(days=2)]

    def test_records_in_range(self, store, today):
        """Range queries match on the record date."""
        for offset in range(5):
            store.save_sleep_record(make_record(today - timedelta(days=offset)))

        start = datetime.combine(today - timedelta(days=3), datetime.min.time())
        end = datetime.combine(today - timedelta(days=1), datetime.min.time())
        assert len(store.get_sleep_records_in_range(start, end)) == 3

    def test_malformed_entries_skipped(self, today):
        """A bad entry doesn't hide the good ones."""
        storage = MemoryStorage()
        store = SleepStore(storage)
        store.save_sleep_record(make_record(today))

        data = json.loads(storage.get(STORAGE_KEYS["SLEEP_RECORDS"]))
        data.append({"id": "broken"})
        data.append({**data[0], "id": "null-bedtime", "bedtime": None})
        data.append({**data[0], "id": "text-minutes", "totalSleepMinutes": "300"})
        storage.set(STORAGE_KEYS["SLEEP_RECORDS"], json.dumps(data))

        assert len(store.get_sleep_records()) == 1

    def test_malformed_entries_dont_break_debt(self, now, today):
        """Skipped entries leave the debt total and logging working."""
        storage = MemoryStorage()
        store = SleepStore(storage)
        store.save_sleep_record(make_record(today, total_sleep_minutes=300))

        data = json.loads(storage.get(STORAGE_KEYS["SLEEP_RECORDS"]))
        data.append({**data[0], "id": "text-minutes", "totalSleepMinutes": "300"})
        storage.set(STORAGE_KEYS["SLEEP_RECORDS"], json.dumps(data))

        assert store.total_debt(now) == 180
        store.save_sleep_record(make_record(today - timedelta(days=1), total_sleep_minutes=420))
        assert store.total_debt(now) == 240

    def test_malformed_naps_skipped(self, now):
        """A nap with a text credit is skipped."""
        storage = MemoryStorage()
        store = SleepStore(storage)
        store.save_nap_record(make_nap(now - timedelta(hours=1)))

        data = json.loads(storage.get(STORAGE_KEYS["NAP_RECORDS"]))
        data.append({**data[0], "id": "bad", "debtReduction": "60"})
        storage.set(STORAGE_KEYS["NAP_RECORDS"], json.dumps(data))

        assert len(store.get_nap_records()) == 1

    def test_unparseable_first_log_date(self, today):
        """A garbage first log date reads as unset and is replaced on the next save."""
        store = SleepStore(MemoryStorage({STORAGE_KEYS["FIRST_SLEEP_LOG_DATE"]: "garbage"}))
        assert store.get_first_sleep_log_date() is None

        store.save_sleep_record(make_record(today))
        assert store.get_first_sleep_log_date() == today

    def test_corrupt_blob_reads_empty(self):
        """Unparseable record lists read as no records."""
        store = SleepStore(MemoryStorage({STORAGE_KEYS["SLEEP_RECORDS"]: "oops"}))
        assert store.get_sleep_records() == []


class TestNapsAndDebt:
    """Tests for nap persistence and the stored debt total."""

    def test_naps_sorted_newest_first(self, store, now):
        """Naps come back newest start first."""
        store.save_nap_record(make_nap(now - timedelta(days=2)))
        store.save_nap_record(make_nap(now - timedelta(hours=2)))

        naps = store.get_nap_records()
        assert naps[0].start_time == now - timedelta(hours=2)

    def test_recent_naps(self, store, now):
        """Old naps are outside the window."""
        store.save_nap_record(make_nap(now - timedelta(days=1)))
        store.save_nap_record(make_nap(now - timedelta(days=30)))
        assert len(store.get_recent_nap_records(now=now)) == 1

    def test_total_debt_from_store(self, store, now, today):
        """Stored records and naps feed the ledger."""
        store.save_sleep_record(make_record(today, total_sleep_minutes=300, debt_minutes=180))
        store.save_nap_record(make_nap(now - timedelta(hours=2), "cycle"))
        assert store.total_debt(now) == 120

    @time_machine.travel("2026-03-15T12:00:00Z", tick=False)
    def test_total_debt_defaults_to_current_time(self, store, today):
        """Without an explicit now, the window ends at the current time."""
        store.save_sleep_record(make_record(today - timedelta(days=2), total_sleep_minutes=300))
        assert store.total_debt() == 180

    def test_edit_reflected_in_debt(self, store, now, today):
        """Overwriting a past night changes the next total."""
        night = today - timedelta(days=3)
        store.save_sleep_record(make_record(night, total_sleep_minutes=300))
        assert store.total_debt(now) == 180

        store.save_sleep_record(make_record(night, total_sleep_minutes=480))
        assert store.total_debt(now) == 0


class TestUserSettings:
    """Tests for settings persistence."""

    def test_never_saved(self, store):
        """No settings until onboarding saves some."""
        assert store.get_user_settings() is None

    def test_save_sanitizes(self, store):
        """Out-of-range settings are clamped before they're stored."""
        clean = store.save_user_settings(UserSettings(cycle_duration=500, fall_asleep_time=-3))

        assert clean.cycle_duration == 120
        assert clean.fall_asleep_time == 0
        assert store.get_user_settings() == clean

    def test_hand_edited_blob_sanitized_on_read(self):
        """Bad stored values are cleaned on read and written back."""
        storage = MemoryStorage(
            {STORAGE_KEYS["USER_SETTINGS"]: json.dumps({"cycleDuration": 10, "age": 70})}
        )
        settings = SleepStore(storage).get_user_settings()

        assert settings.cycle_duration == 60
        assert settings.ideal_sleep_hours == 7.5
        rewritten = json.loads(storage.get(STORAGE_KEYS["USER_SETTINGS"]))
        assert rewritten["cycleDuration"] == 60
        assert rewritten["timeFormat"] == "12h"

    def test_corrupt_blob_gives_defaults(self):
        """Unparseable settings come back as defaults, not None."""
        store = SleepStore(MemoryStorage({STORAGE_KEYS["USER_SETTINGS"]: "{{"}))
        assert store.get_user_settings() == UserSettings()


class TestQuestionnaires:
    """Tests for questionnaire persistence and the weekly prompt."""

    def test_sorted_newest_week_first(self, store):
        """Questionnaires come back most recent week first."""
        store.save_questionnaire(_questionnaire("a", date(2026, 3, 2)))
        store.save_questionnaire(_questionnaire("b", date(2026, 3, 9)))

        assert [q.id for q in store.get_questionnaires()] == ["b", "a"]

    def test_no_prompt_before_first_log(self, store, now):
        """Nothing to ask about until sleep has been logged."""
        assert store.should_show_questionnaire_prompt(now) is False
        assert store.get_app_start_date() is None

    def test_first_check_records_app_start(self, store, now, today):
        """The first check stamps the app start date and says no."""
        store.save_sleep_record(make_record(today))

        assert store.should_show_questionnaire_prompt(now) is False
        assert store.get_app_start_date() == now

    def test_prompt_after_a_week(self, store, now, today):
        """A week after app start the prompt is due, then not again for a week."""
        store.save_sleep_record(make_record(today))
        store.set_app_start_date(now - timedelta(days=8))
        assert store.should_show_questionnaire_prompt(now) is True

        store.set_questionnaire_prompt_shown(now)
        assert store.should_show_questionnaire_prompt(now + timedelta(days=3)) is False
        assert store.should_show_questionnaire_prompt(now + timedelta(days=7)) is True

    def test_app_start_never_overwritten(self, store, now):
        """Setting the app start date twice keeps the first."""
        store.set_app_start_date(now)
        store.set_app_start_date(now + timedelta(days=5))
        assert store.get_app_start_date() == now


class TestFlags:
    """Tests for onboarding and clearing data."""

    def test_onboarding_flag(self, store):
        """Onboarding completion is a stored flag."""
        assert store.is_onboarding_complete() is False
        store.set_onboarding_complete(True)
        assert store.is_onboarding_complete() is True
        store.set_onboarding_complete(False)
        assert store.is_onboarding_complete() is False

    def test_clear_all_data(self, store, now, today):
        """Everything the app stored is removed."""
        store.save_sleep_record(make_record(today))
        store.save_nap_record(make_nap(now))
        store.save_user_settings(UserSettings())
        store.set_onboarding_complete(True)

        store.clear_all_data()

        assert store.get_sleep_records() == []
        assert store.get_nap_records() == []
        assert store.get_user_settings() is None
        assert store.is_onboarding_complete() is False
        assert store.get_first_sleep_log_date() is None
