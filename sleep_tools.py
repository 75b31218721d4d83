#!/usr/bin/env python3
"""
JSON tool interface to the sleep calculator.

Usage: python3 sleep_tools.py <request_file.json>

The request file holds {"tool": <name>, "arguments": {...}}. The result
is printed to stdout as JSON. Instants are ISO-8601 strings in host local
time; settings use the camelCase keys of the stored settings blob and are
sanitized before use.

Tools:
1. calculate_bedtime - bedtime for a wake time and cycle count
2. damage_control - best sleep window before a hard deadline
3. sleep_debt - rolling debt total and tier from records and naps
4. log_sleep - build a sleep record from bedtime and wake time
5. recommended_sleep - ideal hours and cycles for an age
"""

import json
import logging
import sys
from datetime import datetime
from typing import Any

from sleepcycle.calculator import (
    compute_bedtime,
    compute_damage_control,
    compute_ideal_cycles,
    recommended_ideal_sleep_hours,
)
from sleepcycle.ledger import DEFAULT_WINDOW_DAYS, classify_debt, total_debt
from sleepcycle.records import (
    build_sleep_record,
    extra_minutes,
    nap_record_from_dict,
    sleep_record_from_dict,
    sleep_record_to_dict,
)
from sleepcycle.settings import sanitize_user_settings, settings_for_age, sleep_settings
from sleepcycle.time_math import format_duration, format_time, parse_iso_datetime

logger = logging.getLogger(__name__)


def _settings(arguments: dict[str, Any]):
    user_settings = sanitize_user_settings(arguments.get("settings"))
    return user_settings, sleep_settings(user_settings)


def _now(arguments: dict[str, Any]) -> datetime:
    raw = arguments.get("now")
    return parse_iso_datetime(raw) if raw else datetime.now()


def calculate_bedtime_tool(arguments: dict[str, Any]) -> dict[str, Any]:
    """Bedtime for the requested cycles (ideal cycle count if omitted)."""
    user_settings, settings = _settings(arguments)
    wake_time = parse_iso_datetime(arguments["wake_time"])
    cycles = arguments.get("cycles") or compute_ideal_cycles(settings)

    result = compute_bedtime(wake_time, cycles, settings)
    return {
        "bedtime": result.bedtime.isoformat(),
        "wake_time": result.wake_time.isoformat(),
        "cycles": result.cycles,
        "total_sleep_minutes": result.total_sleep_minutes,
        "bedtime_display": format_time(result.bedtime, user_settings.time_format),
        "duration_display": format_duration(result.total_sleep_minutes),
    }


def damage_control_tool(arguments: dict[str, Any]) -> dict[str, Any]:
    """Emergency sleep window ending no later than wake_deadline."""
    user_settings, settings = _settings(arguments)
    result = compute_damage_control(
        _now(arguments),
        parse_iso_datetime(arguments["wake_deadline"]),
        settings,
        time_format=user_settings.time_format,
    )
    return {
        "can_sleep": result.can_sleep,
        "cycles": result.cycles,
        "sleep_until": result.sleep_until.isoformat() if result.sleep_until else None,
        "total_minutes": result.total_minutes,
        "recommendation": result.recommendation,
        "warning": result.warning,
    }


def sleep_debt_tool(arguments: dict[str, Any]) -> dict[str, Any]:
    """Total debt over the trailing window plus its tier."""
    records = [sleep_record_from_dict(r) for r in arguments.get("records", [])]
    naps = [nap_record_from_dict(n) for n in arguments.get("naps", [])]
    window_days = arguments.get("window_days", DEFAULT_WINDOW_DAYS)

    debt = total_debt(records, naps, _now(arguments), window_days)
    level = classify_debt(debt)
    return {
        "total_debt_minutes": debt,
        "total_debt_display": format_duration(debt),
        "level": level.level,
        "label": level.label,
    }


def log_sleep_tool(arguments: dict[str, Any]) -> dict[str, Any]:
    """Sleep record for a night, or an error when the times don't fit."""
    _, settings = _settings(arguments)
    record = build_sleep_record(
        parse_iso_datetime(arguments["bedtime"]),
        parse_iso_datetime(arguments["wake_time"]),
        settings,
        fall_asleep_minutes=arguments.get("fall_asleep_minutes"),
        wake_quality_rating=arguments.get("wake_quality_rating"),
        notes=arguments.get("notes"),
        is_damage_control=arguments.get("is_damage_control", False),
    )
    if record is None:
        return {
            "error": (
                "Invalid sleep log: wake time must be after bedtime and within "
                "24 hours, and the rating between 1 and 5"
            )
        }

    return {
        "record": sleep_record_to_dict(record),
        "extra_minutes": extra_minutes(record, settings.cycle_duration),
    }


def recommended_sleep_tool(arguments: dict[str, Any]) -> dict[str, Any]:
    """Onboarding defaults for an age."""
    age = arguments["age"]
    settings = sleep_settings(settings_for_age(age))
    return {
        "ideal_sleep_hours": recommended_ideal_sleep_hours(age),
        "ideal_cycles": compute_ideal_cycles(settings),
    }


TOOLS = {
    "calculate_bedtime": calculate_bedtime_tool,
    "damage_control": damage_control_tool,
    "sleep_debt": sleep_debt_tool,
    "log_sleep": log_sleep_tool,
    "recommended_sleep": recommended_sleep_tool,
}


def invoke_tool(tool_name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """Router function for CLI/subprocess invocation."""
    if tool_name not in TOOLS:
        raise ValueError(f"Unknown tool: {tool_name}")
    logger.debug("Invoking %s", tool_name)
    return TOOLS[tool_name](arguments)


def main() -> None:
    logging.basicConfig(level=logging.WARNING, stream=sys.stderr)

    if len(sys.argv) != 2:
        print(json.dumps({"error": "Usage: sleep_tools.py <request_file.json>"}))
        sys.exit(1)

    request_file = sys.argv[1]

    try:
        with open(request_file) as f:
            data = json.load(f)

        result = invoke_tool(data["tool"], data.get("arguments", {}))
        print(json.dumps(result))

    except FileNotFoundError:
        print(json.dumps({"error": f"Request file not found: {request_file}"}))
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(json.dumps({"error": f"Invalid JSON in request file: {e}"}))
        sys.exit(1)
    except KeyError as e:
        print(json.dumps({"error": f"Missing required field: {e}"}))
        sys.exit(1)
    except Exception as e:
        print(json.dumps({"error": f"Tool failed: {e}"}))
        sys.exit(1)


if __name__ == "__main__":
    main()
