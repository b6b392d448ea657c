"""
Test Settings Validation - range checks for test configuration fields.

The same rules apply on create, on update and in the editor before a
save is sent:
1. title and duration are mandatory
2. duration is 1-480 minutes
3. pass_percentage is 0-100 (1-100 when creating a test)
4. attempt_limit is 1-10 when provided
5. end_time is strictly after start_time when both are present
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from testcraft.enums import ResultVisibility
from testcraft.errors import SettingsValidationError

MIN_DURATION = 1
MAX_DURATION = 480
MIN_ATTEMPTS = 1
MAX_ATTEMPTS = 10

# Aliases submitted by the legacy creation form
LEGACY_RESULT_VISIBILITY = {
    "immediately": ResultVisibility.INSTANT,
    "after_submission": ResultVisibility.AFTER_TEST,
    "after_test_end": ResultVisibility.AFTER_TEST,
    "never": ResultVisibility.HIDDEN,
}


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp (or pass a datetime through).
    Returns a timezone-naive UTC datetime for SQLite compatibility.
    Raises ValueError when the value cannot be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        ts_str = str(value)
        if ts_str.endswith("Z"):
            ts_str = ts_str[:-1] + "+00:00"
        dt = datetime.fromisoformat(ts_str)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _as_int(field: str, value: Any, message: str) -> int:
    if isinstance(value, bool):
        raise SettingsValidationError(field, message)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise SettingsValidationError(field, message)
    if not number.is_integer():
        raise SettingsValidationError(field, message)
    return int(number)


def check_duration(value: Any) -> int:
    message = "duration must be {}-{} minutes".format(MIN_DURATION, MAX_DURATION)
    if value is None or value == "":
        raise SettingsValidationError("duration", "duration is required")
    duration = _as_int("duration", value, message)
    if duration < MIN_DURATION or duration > MAX_DURATION:
        raise SettingsValidationError("duration", message)
    return duration


def check_pass_percentage(value: Any, creating: bool = False) -> float:
    low = 1 if creating else 0
    message = "pass_percentage must be {}-100".format(low)
    if value is None or value == "":
        raise SettingsValidationError("pass_percentage", "pass_percentage is required")
    try:
        pct = float(value)
    except (TypeError, ValueError):
        raise SettingsValidationError("pass_percentage", message)
    if not math.isfinite(pct):
        raise SettingsValidationError("pass_percentage", message)
    if pct < low or pct > 100:
        raise SettingsValidationError("pass_percentage", message)
    return pct


def check_attempt_limit(value: Any) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    message = "attempt_limit must be {}-{}".format(MIN_ATTEMPTS, MAX_ATTEMPTS)
    limit = _as_int("attempt_limit", value, message)
    if limit < MIN_ATTEMPTS or limit > MAX_ATTEMPTS:
        raise SettingsValidationError("attempt_limit", message)
    return limit


def check_schedule(start: Any, end: Any):
    try:
        start_time = parse_timestamp(start)
    except ValueError:
        raise SettingsValidationError("start_time", "Invalid start date and time")
    try:
        end_time = parse_timestamp(end)
    except ValueError:
        raise SettingsValidationError("end_time", "Invalid end date and time")
    if start_time and end_time and start_time >= end_time:
        raise SettingsValidationError("end_time", "end_time must be after start_time")
    return start_time, end_time


def check_title(value: Any) -> str:
    title = str(value).strip() if value is not None else ""
    if not title:
        raise SettingsValidationError("title", "title is required")
    return title


def check_retake_cooldown(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    message = "retake_cooldown must be a non-negative number of minutes"
    cooldown = _as_int("retake_cooldown", value, message)
    if cooldown < 0:
        raise SettingsValidationError("retake_cooldown", message)
    return cooldown


def normalize_result_visibility(value: Any) -> ResultVisibility:
    """Accept enum values and the legacy form aliases; default AFTER_TEST."""
    if isinstance(value, ResultVisibility):
        return value
    if value in LEGACY_RESULT_VISIBILITY:
        return LEGACY_RESULT_VISIBILITY[value]
    try:
        return ResultVisibility(value)
    except ValueError:
        return ResultVisibility.AFTER_TEST


def validate_test_settings(values: Dict[str, Any], creating: bool = False) -> Dict[str, Any]:
    """
    Validate and normalise the configuration fields of a test.

    Raises SettingsValidationError on the first failing field.
    Returns a dict with normalised values for the fields that were checked.
    """
    result = {
        "title": check_title(values.get("title")),
        "duration": check_duration(values.get("duration")),
        "pass_percentage": check_pass_percentage(values.get("pass_percentage"), creating=creating),
        "attempt_limit": check_attempt_limit(values.get("attempt_limit")),
        "retake_cooldown": check_retake_cooldown(values.get("retake_cooldown")),
    }
    result["start_time"], result["end_time"] = check_schedule(values.get("start_time"), values.get("end_time"))
    return result


def collect_settings_errors(values: Dict[str, Any], creating: bool = False) -> Dict[str, str]:
    """Run every check and return {field: message} for all failures."""
    errors: Dict[str, str] = {}
    checks: List = [
        lambda: check_title(values.get("title")),
        lambda: check_duration(values.get("duration")),
        lambda: check_pass_percentage(values.get("pass_percentage"), creating=creating),
        lambda: check_attempt_limit(values.get("attempt_limit")),
        lambda: check_retake_cooldown(values.get("retake_cooldown")),
        lambda: check_schedule(values.get("start_time"), values.get("end_time")),
    ]
    for check in checks:
        try:
            check()
        except SettingsValidationError as e:
            errors[e.field] = e.message
    return errors
