"""Quiz open/close window checks."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _now(now: Optional[datetime]) -> datetime:
    return as_utc(now) if now is not None else datetime.now(timezone.utc)


def _describe_delta(target: datetime, now: datetime) -> str:
    seconds = int(abs((target - now).total_seconds()))
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            span = f"{count} {unit}{'s' if count != 1 else ''}"
            break
    else:
        span = "a few seconds"
    return f"in {span}" if target > now else f"{span} ago"


def check_quiz_date_range(date_opens: datetime, date_closes: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Return an empty string if the quiz is open, otherwise the reason it is not."""
    current = _now(now)
    opens = as_utc(date_opens)
    if current < opens:
        return f"The quiz is not yet open. It will open {_describe_delta(opens, current)}."
    if date_closes is not None:
        closes = as_utc(date_closes)
        if current >= closes:
            return f"The quiz has closed. It closed {_describe_delta(closes, current)}."
    return ""


def is_quiz_open(date_opens: datetime, date_closes: Optional[datetime], now: Optional[datetime] = None) -> bool:
    return check_quiz_date_range(date_opens, date_closes, now) == ""


def is_edit_locked(date_opens: datetime, date_closes: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True while a quiz with a closing date is running.

    Quizzes without a closing date can always be edited or deleted.
    """
    if date_closes is None:
        return False
    current = _now(now)
    return as_utc(date_opens) <= current <= as_utc(date_closes)
