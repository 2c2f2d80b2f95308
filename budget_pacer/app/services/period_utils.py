"""
Calendar helpers for budget periods.

Every day key in the project is a UTC calendar date. Aware datetimes are
converted to UTC before truncation and naive datetimes are taken to already be
UTC, so an expense recorded near midnight always lands on the same day.
"""
import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, List, Tuple, Union

DateLike = Union[date, datetime, str]

ONE_DAY = timedelta(days=1)


class InvalidDateError(ValueError):
    """Raised when a value cannot be read as a calendar date."""

    def __init__(self, value, reason: str = "not a valid calendar date"):
        self.value = value
        super().__init__(f"Invalid date {value!r}: {reason}")


def day_key(value: Union[date, datetime]) -> date:
    """Return the UTC calendar day for an already-typed date or datetime"""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    raise InvalidDateError(value, "expected a date or datetime")


def parse_calendar_date(value: DateLike) -> date:
    """
    Parse a boundary value into a calendar date.

    Accepts date and datetime objects and ISO-8601 strings, either a bare
    ``YYYY-MM-DD`` or a full timestamp (a trailing ``Z`` is read as UTC).
    Anything else raises InvalidDateError.
    """
    if isinstance(value, (date, datetime)):
        return day_key(value)
    if not isinstance(value, str):
        raise InvalidDateError(value, "expected an ISO-8601 string")

    text = value.strip()
    if not text:
        raise InvalidDateError(value, "empty string")
    if len(text) == 10:
        try:
            return date.fromisoformat(text)
        except ValueError as exc:
            raise InvalidDateError(value, str(exc)) from exc

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return day_key(datetime.fromisoformat(text))
    except ValueError as exc:
        raise InvalidDateError(value, str(exc)) from exc


def days_in_period(start: date, end: date) -> int:
    """Inclusive number of days from start to end"""
    return (end - start).days + 1


def remaining_days(current: date, end: date) -> int:
    """Inclusive number of days from current to end, never below zero"""
    return max(0, days_in_period(current, end))


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from start to end inclusive"""
    if start > end:
        return
    current = start
    while True:
        yield current
        # Stepping past date.max overflows, so stop on the end date itself
        if current >= end:
            break
        current += ONE_DAY


def days_before(target: date, start: date) -> List[date]:
    """Days in [start, target); empty when target is not after start"""
    return list(iter_days(start, target - ONE_DAY))


def month_bounds(any_day: date) -> Tuple[date, date]:
    """First and last day of the calendar month containing any_day"""
    last = calendar.monthrange(any_day.year, any_day.month)[1]
    return any_day.replace(day=1), any_day.replace(day=last)


def today_utc() -> date:
    return datetime.now(timezone.utc).date()
