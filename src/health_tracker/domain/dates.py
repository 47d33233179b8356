"""Calendar-day normalization shared by every day-keyed record."""

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from health_tracker.domain.errors import InvalidArgumentError

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(tz=UTC)


def start_of_day(value: date | datetime | str) -> date:
    """Normalize a date-like value to its calendar day.

    Aware datetimes keep their own local date, so callers that care about a
    user's timezone should convert before normalizing.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidArgumentError("Date must not be empty")
        try:
            if len(text) == 10:  # noqa: PLR2004
                return date.fromisoformat(text)
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError as exc:
            raise InvalidArgumentError(f"Invalid date format: {value!r}") from exc
    raise InvalidArgumentError(f"Invalid date value: {value!r}")


def today(clock: Clock, timezone_name: str = "UTC") -> date:
    """Return the current calendar day in the given timezone."""
    try:
        tz = ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidArgumentError(f"Unknown timezone: {timezone_name}") from exc
    return clock().astimezone(tz).date()


def week_bounds(value: date | datetime | str) -> tuple[date, date]:
    """Return the Monday and Sunday of the week containing the value."""
    day = start_of_day(value)
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def validate_range(
    start: date | datetime | str, end: date | datetime | str
) -> tuple[date, date]:
    """Normalize an inclusive day range, rejecting reversed bounds."""
    start_day = start_of_day(start)
    end_day = start_of_day(end)
    if start_day > end_day:
        raise InvalidArgumentError("Start date must be before end date")
    return start_day, end_day


def parse_timestamp(value: object) -> datetime | None:
    """Parse a stored ISO timestamp; empty values read as None."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
