"""
Value Parsers for MT940 Fields

Converts raw numeric and date substrings into typed values:
- Amounts as an integer count of minor units (never floats)
- Dates from two-digit years with century resolution
- Year-less entry dates resolved against the value date
- Date-time indications with a UTC offset
"""
import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from swift_statements.core.config import settings
from .errors import InvalidDateError, MalformedAmountError

# MT940 amounts use a comma as decimal separator; some banks send a dot
AMOUNT_RE = re.compile(r'(?P<integer>[0-9]*)(?:[,.](?P<fraction>[0-9]{0,2}))?')
TWO_DIGITS_RE = re.compile(r'[0-9]{2}')

MINOR_UNIT_DIGITS = 2

# Status codes that turn an amount negative: debit and reversal of credit
NEGATIVE_STATUSES = ("D", "RC")


def parse_amount(text: str) -> int:
    """
    Parse an MT940 amount into minor units.

    Examples:
        "123,23" -> 12323
        "123"    -> 12300
        "43,6"   -> 4360

    Raises:
        MalformedAmountError: If the text is not digits with an optional
            separator followed by at most two fractional digits
    """
    match = AMOUNT_RE.fullmatch(text.strip())
    if not match:
        raise MalformedAmountError(f"Cannot parse amount from: {text!r}", fragment=text)

    integer = match.group("integer")
    fraction = match.group("fraction") or ""
    if not integer and not fraction:
        raise MalformedAmountError(f"Amount has no digits: {text!r}", fragment=text)

    fraction = fraction.ljust(MINOR_UNIT_DIGITS, "0")
    return int((integer or "0") + fraction)


def sign_for_status(status: str) -> int:
    """Return -1 for debit statuses and 1 for credit statuses."""
    return -1 if status in NEGATIVE_STATUSES else 1


def resolve_century(year: int, pivot: Optional[int] = None) -> int:
    """Expand a two-digit year: up to the pivot is 20xx, later years are 19xx."""
    if pivot is None:
        pivot = settings.CENTURY_PIVOT_YEAR
    return 2000 + year if year <= pivot else 1900 + year


def _two_digits(value: str, label: str) -> int:
    if not TWO_DIGITS_RE.fullmatch(value or ""):
        raise InvalidDateError(f"Invalid {label}: {value!r}", fragment=value)
    return int(value)


def parse_date(year: str, month: str, day: str, pivot: Optional[int] = None) -> date:
    """
    Build a calendar date from two-digit year, month and day strings.

    Raises:
        InvalidDateError: If the parts do not form a valid date
    """
    full_year = resolve_century(_two_digits(year, "year"), pivot)
    fragment = f"{year}{month}{day}"
    try:
        return date(full_year, _two_digits(month, "month"), _two_digits(day, "day"))
    except ValueError as e:
        raise InvalidDateError(f"Invalid date {fragment}: {e}", fragment=fragment)


def resolve_entry_date(
    value_date: date,
    month: str,
    day: str,
    wrap_days: Optional[int] = None,
) -> date:
    """
    Resolve a year-less entry date against the statement line's value date.

    The entry date first takes the value date's year. When the two dates end
    up more than ``wrap_days`` apart the entry date belongs to the adjacent
    year, e.g. a value date of 2020-12-31 with entry 01/01 becomes 2021-01-01.
    """
    if wrap_days is None:
        wrap_days = settings.ENTRY_DATE_WRAP_DAYS

    fragment = f"{month}{day}"
    try:
        candidate = date(value_date.year, _two_digits(month, "month"), _two_digits(day, "day"))
        if value_date > candidate and (value_date - candidate).days > wrap_days:
            candidate = candidate.replace(year=candidate.year + 1)
        elif candidate > value_date and (candidate - value_date).days > wrap_days:
            candidate = candidate.replace(year=candidate.year - 1)
    except ValueError as e:
        raise InvalidDateError(f"Invalid entry date {fragment}: {e}", fragment=fragment)
    return candidate


def parse_datetime_indication(
    year: str,
    month: str,
    day: str,
    hour: str,
    minute: str,
    sign: str = "",
    offset: str = "",
) -> datetime:
    """Build a timezone-aware datetime from a 13D date-time indication."""
    day_date = parse_date(year, month, day)
    tz = timezone.utc
    if offset:
        offset_delta = timedelta(
            hours=_two_digits(offset[:2], "offset hours"),
            minutes=_two_digits(offset[2:], "offset minutes"),
        )
        if sign == "-":
            offset_delta = -offset_delta
        try:
            tz = timezone(offset_delta)
        except ValueError as e:
            raise InvalidDateError(f"Invalid UTC offset {sign}{offset}: {e}", fragment=offset)

    try:
        return datetime(
            day_date.year,
            day_date.month,
            day_date.day,
            _two_digits(hour, "hour"),
            _two_digits(minute, "minute"),
            tzinfo=tz,
        )
    except ValueError as e:
        raise InvalidDateError(f"Invalid time {hour}{minute}: {e}", fragment=f"{hour}{minute}")
