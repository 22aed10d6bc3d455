"""Token based date formatting.

Patterns use the familiar ``YYYY-MM-DD HH:mm:ss`` token style. Text inside
square brackets is copied verbatim, so ``[Today is] dddd`` keeps the words.

    Token   Output
    YYYY    2024        YY    24
    MMMM    January     MMM   Jan     MM   01    M   1
    DD      05          D     5
    dddd    Friday      ddd   Fri
    HH      07          H     7       (24 hour)
    hh      07          h     7       (12 hour)
    mm      09          m     9
    ss      03          s     3
    SSS     042         (milliseconds)
    A       PM          a     pm
    Z       +08:00      ZZ    +0800
"""

import re
from datetime import datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
WEEKDAY_NAMES = [
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
]

# Epoch values at or above this magnitude are taken to be milliseconds
MILLISECONDS_THRESHOLD = 1e11

_TOKEN = re.compile(
    r"\[([^\]]*)\]|YYYY|YY|MMMM|MMM|MM|M|DD|D|dddd|ddd|HH|H|hh|h|mm|m|ss|s|SSS|A|a|ZZ|Z"
)
_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def _offset(dt: datetime, separator: str) -> str:
    offset = dt.utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds() // 60)
    sign = "-" if minutes < 0 else "+"
    hours, minutes = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}{separator}{minutes:02d}"


def _render(token: str, dt: datetime) -> str:
    hour12 = dt.hour % 12 or 12
    if token == "YYYY":
        return f"{dt.year:04d}"
    if token == "YY":
        return f"{dt.year % 100:02d}"
    if token == "MMMM":
        return MONTH_NAMES[dt.month - 1]
    if token == "MMM":
        return MONTH_NAMES[dt.month - 1][:3]
    if token == "MM":
        return f"{dt.month:02d}"
    if token == "M":
        return str(dt.month)
    if token == "DD":
        return f"{dt.day:02d}"
    if token == "D":
        return str(dt.day)
    if token == "dddd":
        return WEEKDAY_NAMES[dt.weekday()]
    if token == "ddd":
        return WEEKDAY_NAMES[dt.weekday()][:3]
    if token == "HH":
        return f"{dt.hour:02d}"
    if token == "H":
        return str(dt.hour)
    if token == "hh":
        return f"{hour12:02d}"
    if token == "h":
        return str(hour12)
    if token == "mm":
        return f"{dt.minute:02d}"
    if token == "m":
        return str(dt.minute)
    if token == "ss":
        return f"{dt.second:02d}"
    if token == "s":
        return str(dt.second)
    if token == "SSS":
        return f"{dt.microsecond // 1000:03d}"
    if token == "A":
        return "AM" if dt.hour < 12 else "PM"
    if token == "a":
        return "am" if dt.hour < 12 else "pm"
    if token == "Z":
        return _offset(dt, ":")
    if token == "ZZ":
        return _offset(dt, "")
    raise ValueError(f"Unsupported format token: {token}")


def format_datetime(dt: datetime, pattern: str) -> str:
    """Render ``dt`` according to a token pattern."""

    def replace(match: re.Match) -> str:
        literal = match.group(1)
        if literal is not None:
            return literal
        return _render(match.group(0), dt)

    return _TOKEN.sub(replace, pattern)


def resolve_timezone(name: str) -> tzinfo:
    """Look up an IANA time zone name; ``UTC``/``Z`` map to UTC."""
    if name.strip().upper() in ("UTC", "Z", "GMT"):
        return timezone.utc
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {name}") from None


def _from_epoch(value: int | float | str, tz: tzinfo) -> datetime:
    try:
        number = float(value)
        seconds = number / 1000 if abs(number) >= MILLISECONDS_THRESHOLD else number
        return datetime.fromtimestamp(seconds, tz)
    except (OverflowError, OSError, ValueError):
        raise ValueError(f"Timestamp out of range: {value}") from None


def parse_timestamp(value: int | float | str | None, tz: tzinfo) -> datetime:
    """
    Turn a timestamp argument into an aware datetime in ``tz``.

    Numbers (or numeric strings) are Unix epoch seconds, or milliseconds when
    their magnitude is at least 1e11. Other strings are parsed as ISO 8601;
    a naive ISO value is read as local time in ``tz``. None means now.
    """
    if value is None:
        return datetime.now(tz)
    if isinstance(value, bool):
        raise ValueError("Timestamp must be a number or an ISO 8601 string")
    if isinstance(value, (int, float)):
        return _from_epoch(value, tz)

    text = value.strip()
    if not text:
        return datetime.now(tz)
    if _NUMBER.match(text):
        return _from_epoch(text, tz)

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Unrecognized timestamp: {value}") from None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)
