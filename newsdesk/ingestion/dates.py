"""Date normalization for feed and page dates.

Feeds and news pages publish dates in every format imaginable: ISO-8601,
RFC 822 (what RSS asks for), and Turkish locale strings such as
``"Son Güncelleme : 15.06.2025 - 17:00"`` or ``"15 Haziran 2025"``. Everything
ends up as a timezone-aware ``pendulum.DateTime``.
"""

import logging
import re
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Iterable, Optional

import pendulum

from ..errors import DateParseError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Europe/Istanbul"

_NUMERIC_DATE = r"(?<!\d)(\d{1,2})\.(\d{1,2})\.(\d{4})"
_TIME = r"(\d{1,2}):(\d{2})"

# Tried in order, first calendar-valid match wins.
LOCALE_PATTERNS = [
    re.compile(r"Son\s+G[üu]ncelleme\s*:\s*" + _NUMERIC_DATE + r"\s*-\s*" + _TIME, re.IGNORECASE),
    re.compile(_NUMERIC_DATE + r"\s*-\s*" + _TIME),
    re.compile(_NUMERIC_DATE + r"\s+" + _TIME),
    re.compile(_NUMERIC_DATE),
]

TURKISH_MONTHS = {
    "ocak": 1,
    "şubat": 2,
    "mart": 3,
    "nisan": 4,
    "mayıs": 5,
    "haziran": 6,
    "temmuz": 7,
    "ağustos": 8,
    "eylül": 9,
    "ekim": 10,
    "kasım": 11,
    "aralık": 12,
}

MONTH_NAME_PATTERN = re.compile(
    r"(?<!\d)(\d{1,2})\s+(" + "|".join(TURKISH_MONTHS) + r")\s+(\d{4})(?:\s*,?\s*-?\s*" + _TIME + r")?",
    re.IGNORECASE,
)

LABEL_PREFIX = re.compile(
    r"^\s*(?:Son\s+G[üu]ncelleme|G[üu]ncelleme|Yay[ıi]n\s+Tarihi|Tarih"
    r"|Last\s+updated|Updated|Published|Posted)\s*:?\s*",
    re.IGNORECASE,
)


def _month_number(name: str) -> Optional[int]:
    # "İ".lower() yields "i" plus a combining dot
    return TURKISH_MONTHS.get(name.replace("İ", "i").replace("I", "ı").lower())


def _build(
    year: int, month: int, day: int, hour: int, minute: int, tz: str
) -> Optional[pendulum.DateTime]:
    """Build a datetime, or None when the parts are not a real calendar date."""
    if not (1 <= month <= 12 and 1 <= day <= 31):
        return None
    try:
        return pendulum.datetime(year, month, day, hour, minute, tz=tz)
    except ValueError:
        return None


def _parse_standard(raw: str, tz: str) -> Optional[pendulum.DateTime]:
    """ISO-8601 first, then RFC 822."""
    try:
        parsed = pendulum.parse(raw, tz=tz)
        if isinstance(parsed, datetime):
            return parsed
    except (ValueError, TypeError, OverflowError):
        pass

    try:
        parsed = parsedate_to_datetime(raw)
    except (ValueError, TypeError, IndexError):
        return None
    if parsed is None:
        return None
    return pendulum.instance(parsed, tz=tz)


def _parse_locale(raw: str, tz: str) -> Optional[pendulum.DateTime]:
    for pattern in LOCALE_PATTERNS:
        for match in pattern.finditer(raw):
            groups = match.groups()
            day, month, year = int(groups[0]), int(groups[1]), int(groups[2])
            hour = int(groups[3]) if len(groups) > 3 and groups[3] else 0
            minute = int(groups[4]) if len(groups) > 4 and groups[4] else 0
            result = _build(year, month, day, hour, minute, tz)
            if result is not None:
                return result

    for match in MONTH_NAME_PATTERN.finditer(raw):
        month = _month_number(match.group(2))
        if month is None:
            continue
        hour = int(match.group(4)) if match.group(4) else 0
        minute = int(match.group(5)) if match.group(5) else 0
        result = _build(int(match.group(3)), month, int(match.group(1)), hour, minute, tz)
        if result is not None:
            return result

    return None


def _parse_lenient(raw: str, tz: str) -> Optional[pendulum.DateTime]:
    cleaned = LABEL_PREFIX.sub("", raw)
    cleaned = re.sub(r"\s+-\s+", " ", cleaned, count=1).strip()
    if not cleaned:
        return None
    try:
        parsed = pendulum.parse(cleaned, tz=tz, strict=False, day_first=True)
    except (ValueError, TypeError, OverflowError):
        return None
    return parsed if isinstance(parsed, datetime) else None


def normalize_date(raw: str, tz: str = DEFAULT_TIMEZONE) -> pendulum.DateTime:
    """
    Parse a date string into a timezone-aware datetime.

    Args:
        raw: Date string from a feed or page
        tz: Timezone used when the string carries no offset

    Returns:
        Parsed datetime

    Raises:
        DateParseError: If no supported format matches
    """
    if not raw or not raw.strip():
        raise DateParseError("Empty date string")

    text = raw.strip()
    for parser in (_parse_standard, _parse_locale, _parse_lenient):
        result = parser(text, tz)
        if result is not None:
            return result

    raise DateParseError(f"Unrecognized date format: {raw!r}")


def first_valid_date(candidates: Iterable[Optional[str]], tz: str = DEFAULT_TIMEZONE) -> Optional[pendulum.DateTime]:
    """Return the first candidate that parses, or None."""
    for candidate in candidates:
        if not candidate:
            continue
        try:
            return normalize_date(candidate, tz)
        except DateParseError:
            logger.debug("Could not parse date %r", candidate)
    return None


def normalize_date_or_now(
    candidates: Iterable[Optional[str]], tz: str = DEFAULT_TIMEZONE
) -> pendulum.DateTime:
    """Like ``first_valid_date`` but falls back to the current time."""
    return first_valid_date(candidates, tz) or pendulum.now("UTC")
