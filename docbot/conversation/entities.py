"""
Entity extraction for chat messages.

Each extractor is a pure function from message text to a normalized value
or None. ``extract_entities`` runs them in a fixed order and packs the
results into an ``Entities`` record.

Normalized forms:
    phone  bare 10-digit Indian mobile number
    email  as written
    date   ISO YYYY-MM-DD
    time   24-hour HH:MM
    name   capitalized words joined by single spaces

Usage:
    entities = extract_entities("Book me for 28th at 3pm, 98765 43210")
    assert entities.time == "15:00"
"""

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Optional

_PHONE_RAW = re.compile(r"(?<!\d)(?:\+91|91|0)?[\s\-]*([6-9]\d{9})(?!\d)")
_PHONE_COMPACT = re.compile(r"(?<!\d)(?:\+?91|0)?([6-9]\d{9})(?!\d)")
_PHONE_SEPARATORS = re.compile(r"[\s\-().]")

_EMAIL = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")

_ISO_DATE = re.compile(r"(?<!\d)(\d{4})-(\d{1,2})-(\d{1,2})(?!\d)")
_DMY_DATE = re.compile(r"(?<!\d)(\d{1,2})[/-](\d{1,2})[/-](\d{4})(?!\d)")
_TOMORROW = re.compile(r"tomorrow|कल", re.IGNORECASE)
_DAY = re.compile(
    r"(?<![\d:/.\-])(\d{1,2})(?:st|nd|rd|th)?"
    r"(?!\d|\s*[:.]\d|\s*[ap]\.?m\b\.?)",
    re.IGNORECASE,
)
_MONTH = re.compile(
    r"\b(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?"
    r"|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\b",
    re.IGNORECASE,
)

_TIME_MERIDIEM = re.compile(
    r"(?<![\d:.])(\d{1,2})(?:[:.](\d{2}))?\s*([ap])\.?m\b\.?", re.IGNORECASE
)
_TIME_BARE = re.compile(
    r"(?<![\d:/.\-])(\d{1,2})(?:[:.](\d{2}))?(?![\d/\-]|\.\d|st|nd|rd|th)", re.IGNORECASE
)
_MONTH_BEFORE = re.compile(_MONTH.pattern + r"\s*(?:the\s+)?$", re.IGNORECASE)
_MONTH_AFTER = re.compile(r"^\s*(?:of\s+)?" + _MONTH.pattern, re.IGNORECASE)

_NAME_WORD = re.compile(r"\b[A-Z][a-z]+\b")
NAME_STOPWORDS = frozenset(
    {"i", "am", "my", "name", "is", "the", "a", "an", "to", "for", "on", "at", "pm"}
)


_MONTH_ABBR = (
    "jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec",
)


def _month_number(token: str) -> int:
    return _MONTH_ABBR.index(token[:3].lower()) + 1


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def extract_phone(message: str) -> Optional[str]:
    """Find a 10-digit Indian mobile number.

    Accepts ``+91``, ``91`` or ``0`` prefixes and tolerates spaces, dashes,
    dots and brackets between digit groups.

    Examples:
        >>> extract_phone("call me on +91 98765-43210")
        '9876543210'
        >>> extract_phone("5876543210") is None
        True
    """
    match = _PHONE_RAW.search(message)
    if match:
        return match.group(1)
    match = _PHONE_COMPACT.search(_PHONE_SEPARATORS.sub("", message))
    return match.group(1) if match else None


def extract_email(message: str) -> Optional[str]:
    match = _EMAIL.search(message)
    return match.group(0) if match else None


def extract_date(message: str, today: Optional[date] = None) -> Optional[str]:
    """Resolve a date mention to ISO format.

    Priority: ISO date, DD/MM/YYYY (or DD-MM-YYYY), "tomorrow", then a
    bare day of month with an optional month name. A bare day that has
    already passed rolls to next month; an explicit month and day that
    have passed roll to next year. Impossible dates give None.
    """
    today = today or date.today()

    iso = _ISO_DATE.search(message)
    if iso:
        found = _safe_date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))
        return found.isoformat() if found else None

    dmy = _DMY_DATE.search(message)
    if dmy:
        found = _safe_date(int(dmy.group(3)), int(dmy.group(2)), int(dmy.group(1)))
        return found.isoformat() if found else None

    if _TOMORROW.search(message):
        return (today + timedelta(days=1)).isoformat()

    day = None
    for match in _DAY.finditer(message):
        value = int(match.group(1))
        if 1 <= value <= 31:
            day = value
            break
    if day is None:
        return None

    month_match = _MONTH.search(message)
    if month_match:
        found = _safe_date(today.year, _month_number(month_match.group(1)), day)
        if found is not None and found < today:
            found = _safe_date(today.year + 1, found.month, day)
    else:
        year, month = today.year, today.month
        if day < today.day:
            year, month = (year + 1, 1) if month == 12 else (year, month + 1)
        found = _safe_date(year, month, day)

    return found.isoformat() if found else None


def _next_to_month(message: str, start: int, end: int) -> bool:
    return bool(_MONTH_BEFORE.search(message[:start]) or _MONTH_AFTER.search(message[end:]))


def extract_time(message: str) -> Optional[str]:
    """Resolve a time mention to 24-hour ``HH:MM``.

    Explicit AM/PM wins. Without it, 7-11 read as morning, 1-6 and 12 as
    afternoon, and 13-24 as a 24-hour clock. Numbers that belong to a
    date are skipped.

    Examples:
        >>> extract_time("10:30 PM")
        '22:30'
        >>> extract_time("around 4")
        '16:00'
    """
    for match in _TIME_MERIDIEM.finditer(message):
        hour, minutes = int(match.group(1)), int(match.group(2) or 0)
        if not 1 <= hour <= 12 or minutes > 59:
            continue
        if match.group(3).lower() == "p":
            hour = hour % 12 + 12
        else:
            hour = hour % 12
        return f"{hour:02d}:{minutes:02d}"

    for match in _TIME_BARE.finditer(message):
        hour, minutes = int(match.group(1)), int(match.group(2) or 0)
        if not 1 <= hour <= 24 or minutes > 59:
            continue
        if _next_to_month(message, match.start(), match.end()):
            continue
        if hour <= 6:
            hour += 12
        elif hour == 24:
            hour = 0
        return f"{hour:02d}:{minutes:02d}"

    return None


def extract_name(message: str) -> Optional[str]:
    words = [w for w in _NAME_WORD.findall(message) if w.lower() not in NAME_STOPWORDS]
    return " ".join(words) or None


@dataclass(frozen=True)
class Entities:
    """Values pulled out of a single message."""
    phone: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class Extractor:
    """One step of the extraction pipeline."""
    field: str
    func: Callable[..., Optional[str]]
    uses_today: bool = False


EXTRACTORS: list[Extractor] = [
    Extractor("phone", extract_phone),
    Extractor("email", extract_email),
    Extractor("date", extract_date, uses_today=True),
    Extractor("time", extract_time),
    Extractor("name", extract_name),
]


def extract_entities(message: str, today: Optional[date] = None) -> Entities:
    """Run every extractor over ``message``."""
    today = today or date.today()
    values = {}
    for step in EXTRACTORS:
        values[step.field] = step.func(message, today) if step.uses_today else step.func(message)
    return Entities(**values)
