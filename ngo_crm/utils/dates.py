"""Date helpers"""

import re
from datetime import date, datetime, timezone
from typing import Optional, Union

_FRACTION = re.compile(r"\.(\d+)")
_SHORT_OFFSET = re.compile(r"(\d{2}:\d{2}(?::\d{2})?(?:\.\d+)?[+-]\d{2})$")


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse an ISO date (or datetime) string. Blank values become None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value = value.strip()
    if not value:
        return None
    return date.fromisoformat(value[:10])


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a backend timestamp into an aware datetime (UTC when no offset).

    Postgres trims trailing zeros from the fraction and may send a bare
    ``+00`` offset; both are normalised before ``fromisoformat``.
    """
    if not value:
        return None
    value = value.strip().replace("Z", "+00:00")
    value = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    value = _SHORT_OFFSET.sub(r"\1:00", value)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_date(value: Union[str, date, None]) -> str:
    """Human readable date, e.g. 'Mar 5, 2024'. Empty string for missing dates."""
    parsed = parse_date(value)
    if parsed is None:
        return ""
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"
