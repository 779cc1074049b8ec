from datetime import datetime, timezone
from typing import Optional


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string"""
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 string into an aware datetime.
    Accepts a trailing 'Z' and treats naive values as UTC.
    :return: the datetime, or None if the value can't be parsed
    """
    if not isinstance(value, str) or not value:
        return None

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
