from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

from dateutil import parser as date_parser

from app.core.errors import InvalidUrlError
from app.core.logging import get_logger

logger = get_logger().bind(module="url_utils")

_US_DATE_PATTERN = re.compile(r"^\s*(\d{1,2})/(\d{1,2})/(\d{4})\s*$")
_EMPTY_MARKERS = {"", "null", "none", "n/a", "unknown"}


def get_hostname(url: str) -> str:
    """
    Return the hostname of an absolute URL, e.g. "www.cnn.com".

    Raises:
        InvalidUrlError: If the URL has no host part
    """
    hostname = urlparse((url or "").strip()).hostname
    if not hostname:
        raise InvalidUrlError(f"URL has no hostname: {url!r}")
    return hostname


def strip_www(hostname: str) -> str:
    return hostname[4:] if hostname.startswith("www.") else hostname


def parse_date_string(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a model-supplied date string into an aware UTC datetime.

    Accepts ISO 8601 variants ("2024-01-01T00:00:00Z", "2024-01-01",
    "2024-01-01T10:00:00+02:00") and the "MM/DD/YYYY" form older prompts asked
    for. Empty or unparsable input returns None; callers pick the default.
    """
    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in _EMPTY_MARKERS:
        return None

    match = _US_DATE_PATTERN.match(text)
    try:
        if match:
            month, day, year = (int(part) for part in match.groups())
            parsed = datetime(year, month, day)
        else:
            parsed = date_parser.isoparse(text)
    except (ValueError, OverflowError):
        try:
            parsed = date_parser.parse(text)
        except (ValueError, OverflowError) as exc:
            logger.debug("date_parse_failed", value=text[:64], error=str(exc))
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
