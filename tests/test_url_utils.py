from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.core.errors import InvalidUrlError
from services.url_utils import get_hostname, parse_date_string, strip_www


def test_get_hostname():
    assert get_hostname("https://www.cnn.com/2024/07/01/politics/story") == "www.cnn.com"
    assert get_hostname("http://example.org:8080/a?b=c") == "example.org"


@pytest.mark.parametrize("url", ["", "not a url", "http://", "/relative/path"])
def test_get_hostname_rejects_urls_without_host(url):
    with pytest.raises(ValueError, match="no hostname"):
        get_hostname(url)


def test_strip_www():
    assert strip_www("www.cnn.com") == "cnn.com"
    assert strip_www("nytimes.com") == "nytimes.com"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2024-01-01T00:00:00Z", datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ("2024-01-01", datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ("2024-01-01T10:00:00+02:00", datetime(2024, 1, 1, 8, tzinfo=timezone.utc)),
        ("07/04/2024", datetime(2024, 7, 4, tzinfo=timezone.utc)),
        ("July 4, 2024", datetime(2024, 7, 4, tzinfo=timezone.utc)),
    ],
)
def test_parse_date_string_returns_utc(raw, expected):
    parsed = parse_date_string(raw)
    assert parsed == expected
    assert parsed.tzinfo == timezone.utc


@pytest.mark.parametrize("raw", [None, "", "   ", "NULL", "unknown", "not a date at all"])
def test_parse_date_string_missing_or_garbage(raw):
    assert parse_date_string(raw) is None


def test_missing_hostname_is_an_invalid_url_error():
    """The error carries its own 400 status, separate from other ValueErrors."""
    with pytest.raises(InvalidUrlError) as excinfo:
        get_hostname("http://")
    assert excinfo.value.status_code == 400
