from __future__ import annotations

import re

_COMMENT_PATTERN = re.compile(r"<!--[\s\S]*?-->")
_TAG_PATTERN = re.compile(r"<[^>]*>")
_INVISIBLE_PATTERN = re.compile("[\u200b-\u200d\u2060\ufeff]")
_BLANK_LINES_PATTERN = re.compile(r"\n\s*\n")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def clean_article_text(text: str) -> str:
    """
    Final cleanup applied to parsed article bodies.

    Markup and invisible characters are removed before whitespace is collapsed,
    so no step can leave work for a second pass: clean(clean(x)) == clean(x).
    """
    if not text:
        return ""
    cleaned = _COMMENT_PATTERN.sub("", text)
    cleaned = _TAG_PATTERN.sub("", cleaned)
    cleaned = _INVISIBLE_PATTERN.sub("", cleaned)
    cleaned = _BLANK_LINES_PATTERN.sub("\n", cleaned)
    cleaned = _WHITESPACE_PATTERN.sub(" ", cleaned)
    return cleaned.strip()
