from __future__ import annotations

import pytest

from services.content_chunker import (
    CHARS_PER_TOKEN,
    CHUNK_TOKEN_BUDGET,
    ContentChunks,
    chunk_content,
    estimate_tokens,
)


def test_chunks_concatenate_back_to_input():
    """Joining the chunks in order reproduces the original string."""
    content = "<div>" + "abcdefghij" * 123 + "</div>"
    chunks = ContentChunks(content, token_budget=25)
    assert "".join(chunks) == content
    assert len(list(chunks)) == len(chunks) > 1


def test_every_chunk_fits_the_budget():
    content = "x" * 1001
    chunks = ContentChunks(content, token_budget=50)
    for chunk in chunks:
        assert len(chunk) <= chunks.max_chars
        assert estimate_tokens(chunk) <= 50


def test_default_budget_keeps_short_html_in_one_chunk():
    content = "<p>short</p>"
    chunks = chunk_content(content)
    assert list(chunks) == [content]
    assert chunks.max_chars == CHUNK_TOKEN_BUDGET * CHARS_PER_TOKEN


def test_empty_content_yields_no_chunks():
    chunks = ContentChunks("")
    assert len(chunks) == 0
    assert list(chunks) == []


def test_chunks_can_be_iterated_twice():
    """Iteration restarts from the beginning each time."""
    chunks = ContentChunks("0123456789" * 10, token_budget=3)
    assert list(chunks) == list(chunks)


def test_estimate_tokens_rounds_up():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2


def test_non_positive_budget_rejected():
    with pytest.raises(ValueError, match="token_budget"):
        ContentChunks("abc", token_budget=0)
