from __future__ import annotations

import math
from typing import Iterator

# One token is roughly four characters. A 3800-token chunk stays under a 4k
# input cap even when the chunk is entirely text.
CHARS_PER_TOKEN = 4
CHUNK_TOKEN_BUDGET = 3800


def estimate_tokens(text: str, chars_per_token: int = CHARS_PER_TOKEN) -> int:
    return math.ceil(len(text) / chars_per_token)


class ContentChunks:
    """
    Lazy, restartable split of a string into token-bounded slices.

    Iterating yields contiguous slices in order; joining them gives back the
    original string. Every slice holds at most ``token_budget * chars_per_token``
    characters, so its estimated token count never exceeds the budget.
    """

    def __init__(
        self,
        content: str,
        *,
        token_budget: int = CHUNK_TOKEN_BUDGET,
        chars_per_token: int = CHARS_PER_TOKEN,
    ) -> None:
        if token_budget <= 0:
            raise ValueError("token_budget must be positive")
        if chars_per_token <= 0:
            raise ValueError("chars_per_token must be positive")
        self._content = content or ""
        self.token_budget = token_budget
        self.chars_per_token = chars_per_token

    @property
    def max_chars(self) -> int:
        return self.token_budget * self.chars_per_token

    def __len__(self) -> int:
        return math.ceil(len(self._content) / self.max_chars)

    def __iter__(self) -> Iterator[str]:
        step = self.max_chars
        for start in range(0, len(self._content), step):
            yield self._content[start : start + step]

    def __repr__(self) -> str:
        return (
            f"ContentChunks(chars={len(self._content)}, chunks={len(self)}, "
            f"token_budget={self.token_budget})"
        )


def chunk_content(content: str, *, token_budget: int = CHUNK_TOKEN_BUDGET) -> ContentChunks:
    return ContentChunks(content, token_budget=token_budget)
