# app/core/request_id.py
from __future__ import annotations

import contextvars
import re
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

_request_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)
_run_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("run_id", default=None)

# Ids from the browser extension are echoed back in X-Request-Id and logged
_CLIENT_REQUEST_ID = re.compile(r"[A-Za-z0-9._-]{1,64}")

# -------- Request ID (API) ---------------------------------------------------

def resolve_request_id(header_value: Optional[str]) -> str:
    """Use the caller's X-Request-Id when it is a short token, else mint one."""
    candidate = (header_value or "").strip()
    if _CLIENT_REQUEST_ID.fullmatch(candidate):
        return candidate
    return uuid.uuid4().hex

def set_request_id(request_id: Optional[str]) -> None:
    _request_id_ctx.set(request_id)

def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()

def clear_request_id() -> None:
    _request_id_ctx.set(None)

# -------- Run ID (scripts) ---------------------------------------------------

def get_run_id() -> Optional[str]:
    return _run_id_ctx.get()

@contextmanager
def with_run_id(run_id: Optional[str] = None) -> Iterator[str]:
    """
    Scope one run of scripts/clean_article_text.py or
    scripts/dedupe_publications.py: every batch, merge and summary line logged
    inside the block carries the same ``run_id``, so a single cleanup or dedupe
    pass can be pulled out of the shared log stream. The previous id is
    restored on exit.
    """
    rid = run_id or uuid.uuid4().hex
    token = _run_id_ctx.set(rid)
    try:
        yield rid
    finally:
        _run_id_ctx.reset(token)
