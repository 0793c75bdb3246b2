"""Request context helpers.

The current request id lives in a ContextVar so every log line emitted while
serving a request can be correlated with it.
"""
from __future__ import annotations

from contextvars import ContextVar
from typing import Any, Dict, Optional


_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def set_context(*, request_id: Optional[str] = None) -> None:
    if request_id is not None:
        _request_id.set(request_id)


def clear_context() -> None:
    _request_id.set(None)


def get_context() -> Dict[str, Any]:
    ctx: Dict[str, Any] = {}
    rid = _request_id.get()
    if rid:
        ctx["request_id"] = rid
    return ctx
