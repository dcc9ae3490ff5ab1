"""Per-request identifiers shared with the log formatter.

A single ``RequestContext`` lives in a ``ContextVar``; each update replaces it
with a copy so concurrent requests never see each other's ids.
"""
from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class RequestContext:
    request_id: Optional[str] = None
    company_id: Optional[str] = None
    user_id: Optional[str] = None


_EMPTY = RequestContext()
_CURRENT: ContextVar[RequestContext] = ContextVar("billmaster_request_context", default=_EMPTY)


def current_context() -> RequestContext:
    return _CURRENT.get()


def set_request_context(**fields: Optional[str]) -> RequestContext:
    """Atualiza só os campos informados (None mantém o valor atual)."""
    updates = {key: value for key, value in fields.items() if value is not None}
    context = replace(_CURRENT.get(), **updates) if updates else _CURRENT.get()
    _CURRENT.set(context)
    return context


def clear_request_context() -> None:
    _CURRENT.set(_EMPTY)
