from __future__ import annotations

import logging
import time
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from billmaster.core.request_context import clear_request_context, set_request_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
# healthcheck de infraestrutura não gera log por requisição
QUIET_PATHS = frozenset({"/health"})


def _request_id(request: Request) -> str:
    incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    return incoming[:128] or str(uuid.uuid4())


def _principal_ids(request: Request) -> tuple[Optional[str], Optional[str], Optional[str]]:
    # preenchido por get_current_principal (deps.py); ausente em rotas públicas
    principal = getattr(request.state, "principal", None)
    if principal is None:
        return None, None, None
    return principal.company_id, principal.user_id, principal.role_name


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Um log estruturado por requisição, com tenant, usuário e duração."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        request_id = _request_id(request)
        request.state.request_id = request_id
        set_request_context(request_id=request_id)

        status_code = 500
        response = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            company_id, user_id, role_name = _principal_ids(request)
            if request.url.path not in QUIET_PATHS:
                level = logging.ERROR if status_code >= 500 else logging.INFO
                logger.log(
                    level,
                    "request completed role=%s",
                    role_name,
                    extra={
                        "request_id": request_id,
                        "company_id": company_id,
                        "user_id": user_id,
                        "endpoint": request.url.path,
                        "method": request.method,
                        "status_code": status_code,
                        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    },
                )
            clear_request_context()
