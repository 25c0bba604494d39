"""Middleware de correlação e log de acesso das rotas de chat."""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_HEADER = "x-correlation-id"

_access_logger = logging.getLogger("lostfound_assistant.access")


def get_correlation_id() -> str:
    """Correlation id do request corrente; vazio fora de um request."""
    return _correlation_id.get()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Propaga (ou gera) o correlation id e registra um log de acesso por request.

    O log de acesso leva só método, rota, status e duração: nunca query string
    nem corpo, que podem conter texto do usuário.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        token = _correlation_id.set(correlation_id)
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            _access_logger.info(
                "request_completed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                },
            )
            _correlation_id.reset(token)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
