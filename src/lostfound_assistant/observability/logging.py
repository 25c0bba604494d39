"""Logging estruturado (JSON) do assistente.

Regras:
- Eventos em snake_case, campos estruturados em `extra`
- session_id sempre truncado (utils.ids.short_id)
- Texto de mensagens, e-mails e telefones nunca entram no log
"""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

from lostfound_assistant.observability.middleware import get_correlation_id

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(correlation_id)s %(service)s"

# httpx registra a URL completa em INFO (query string com ids de usuário)
_QUIET_LOGGERS = ("httpx", "httpcore", "openai")


class CorrelationIdFilter(logging.Filter):
    """Anexa `service` e `correlation_id` a cada record."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id()
        record.service = self._service_name
        return True


def configure_logging(level: str, service_name: str) -> None:
    """Instala um único handler JSON no root logger (idempotente)."""
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(
        JsonFormatter(_LOG_FORMAT, rename_fields={"levelname": "level", "name": "logger"})
    )
    handler.addFilter(CorrelationIdFilter(service_name))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_fallback(
    logger: logging.Logger,
    component: str,
    reason: str | None = None,
    **fields: object,
) -> None:
    """Registra que um componente consultivo degradou para o valor padrão.

    Usado pelo roteador de intenção, pelos handlers de consulta e pelo parse
    de respostas não estruturadas. `fields` não pode conter PII.
    """
    extra: dict[str, object] = {"fallback_used": True, "component": component, **fields}
    if reason:
        extra["reason"] = reason
    logger.info("Fallback applied for %s", component, extra=extra)
