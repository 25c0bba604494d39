"""Fábrica da aplicação FastAPI."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from lostfound_assistant.ai.llm_client import LLMClient
from lostfound_assistant.api.routes import router
from lostfound_assistant.application.errors import AssistantUnavailableError
from lostfound_assistant.application.orchestrator import ConversationOrchestrator
from lostfound_assistant.application.query_handlers import QueryHandlers
from lostfound_assistant.config.settings import Settings, get_settings
from lostfound_assistant.infra.records_client import RecordsServiceClient
from lostfound_assistant.infra.session_contract import SessionStoreError
from lostfound_assistant.infra.session_store import create_session_store
from lostfound_assistant.observability.logging import configure_logging, get_logger
from lostfound_assistant.observability.middleware import CorrelationIdMiddleware

logger = get_logger(__name__)


def _build_orchestrator(settings: Settings) -> tuple[ConversationOrchestrator, RecordsServiceClient]:
    """Monta o orquestrador com os colaboradores reais."""
    records = RecordsServiceClient.from_settings(settings)
    orchestrator = ConversationOrchestrator(
        store=create_session_store(settings),
        llm_client=LLMClient.from_settings(settings),
        query_handlers=QueryHandlers(records),
        report_creator=records,
        history_window=settings.chat_history_window,
        llm_timeout_seconds=settings.llm_timeout_seconds,
    )
    return orchestrator, records


async def _assistant_unavailable(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"success": False, "message": str(exc)},
    )


async def _session_store_failed(request: Request, exc: Exception) -> JSONResponse:
    logger.error("session_store_unavailable", extra={"error_type": type(exc).__name__})
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"success": False, "message": "Session storage temporarily unavailable"},
    )


def create_app(
    settings: Settings | None = None,
    orchestrator: ConversationOrchestrator | None = None,
) -> FastAPI:
    """Cria a aplicação FastAPI.

    Args:
        settings: Configurações (padrão: variáveis de ambiente)
        orchestrator: Orquestrador pronto (testes); senão monta os colaboradores reais

    Raises:
        ValueError: Configuração inválida
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.service_name)

    validation_errors: list[str] = []
    validation_errors.extend(settings.validate_session_store_config())
    validation_errors.extend(settings.validate_llm_config())

    if validation_errors:
        error_msg = "; ".join(validation_errors)
        raise ValueError(f"Configuração inválida: {error_msg}")

    records: RecordsServiceClient | None = None
    if orchestrator is None:
        orchestrator, records = _build_orchestrator(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await orchestrator.store.start()
        logger.info("session_store_started")
        try:
            yield
        finally:
            await orchestrator.store.stop()
            if records is not None:
                await records.aclose()
            logger.info("session_store_stopped")

    app = FastAPI(title=settings.service_name, version=settings.version, lifespan=lifespan)
    app.add_middleware(CorrelationIdMiddleware)
    app.include_router(router)
    app.add_exception_handler(AssistantUnavailableError, _assistant_unavailable)
    app.add_exception_handler(SessionStoreError, _session_store_failed)

    app.state.settings = settings
    app.state.orchestrator = orchestrator

    return app
