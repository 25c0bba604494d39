"""Orquestrador de conversa: um turno por mensagem, do roteamento ao relato.

Fluxo de `send`:
1. Resolver sessão (cria nova se id desconhecido/expirado)
2. Passo terminal → resposta fixa, sem mutação
3. Registrar mensagem do usuário
4. Primeiro ponto de classificação → roteador de intenção; consultas
   executam o handler uma vez e retornam sem tocar a coleta
5. Coleta: janela de histórico + instrução → chamada de compreensão (fatal)
6. Parse defensivo, merge, próximo passo
7. COMPLETED → cria relato (falha volta a CONFIRMING); CANCELLED → resposta fixa
8. Persistir e retornar
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import Callable
from datetime import date, datetime

from lostfound_assistant.ai.intent_router import IntentRouter, entry_step_for, is_query_intent
from lostfound_assistant.ai.llm_client import complete_with_timeout
from lostfound_assistant.ai.prompts import (
    QUERY_FAILED_MESSAGE,
    REPORT_CANCELLED_REPLY,
    REPORT_FAILED_REPLY,
    build_report_system_prompt,
    get_step_prompt,
    query_reply,
    report_filed_reply,
    terminal_reply,
)
from lostfound_assistant.ai.response_parser import parse_report_response
from lostfound_assistant.application.errors import AssistantUnavailableError
from lostfound_assistant.application.query_handlers import QueryHandlers
from lostfound_assistant.config.settings import DEFAULT_HISTORY_WINDOW
from lostfound_assistant.domain.enums import (
    VALID_CATEGORIES,
    ChatIntent,
    ConversationStep,
    FlowSignal,
    MessageRole,
)
from lostfound_assistant.domain.models import (
    ConversationSession,
    IntentClassification,
    NewLostReport,
    QueryResult,
    TurnReply,
    utcnow,
)
from lostfound_assistant.domain.protocols import ReportCreator, UnderstandingClient
from lostfound_assistant.domain.report_merge import merge_extracted_data
from lostfound_assistant.domain.step_transition import next_step
from lostfound_assistant.infra.session_contract import SessionStore
from lostfound_assistant.observability.logging import get_logger, log_fallback
from lostfound_assistant.utils.ids import short_id

logger: logging.Logger = get_logger(__name__)


def _reply(
    session: ConversationSession,
    text: str,
    *,
    intent: ChatIntent | None = None,
    report_id: str | None = None,
    query_result: QueryResult | None = None,
) -> TurnReply:
    return TurnReply(
        session_id=session.session_id,
        reply=text,
        step=session.step,
        intent=intent or session.intent,
        collected_data=session.collected_data.model_copy(deep=True),
        report_id=report_id,
        query_result=query_result,
    )


class ConversationOrchestrator:
    """Coordena store, roteador, handlers, LLM e criação de relatos.

    Turnos de uma mesma sessão são serializados por um lock por sessão;
    sessões distintas nunca disputam o mesmo lock.
    """

    def __init__(
        self,
        store: SessionStore,
        llm_client: UnderstandingClient,
        query_handlers: QueryHandlers,
        report_creator: ReportCreator,
        router: IntentRouter | None = None,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        llm_timeout_seconds: float | None = None,
        today: Callable[[], date] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._llm = llm_client
        self._handlers = query_handlers
        self._reports = report_creator
        self._router = router or IntentRouter(llm_client, timeout_seconds=llm_timeout_seconds)
        self._history_window = history_window
        self._llm_timeout = llm_timeout_seconds
        self._clock = clock or utcnow
        self._today = today or (lambda: self._clock().date())
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @property
    def store(self) -> SessionStore:
        return self._store

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    async def start(self, user_id: str, user_email: str) -> TurnReply:
        """Cria sessão nova e retorna a saudação."""
        session = await self._store.create(user_id, user_email)
        greeting = get_step_prompt(ConversationStep.GREETING, session.collected_data)
        session.add_message(MessageRole.ASSISTANT, greeting, now=self._clock())
        await self._store.update(session)

        logger.info("chat_session_started", extra={"session_id": short_id(session.session_id)})
        return _reply(session, greeting)

    async def send(self, session_id: str, text: str, user_id: str, user_email: str) -> TurnReply:
        """Processa um turno do usuário (serializado por sessão)."""
        # lock pelo id pedido: envios concorrentes para um id expirado recuperam
        # cada um sua própria sessão nova, independentes entre si
        lock = self._lock_for(session_id)
        async with lock:
            return await self._process(session_id, text, user_id, user_email)

    async def get_session(self, session_id: str) -> ConversationSession | None:
        return await self._store.get(session_id)

    async def delete_session(self, session_id: str) -> None:
        await self._store.delete(session_id)
        logger.info("chat_session_deleted", extra={"session_id": short_id(session_id)})

    async def _process(
        self, session_id: str, text: str, user_id: str, user_email: str
    ) -> TurnReply:
        session = await self._store.get(session_id)
        if session is None:
            session = await self._store.create(user_id, user_email)
            logger.info(
                "chat_session_recovered",
                extra={
                    "requested_session_id": short_id(session_id),
                    "session_id": short_id(session.session_id),
                },
            )

        if session.is_terminal:
            return _reply(session, terminal_reply(session.step))

        session.add_message(MessageRole.USER, text, now=self._clock())

        if session.awaiting_classification:
            classification = await self._router.classify(text)
            if is_query_intent(classification.intent):
                return await self._answer_query(session, classification, user_id)
            session.intent = classification.intent
            if classification.intent == ChatIntent.FILE_REPORT:
                session.step = entry_step_for(classification.intent)

        return await self._fill_report(session, user_id, user_email)

    async def _answer_query(
        self,
        session: ConversationSession,
        classification: IntentClassification,
        user_id: str,
    ) -> TurnReply:
        try:
            result = await self._handlers.run(classification, user_id)
        except Exception as e:  # noqa: BLE001 - falha de consulta é consultiva
            log_fallback(
                logger,
                "query_handler",
                reason=type(e).__name__,
                intent=classification.intent.value,
            )
            result = QueryResult(type=classification.intent, message=QUERY_FAILED_MESSAGE)

        reply = query_reply(result.message)
        session.add_message(MessageRole.ASSISTANT, reply, now=self._clock())
        session.intent = ChatIntent.UNKNOWN
        await self._store.update(session)

        logger.info(
            "query_answered",
            extra={
                "session_id": short_id(session.session_id),
                "intent": classification.intent.value,
                "total": result.total,
            },
        )
        return _reply(session, reply, intent=classification.intent, query_result=result)

    def _build_context(self, session: ConversationSession) -> list[dict[str, str]]:
        context = [{"role": "system", "content": build_report_system_prompt(self._today())}]
        context.extend(
            {"role": m.role.value, "content": m.content}
            for m in session.recent_messages(self._history_window)
        )
        return context

    async def _fill_report(
        self, session: ConversationSession, user_id: str, user_email: str
    ) -> TurnReply:
        try:
            raw = await complete_with_timeout(
                self._llm, self._build_context(session), self._llm_timeout
            )
        except Exception as e:
            logger.error(
                "report_turn_llm_failed",
                extra={"session_id": short_id(session.session_id), "error_type": type(e).__name__},
            )
            raise AssistantUnavailableError() from e

        response = parse_report_response(raw)
        if not response.structured:
            log_fallback(logger, "report_response_parser", reason="unstructured_reply")

        updated = merge_extracted_data(session.collected_data, response.extracted, VALID_CATEGORIES)
        signal = response.extracted.flow_signal or FlowSignal.PROVIDE_INFO
        previous_step = session.step
        session.step = next_step(session.step, session.collected_data, signal)

        logger.info(
            "report_step_transition",
            extra={
                "session_id": short_id(session.session_id),
                "from_step": str(previous_step),
                "to_step": str(session.step),
                "signal": signal.value,
                "updated_fields": updated,
            },
        )

        reply = response.reply
        report_id: str | None = None

        if session.step == ConversationStep.COMPLETED:
            try:
                report_id = await self._reports.create_lost_report(
                    self._build_report(session, user_id, user_email)
                )
                reply = report_filed_reply(report_id)
                logger.info(
                    "lost_report_filed",
                    extra={"session_id": short_id(session.session_id), "report_id": report_id},
                )
            except Exception as e:  # noqa: BLE001 - dados preservados, usuário pode confirmar de novo
                logger.error(
                    "lost_report_filing_failed",
                    extra={
                        "session_id": short_id(session.session_id),
                        "error_type": type(e).__name__,
                    },
                )
                session.step = ConversationStep.CONFIRMING
                reply = REPORT_FAILED_REPLY
        elif session.step == ConversationStep.CANCELLED:
            reply = REPORT_CANCELLED_REPLY
        else:
            step_prompt = get_step_prompt(session.step, session.collected_data)
            if not reply:
                reply = step_prompt
            elif step_prompt and step_prompt not in reply:
                reply = f"{reply}\n\n{step_prompt}"

        session.add_message(MessageRole.ASSISTANT, reply, now=self._clock())
        await self._store.update(session)
        return _reply(session, reply, report_id=report_id)

    @staticmethod
    def _build_report(session: ConversationSession, user_id: str, user_email: str) -> NewLostReport:
        """Monta o relato completo.

        Raises:
            ValueError: Campo obrigatório ausente (não deve ocorrer após CONFIRMING)
        """
        data = session.collected_data
        if (
            data.category is None
            or not data.description
            or not data.location_lost
            or data.date_lost is None
        ):
            raise ValueError("Collected report data is incomplete")
        return NewLostReport(
            category=data.category,
            description=data.description,
            location_lost=data.location_lost,
            date_lost=data.date_lost,
            reported_by=user_id,
            contact_email=user_email,
            contact_phone=data.contact_phone,
            identifying_features=data.identifying_features or [],
        )
