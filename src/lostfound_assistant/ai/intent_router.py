"""Roteador de intenção da mensagem de abertura.

A classificação é consultiva: qualquer erro (chamada, JSON inválido,
formato inesperado) degrada para UNKNOWN e nunca aborta o turno.
"""

from __future__ import annotations

import logging

from lostfound_assistant.ai.llm_client import complete_with_timeout
from lostfound_assistant.ai.prompts import INTENT_SYSTEM_PROMPT
from lostfound_assistant.ai.response_parser import parse_intent_response
from lostfound_assistant.domain.enums import QUERY_INTENTS, ChatIntent, ConversationStep
from lostfound_assistant.domain.models import IntentClassification
from lostfound_assistant.domain.protocols import UnderstandingClient
from lostfound_assistant.observability.logging import get_logger, log_fallback

logger: logging.Logger = get_logger(__name__)


def is_query_intent(intent: ChatIntent) -> bool:
    """True para as quatro intenções de consulta somente-leitura."""
    return intent in QUERY_INTENTS


def entry_step_for(intent: ChatIntent) -> ConversationStep:
    """Passo de entrada no fluxo de coleta para intenções não-consulta.

    FILE_REPORT começa pela categoria; UNKNOWN permanece em GREETING e segue
    para a coleta como relato implícito (o GREETING pode pular campos).
    """
    if intent == ChatIntent.FILE_REPORT:
        return ConversationStep.COLLECTING_CATEGORY
    return ConversationStep.GREETING


class IntentRouter:
    """Classifica a primeira mensagem de uma sessão via uma chamada ao LLM."""

    def __init__(self, llm_client: UnderstandingClient, timeout_seconds: float | None = None) -> None:
        self._llm = llm_client
        self._timeout = timeout_seconds

    async def classify(self, message: str) -> IntentClassification:
        """Classifica a mensagem; nunca lança exceção."""
        messages = [
            {"role": "system", "content": INTENT_SYSTEM_PROMPT},
            {"role": "user", "content": message},
        ]
        try:
            raw = await complete_with_timeout(self._llm, messages, self._timeout)
            classification = parse_intent_response(raw)
        except Exception as e:  # noqa: BLE001 - classificação é consultiva
            log_fallback(logger, "intent_router", reason=type(e).__name__)
            return IntentClassification(intent=ChatIntent.UNKNOWN)

        logger.info(
            "intent_classified",
            extra={
                "intent": classification.intent.value,
                "has_keyword": classification.keyword is not None,
                "has_report_id": classification.report_id is not None,
            },
        )
        return classification
