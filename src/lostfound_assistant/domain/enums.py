"""Enums de domínio: passos do diálogo, intenções, sinais de fluxo e categorias."""

from __future__ import annotations

from enum import StrEnum


class ConversationStep(StrEnum):
    """Passos da máquina de estados de preenchimento do relato de perda."""

    GREETING = "GREETING"
    COLLECTING_CATEGORY = "COLLECTING_CATEGORY"
    COLLECTING_DESCRIPTION = "COLLECTING_DESCRIPTION"
    COLLECTING_LOCATION = "COLLECTING_LOCATION"
    COLLECTING_DATE = "COLLECTING_DATE"
    COLLECTING_FEATURES = "COLLECTING_FEATURES"
    COLLECTING_PHONE = "COLLECTING_PHONE"
    CONFIRMING = "CONFIRMING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


TERMINAL_STEPS = frozenset({ConversationStep.COMPLETED, ConversationStep.CANCELLED})
"""Passos absorventes: nenhuma transição ou mutação depois deles."""


class ChatIntent(StrEnum):
    """Intenções de alto nível de uma mensagem de abertura."""

    FILE_REPORT = "FILE_REPORT"
    SEARCH_ITEMS = "SEARCH_ITEMS"
    MY_REPORTS = "MY_REPORTS"
    CHECK_MATCHES = "CHECK_MATCHES"
    MY_PICKUPS = "MY_PICKUPS"
    UNKNOWN = "UNKNOWN"


QUERY_INTENTS = frozenset({
    ChatIntent.SEARCH_ITEMS,
    ChatIntent.MY_REPORTS,
    ChatIntent.CHECK_MATCHES,
    ChatIntent.MY_PICKUPS,
})
"""Intenções atendidas por consulta somente-leitura (um turno só)."""


class FlowSignal(StrEnum):
    """Sinal de fluxo declarado pelo LLM em cada turno de coleta."""

    PROVIDE_INFO = "provide_info"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    SKIP = "skip"


class MessageRole(StrEnum):
    """Papéis no histórico da conversa."""

    USER = "user"
    ASSISTANT = "assistant"


class ItemCategory(StrEnum):
    """Conjunto fechado de categorias de itens."""

    ELECTRONICS = "ELECTRONICS"
    DOCUMENTS = "DOCUMENTS"
    CLOTHING = "CLOTHING"
    ACCESSORIES = "ACCESSORIES"
    BAGS = "BAGS"
    KEYS = "KEYS"
    JEWELRY = "JEWELRY"
    BOOKS = "BOOKS"
    SPORTS_EQUIPMENT = "SPORTS_EQUIPMENT"
    OTHER = "OTHER"


VALID_CATEGORIES = frozenset(c.value for c in ItemCategory)
