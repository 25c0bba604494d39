"""Modelos de domínio: sessão de conversa, dados coletados e resultados de consulta."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from lostfound_assistant.domain.enums import (
    TERMINAL_STEPS,
    ChatIntent,
    ConversationStep,
    FlowSignal,
    ItemCategory,
    MessageRole,
)

MAX_QUERY_RESULTS = 5

_NULL_TOKENS = frozenset({"null", "none", "n/a"})

# aceitam inteiro JSON (ex.: telefone 5551234567)
_NUMERIC_TEXT_FIELDS = frozenset({"description", "contact_phone"})


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


class CamelModel(BaseModel):
    """Base com aliases camelCase para o contrato JSON da API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CollectedReportData(CamelModel):
    """Relato de perda parcialmente (ou totalmente) preenchido.

    Invariantes:
    - category, se presente, pertence a ItemCategory
    - date_lost, se presente, é uma data de calendário válida
    - campos preenchidos nunca voltam a None em turnos posteriores
    """

    category: ItemCategory | None = None
    description: str | None = None
    location_lost: str | None = None
    date_lost: date | None = None
    identifying_features: list[str] | None = None
    contact_phone: str | None = None


class ExtractedFields(CamelModel):
    """Campos extraídos pelo LLM em um turno (todos opcionais, ainda não validados).

    Valores malformados viram None campo a campo; o modelo nunca rejeita o
    objeto inteiro por causa de um campo ruim.
    """

    category: str | None = None
    description: str | None = None
    location_lost: str | None = None
    date_lost: str | None = None
    identifying_features: list[str] | None = None
    contact_phone: str | None = None
    flow_signal: FlowSignal | None = Field(default=None, alias="intent")

    @field_validator(
        "category", "description", "location_lost", "date_lost", "contact_phone", mode="before"
    )
    @classmethod
    def _text_or_none(cls, value: Any, info: ValidationInfo) -> str | None:
        if (
            info.field_name in _NUMERIC_TEXT_FIELDS
            and isinstance(value, int)
            and not isinstance(value, bool)
        ):
            value = str(value)
        if not isinstance(value, str):
            return None
        value = value.strip()
        if not value or value.lower() in _NULL_TOKENS:
            return None
        return value

    @field_validator("identifying_features", mode="before")
    @classmethod
    def _features_or_none(cls, value: Any) -> list[str] | None:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            return None
        features = [
            item.strip()
            for item in value
            if isinstance(item, str) and item.strip() and item.strip().lower() not in _NULL_TOKENS
        ]
        return features or None

    @field_validator("flow_signal", mode="before")
    @classmethod
    def _signal_or_none(cls, value: Any) -> FlowSignal | None:
        if not isinstance(value, str):
            return None
        try:
            return FlowSignal(value.strip().lower())
        except ValueError:
            return None


class ChatMessage(CamelModel):
    """Mensagem do histórico (append-only)."""

    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


class ConversationSession(CamelModel):
    """Estado completo de um diálogo ativo.

    Responsabilidades:
    - Rastrear passo atual e intenção ativa
    - Acumular dados do relato entre turnos
    - Manter histórico ordenado para o contexto do LLM
    - Serializável para Redis (JSON)
    """

    session_id: str
    user_id: str
    user_email: str
    step: ConversationStep = ConversationStep.GREETING
    intent: ChatIntent = ChatIntent.UNKNOWN
    collected_data: CollectedReportData = Field(default_factory=CollectedReportData)
    messages: list[ChatMessage] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        """True se o passo atual é absorvente (COMPLETED/CANCELLED)."""
        return self.step in TERMINAL_STEPS

    @property
    def awaiting_classification(self) -> bool:
        """True no ponto de classificação de intenção (GREETING sem intenção ativa)."""
        return self.step == ConversationStep.GREETING and self.intent == ChatIntent.UNKNOWN

    def add_message(self, role: MessageRole, content: str, now: datetime | None = None) -> None:
        self.messages.append(ChatMessage(role=role, content=content, timestamp=now or utcnow()))

    def recent_messages(self, limit: int) -> list[ChatMessage]:
        """Retorna as últimas `limit` mensagens (janela de contexto do LLM)."""
        if limit <= 0:
            return []
        return self.messages[-limit:]


class IntentClassification(CamelModel):
    """Resultado da classificação de intenção da mensagem de abertura."""

    intent: ChatIntent = ChatIntent.UNKNOWN
    keyword: str | None = None
    category: str | None = None
    report_id: str | None = None


# ─── Projeções de consulta (prontas para exibição) ───────────────────────────


class FoundItemView(CamelModel):
    id: str
    category: str
    description: str
    location_found: str
    date_found: str
    status: str


class LostReportView(CamelModel):
    id: str
    category: str
    description: str
    location_lost: str
    date_lost: str
    created_at: str


class MatchView(CamelModel):
    match_id: str
    confidence_score: int
    """Percentual 0-100."""
    item: FoundItemView


class PickupView(CamelModel):
    pickup_id: str
    reference_code: str
    pickup_date: str
    start_time: str
    end_time: str
    is_completed: bool
    is_verified: bool
    item_description: str
    item_category: str


QueryRecord = FoundItemView | LostReportView | MatchView | PickupView


class QueryResult(CamelModel):
    """Resultado de um handler de consulta (no máximo 5 registros no payload)."""

    type: ChatIntent
    message: str
    total: int = 0
    payload: list[QueryRecord] = Field(default_factory=list, max_length=MAX_QUERY_RESULTS)


class NewLostReport(CamelModel):
    """Relato completo enviado ao serviço de registros na confirmação."""

    category: ItemCategory
    description: str
    location_lost: str
    date_lost: date
    reported_by: str
    contact_email: str
    contact_phone: str | None = None
    identifying_features: list[str] = Field(default_factory=list)


class TurnReply(CamelModel):
    """Resposta de um turno (start/send) devolvida à camada de borda."""

    session_id: str
    reply: str
    step: ConversationStep
    intent: ChatIntent
    collected_data: CollectedReportData
    report_id: str | None = None
    query_result: QueryResult | None = None

    def to_public(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
