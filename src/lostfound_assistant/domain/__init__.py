"""Domínio do assistente de achados e perdidos.

Exporta:
- enums de passo/intenção/sinal/categoria
- next_step: função de transição pura
- merge_extracted_data: merge/normalização dos campos extraídos
"""

from lostfound_assistant.domain.enums import (
    QUERY_INTENTS,
    TERMINAL_STEPS,
    ChatIntent,
    ConversationStep,
    FlowSignal,
    ItemCategory,
    MessageRole,
)
from lostfound_assistant.domain.report_merge import merge_extracted_data
from lostfound_assistant.domain.step_transition import next_step

__all__ = [
    "ChatIntent",
    "ConversationStep",
    "FlowSignal",
    "ItemCategory",
    "MessageRole",
    "QUERY_INTENTS",
    "TERMINAL_STEPS",
    "merge_extracted_data",
    "next_step",
]
