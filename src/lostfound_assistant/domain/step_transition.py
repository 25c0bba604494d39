"""Função de transição de passos do preenchimento do relato.

- Pura: sem I/O, sem mutação de `data`
- Total: todo (step, data, signal) tem exatamente um sucessor
- Passos desconhecidos passam inalterados (nunca lança exceção)
"""

from __future__ import annotations

from lostfound_assistant.domain.enums import TERMINAL_STEPS, ConversationStep, FlowSignal
from lostfound_assistant.domain.models import CollectedReportData

# Passos de coleta obrigatória e o campo que cada um preenche, na ordem do diálogo
REQUIRED_SLOTS: tuple[tuple[ConversationStep, str], ...] = (
    (ConversationStep.COLLECTING_CATEGORY, "category"),
    (ConversationStep.COLLECTING_DESCRIPTION, "description"),
    (ConversationStep.COLLECTING_LOCATION, "location_lost"),
    (ConversationStep.COLLECTING_DATE, "date_lost"),
)

OPTIONAL_SLOTS: tuple[tuple[ConversationStep, str], ...] = (
    (ConversationStep.COLLECTING_FEATURES, "identifying_features"),
    (ConversationStep.COLLECTING_PHONE, "contact_phone"),
)

_REQUIRED_INDEX = {step: index for index, (step, _) in enumerate(REQUIRED_SLOTS)}


def _is_filled(data: CollectedReportData, field_name: str) -> bool:
    return bool(getattr(data, field_name, None))


def _first_missing(
    data: CollectedReportData,
    slots: tuple[tuple[ConversationStep, str], ...],
    default: ConversationStep,
) -> ConversationStep:
    for step, field_name in slots:
        if not _is_filled(data, field_name):
            return step
    return default


def _coerce_signal(flow_signal: FlowSignal | str | None) -> FlowSignal:
    if flow_signal is None:
        return FlowSignal.PROVIDE_INFO
    try:
        return FlowSignal(flow_signal)
    except ValueError:
        return FlowSignal.PROVIDE_INFO


def next_step(
    current_step: ConversationStep | str,
    data: CollectedReportData,
    flow_signal: FlowSignal | str | None = FlowSignal.PROVIDE_INFO,
) -> ConversationStep | str:
    """Calcula o próximo passo do diálogo.

    Regras (em ordem):
    1. Passo terminal → inalterado (absorvente; cancel/confirm não se aplicam)
    2. signal "cancel" → CANCELLED
    3. CONFIRMING + "confirm" → COMPLETED; qualquer outro sinal mantém CONFIRMING
    4. GREETING pula direto para o primeiro campo faltante (obrigatórios, depois
       opcionais); sem nada faltando → CONFIRMING
    5. Coleta obrigatória só avança com o próprio campo preenchido, indo para o
       próximo obrigatório faltante ou COLLECTING_FEATURES
    6. FEATURES e PHONE avançam com qualquer sinal (inclusive "skip")
    """
    try:
        step = ConversationStep(current_step)
    except ValueError:
        return current_step

    if step in TERMINAL_STEPS:
        return step

    signal = _coerce_signal(flow_signal)
    if signal == FlowSignal.CANCEL:
        return ConversationStep.CANCELLED

    if step == ConversationStep.CONFIRMING:
        if signal == FlowSignal.CONFIRM:
            return ConversationStep.COMPLETED
        return ConversationStep.CONFIRMING

    if step == ConversationStep.GREETING:
        return _first_missing(data, REQUIRED_SLOTS + OPTIONAL_SLOTS, ConversationStep.CONFIRMING)

    if step == ConversationStep.COLLECTING_FEATURES:
        return ConversationStep.COLLECTING_PHONE

    if step == ConversationStep.COLLECTING_PHONE:
        return ConversationStep.CONFIRMING

    index = _REQUIRED_INDEX[step]
    _, own_field = REQUIRED_SLOTS[index]
    if not _is_filled(data, own_field):
        return step
    return _first_missing(data, REQUIRED_SLOTS[index + 1 :], ConversationStep.COLLECTING_FEATURES)
