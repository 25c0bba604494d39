"""Parsing defensivo das respostas do LLM.

A saída do LLM é texto não confiável: remove cercas de markdown, tenta
JSON estrito e cai para fallback explícito quando o formato não bate.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from lostfound_assistant.domain.enums import ChatIntent
from lostfound_assistant.domain.models import ExtractedFields, IntentClassification
from lostfound_assistant.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*|\s*```", re.IGNORECASE)
_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)
_NULL_TOKENS = frozenset({"", "null", "none"})


class ReportTurnResponse(BaseModel):
    """Resposta de um turno de coleta: texto ao usuário + campos extraídos."""

    reply: str = ""
    extracted: ExtractedFields = Field(default_factory=ExtractedFields)
    structured: bool = True
    """False quando o texto bruto foi usado como resposta (fallback)."""


def strip_code_fences(raw: str) -> str:
    """Remove ```json ... ``` ao redor do conteúdo."""
    return _FENCE_PATTERN.sub("", raw or "").strip()


def _load_json_object(raw: str) -> dict[str, Any]:
    """Carrega objeto JSON; tenta o primeiro bloco {...} se houver texto em volta.

    Raises:
        ValueError: Se não houver objeto JSON válido
    """
    cleaned = strip_code_fences(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        match = _OBJECT_PATTERN.search(cleaned)
        if not match:
            raise ValueError("response is not JSON") from None
        data = json.loads(match.group(0))

    if not isinstance(data, dict):
        raise ValueError(f"expected JSON object, got {type(data).__name__}")
    return data


def _optional_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return None if value.lower() in _NULL_TOKENS else value


def parse_intent_response(raw: str) -> IntentClassification:
    """Converte resposta do classificador em IntentClassification.

    Raises:
        ValueError: JSON inválido, formato inesperado ou intenção desconhecida
    """
    data = _load_json_object(raw)
    intent_raw = data.get("intent") or ChatIntent.UNKNOWN.value
    if not isinstance(intent_raw, str):
        raise ValueError("intent must be a string")
    try:
        intent = ChatIntent(intent_raw.strip().upper())
    except ValueError as e:
        raise ValueError(f"unknown intent: {intent_raw!r}") from e

    return IntentClassification(
        intent=intent,
        keyword=_optional_text(data.get("keyword")),
        category=_optional_text(data.get("category")),
        report_id=_optional_text(data.get("reportId") or data.get("report_id")),
    )


def parse_report_response(raw: str) -> ReportTurnResponse:
    """Converte resposta de coleta em ReportTurnResponse.

    Contrato:
    - Nunca lança exceção
    - Sem JSON válido: texto bruto vira a resposta, sem campos extraídos
    - Campos individuais malformados são descartados (ver ExtractedFields)
    """
    try:
        data = _load_json_object(raw)
    except ValueError:
        logger.info("report_response_unstructured", extra={"raw_length": len(raw or "")})
        return ReportTurnResponse(reply=(raw or "").strip(), structured=False)

    reply = data.get("reply")
    reply = reply.strip() if isinstance(reply, str) else ""

    extracted_raw = data.get("extracted")
    extracted = ExtractedFields()
    if isinstance(extracted_raw, dict):
        try:
            extracted = ExtractedFields.model_validate(extracted_raw)
        except ValidationError:
            logger.info("report_response_extraction_invalid")

    return ReportTurnResponse(reply=reply, extracted=extracted)
