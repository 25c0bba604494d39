"""Merge/normalização de campos extraídos nos dados coletados do relato.

Contrato: nunca lança exceção por entrada malformada; o campo apenas
continua vazio e o diálogo pergunta de novo no próximo turno.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Collection
from datetime import date, datetime

from dateutil import parser as date_parser

from lostfound_assistant.domain.enums import VALID_CATEGORIES, ItemCategory
from lostfound_assistant.domain.models import CollectedReportData, ExtractedFields
from lostfound_assistant.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_category(
    raw: str | None, valid_categories: Collection[str] = VALID_CATEGORIES
) -> ItemCategory | None:
    """Normaliza categoria ("sports equipment " → SPORTS_EQUIPMENT) ou retorna None."""
    if not raw or not isinstance(raw, str):
        return None
    normalized = _WHITESPACE.sub("_", raw.strip().upper())
    if normalized not in valid_categories:
        return None
    try:
        return ItemCategory(normalized)
    except ValueError:
        return None


def parse_date_lost(raw: str | date | None) -> date | None:
    """Converte texto livre em data de calendário; None se não for parseável."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return date_parser.parse(raw.strip()).date()
    except (ValueError, OverflowError, TypeError):
        return None


def merge_extracted_data(
    data: CollectedReportData,
    extracted: ExtractedFields | None,
    valid_categories: Collection[str] = VALID_CATEGORIES,
) -> list[str]:
    """Aplica `extracted` sobre `data` in-place, campo a campo.

    Só sobrescreve quando o valor extraído existe e é válido; nunca remove
    um campo já preenchido. Retorna os nomes dos campos atualizados.
    """
    if extracted is None:
        return []

    updated: list[str] = []

    if extracted.category:
        category = normalize_category(extracted.category, valid_categories)
        if category is not None:
            data.category = category
            updated.append("category")
        else:
            logger.debug("category_rejected", extra={"reason": "not_in_category_set"})

    if extracted.description:
        data.description = extracted.description
        updated.append("description")

    if extracted.location_lost:
        data.location_lost = extracted.location_lost
        updated.append("location_lost")

    if extracted.date_lost:
        parsed = parse_date_lost(extracted.date_lost)
        if parsed is not None:
            data.date_lost = parsed
            updated.append("date_lost")
        else:
            logger.debug("date_rejected", extra={"reason": "unparseable"})

    if extracted.identifying_features:
        data.identifying_features = list(extracted.identifying_features)
        updated.append("identifying_features")

    if extracted.contact_phone:
        data.contact_phone = extracted.contact_phone
        updated.append("contact_phone")

    return updated
