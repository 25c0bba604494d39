"""Handlers de consulta somente-leitura (busca, relatos, matches, retiradas).

Cada handler projeta dados externos em registros prontos para exibição e
uma linha de resumo. "Não encontrado" e "lista vazia" são sucesso com
mensagem de orientação, nunca erro. Handlers não tocam a sessão.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Protocol

from dateutil import parser as date_parser

from lostfound_assistant.domain.enums import ChatIntent
from lostfound_assistant.domain.models import (
    MAX_QUERY_RESULTS,
    FoundItemView,
    IntentClassification,
    LostReportView,
    MatchView,
    PickupView,
    QueryResult,
)
from lostfound_assistant.domain.protocols import (
    ItemQueries,
    MatchQueries,
    PickupQueries,
    ReportQueries,
)
from lostfound_assistant.domain.report_merge import normalize_category
from lostfound_assistant.infra.records_client import ReportNotFoundError
from lostfound_assistant.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class QueryGateway(ReportQueries, MatchQueries, PickupQueries, ItemQueries, Protocol):
    """Portas de leitura exigidas pelos handlers."""


def format_display_date(value: Any) -> str:
    """Formata data no padrão dia/mês/ano sem zeros à esquerda (ex.: 5/3/2026)."""
    if value is None or value == "":
        return ""
    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    else:
        try:
            parsed = date_parser.isoparse(str(value)).date()
        except (ValueError, OverflowError):
            return str(value)
    return f"{parsed.day}/{parsed.month}/{parsed.year}"


def _record_id(record: dict[str, Any]) -> str:
    value = record.get("_id", record.get("id"))
    return str(value) if value is not None else ""


def _owner_id(record: dict[str, Any]) -> str:
    """Extrai o dono do relato (`reportedBy` pode vir populado como objeto)."""
    owner = record.get("reportedBy")
    if isinstance(owner, dict):
        return _record_id(owner)
    return str(owner) if owner is not None else ""


def _found_item_view(item: dict[str, Any]) -> FoundItemView:
    return FoundItemView(
        id=_record_id(item),
        category=str(item.get("category", "")),
        description=str(item.get("description", "")),
        location_found=str(item.get("locationFound", "")),
        date_found=format_display_date(item.get("dateFound")),
        status=str(item.get("status", "")),
    )


def _lost_report_view(report: dict[str, Any]) -> LostReportView:
    return LostReportView(
        id=_record_id(report),
        category=str(report.get("category", "")),
        description=str(report.get("description", "")),
        location_lost=str(report.get("locationLost", "")),
        date_lost=format_display_date(report.get("dateLost")),
        created_at=format_display_date(report.get("createdAt")),
    )


def _match_view(match: dict[str, Any]) -> MatchView:
    score = match.get("confidenceScore") or 0
    item = match.get("item") or match.get("itemId") or {}
    return MatchView(
        match_id=_record_id(match),
        confidence_score=round(float(score) * 100),
        item=_found_item_view(item if isinstance(item, dict) else {"_id": item}),
    )


def _pickup_view(pickup: dict[str, Any]) -> PickupView:
    item = pickup.get("item") or pickup.get("itemId")
    if not isinstance(item, dict):
        item = {}
    return PickupView(
        pickup_id=_record_id(pickup),
        reference_code=str(pickup.get("referenceCode", "")),
        pickup_date=format_display_date(pickup.get("pickupDate")),
        start_time=str(pickup.get("startTime", "")),
        end_time=str(pickup.get("endTime", "")),
        is_completed=bool(pickup.get("isCompleted", False)),
        is_verified=bool(pickup.get("isVerified", False)),
        item_description=item.get("description") or "Unknown item",
        item_category=item.get("category") or "Unknown",
    )


class QueryHandlers:
    """Executa a consulta correspondente a uma intenção classificada."""

    def __init__(self, records: QueryGateway) -> None:
        self._records = records

    async def run(self, classification: IntentClassification, user_id: str) -> QueryResult:
        """Despacha pela intenção (conjunto fechado de intenções de consulta).

        Raises:
            ValueError: Intenção que não é de consulta
        """
        intent = classification.intent
        if intent == ChatIntent.SEARCH_ITEMS:
            return await self.search_items(classification.keyword, classification.category)
        if intent == ChatIntent.MY_REPORTS:
            return await self.my_reports(user_id)
        if intent == ChatIntent.CHECK_MATCHES:
            return await self.check_matches(classification.report_id, user_id)
        if intent == ChatIntent.MY_PICKUPS:
            return await self.my_pickups(user_id)
        raise ValueError(f"Not a query intent: {intent}")

    async def search_items(self, keyword: str | None, category: str | None) -> QueryResult:
        normalized = normalize_category(category)
        raw_items = await self._records.search_available_items(
            category=normalized.value if normalized else None,
            keyword=keyword or None,
            limit=MAX_QUERY_RESULTS,
        )
        items = [_found_item_view(item) for item in raw_items[:MAX_QUERY_RESULTS]]
        label = keyword or category or "items"

        if not items:
            return QueryResult(
                type=ChatIntent.SEARCH_ITEMS,
                message=(
                    f'No available items matching "{label}". '
                    "File a report so we can notify you when a match is found."
                ),
            )
        return QueryResult(
            type=ChatIntent.SEARCH_ITEMS,
            message=f'Found {len(items)} item(s) matching "{label}":',
            total=len(items),
            payload=items,
        )

    async def my_reports(self, user_id: str) -> QueryResult:
        page = await self._records.list_my_reports(user_id, page=1, limit=MAX_QUERY_RESULTS)
        reports = [_lost_report_view(r) for r in page.data[:MAX_QUERY_RESULTS]]

        if not reports:
            return QueryResult(
                type=ChatIntent.MY_REPORTS,
                message="You haven't filed any lost reports yet. Would you like to file one?",
            )
        return QueryResult(
            type=ChatIntent.MY_REPORTS,
            message=f"You have {page.total} report(s). Showing the latest {len(reports)}:",
            total=page.total,
            payload=reports,
        )

    async def check_matches(self, report_id: str | None, user_id: str) -> QueryResult:
        """Matches de um relato do próprio usuário.

        Sem id, usa o relato mais recente do usuário. Id de outro usuário ou
        inexistente resulta em mensagem de orientação com total zero.
        """
        resolved_id = report_id
        if not resolved_id:
            latest = await self._records.list_my_reports(user_id, page=1, limit=1)
            if not latest.data:
                return QueryResult(
                    type=ChatIntent.CHECK_MATCHES,
                    message="You don't have any lost reports. File one first!",
                )
            resolved_id = _record_id(latest.data[0])

        try:
            report = await self._records.get_lost_report(resolved_id)
        except ReportNotFoundError:
            return QueryResult(
                type=ChatIntent.CHECK_MATCHES,
                message="Report not found. Please provide a valid report ID.",
            )

        if _owner_id(report) != user_id:
            logger.info("match_check_denied", extra={"reason": "not_owner"})
            return QueryResult(
                type=ChatIntent.CHECK_MATCHES,
                message="You can only check matches for your own reports.",
            )

        raw_matches = await self._records.get_matches_for_report(resolved_id)
        matches = [_match_view(m) for m in raw_matches[:MAX_QUERY_RESULTS]]

        if not matches:
            return QueryResult(
                type=ChatIntent.CHECK_MATCHES,
                message=(
                    f"No matches yet for report {resolved_id[-6:].upper()}. "
                    "We'll email you when one is found!"
                ),
            )
        return QueryResult(
            type=ChatIntent.CHECK_MATCHES,
            message=(
                f"{len(raw_matches)} potential match(es) found "
                f"(showing top {len(matches)}):"
            ),
            total=len(raw_matches),
            payload=matches,
        )

    async def my_pickups(self, user_id: str) -> QueryResult:
        page = await self._records.list_my_pickups(user_id, page=1, limit=MAX_QUERY_RESULTS)
        pickups = [_pickup_view(p) for p in page.data[:MAX_QUERY_RESULTS]]

        if not pickups:
            return QueryResult(
                type=ChatIntent.MY_PICKUPS,
                message="No pickups scheduled yet. Pickups are booked after your claim is verified.",
            )
        return QueryResult(
            type=ChatIntent.MY_PICKUPS,
            message=f"You have {page.total} pickup(s). Showing the latest {len(pickups)}:",
            total=page.total,
            payload=pickups,
        )
