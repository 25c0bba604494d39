"""Cliente HTTP do serviço de registros (itens, relatos, matches, retiradas).

Implementa as portas de domínio consumidas pelos handlers de consulta e
pela finalização do relato. Uma chamada = uma tentativa (sem retry no core).

Conforme regras do projeto:
- Nunca logar payloads (contêm e-mail/telefone)
- Sempre usar timeout
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from lostfound_assistant.config.settings import Settings
from lostfound_assistant.domain.models import NewLostReport
from lostfound_assistant.domain.protocols import RecordPage
from lostfound_assistant.observability.logging import get_logger
from lostfound_assistant.observability.middleware import get_correlation_id

logger: logging.Logger = get_logger(__name__)


class RecordsServiceError(Exception):
    """Erro de chamada ao serviço de registros sem expor dados sensíveis."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ReportNotFoundError(RecordsServiceError):
    """Relato inexistente (404)."""


def _record_id(record: dict[str, Any]) -> str:
    """Aceita `_id` (Mongo) ou `id`."""
    value = record.get("_id", record.get("id"))
    return str(value) if value is not None else ""


class RecordsServiceClient:
    """Cliente assíncrono (httpx) das consultas e da criação de relatos."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout_seconds,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> RecordsServiceClient:
        return cls(
            base_url=settings.records_api_base_url,
            token=settings.records_api_token,
            timeout_seconds=settings.records_timeout_seconds,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        headers = {}
        correlation_id = get_correlation_id()
        if correlation_id:
            headers["X-Correlation-ID"] = correlation_id

        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            response = await self._client.request(
                method, path, params=clean_params or None, json=json, headers=headers
            )
        except httpx.TimeoutException as e:
            logger.warning("records_request_timeout", extra={"method": method, "path": path})
            raise RecordsServiceError("Timeout") from e
        except httpx.HTTPError as e:
            logger.warning(
                "records_request_failed",
                extra={"method": method, "path": path, "error_type": type(e).__name__},
            )
            raise RecordsServiceError(f"Erro de conexão: {type(e).__name__}") from e

        if response.status_code >= 400:
            logger.warning(
                "records_request_rejected",
                extra={"method": method, "path": path, "status_code": response.status_code},
            )
            raise RecordsServiceError(
                f"Records service returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RecordsServiceError("Invalid JSON from records service") from e
        if not isinstance(body, dict):
            raise RecordsServiceError("Unexpected response shape from records service")
        return body

    @staticmethod
    def _page(body: dict[str, Any]) -> RecordPage:
        data = body.get("data") or []
        pagination = body.get("pagination") or {}
        total = pagination.get("total", body.get("total", len(data)))
        return RecordPage(data=list(data), total=int(total))

    async def create_lost_report(self, report: NewLostReport) -> str:
        body = await self._request(
            "POST", "/lost-reports", json=report.model_dump(mode="json", by_alias=True)
        )
        report_id = _record_id(body.get("data") or {})
        if not report_id:
            raise RecordsServiceError("Records service did not return a report id")
        logger.info("lost_report_created", extra={"report_id": report_id})
        return report_id

    async def list_my_reports(self, user_id: str, page: int = 1, limit: int = 5) -> RecordPage:
        body = await self._request(
            "GET",
            "/lost-reports",
            params={
                "reportedBy": user_id,
                "page": page,
                "limit": limit,
                "sortBy": "createdAt",
                "sortOrder": "desc",
            },
        )
        return self._page(body)

    async def get_lost_report(self, report_id: str) -> dict[str, Any]:
        try:
            body = await self._request("GET", f"/lost-reports/{report_id}")
        except RecordsServiceError as e:
            if e.status_code in (400, 404):
                raise ReportNotFoundError("Report not found", status_code=e.status_code) from e
            raise
        data = body.get("data")
        if not isinstance(data, dict):
            raise ReportNotFoundError("Report not found", status_code=404)
        return data

    async def get_matches_for_report(self, report_id: str) -> list[dict[str, Any]]:
        body = await self._request("GET", f"/matches/report/{report_id}")
        return list(body.get("data") or [])

    async def list_my_pickups(self, user_id: str, page: int = 1, limit: int = 5) -> RecordPage:
        body = await self._request(
            "GET", "/pickups", params={"userId": user_id, "page": page, "limit": limit}
        )
        return self._page(body)

    async def search_available_items(
        self,
        category: str | None = None,
        keyword: str | None = None,
        limit: int = 5,
    ) -> list[dict[str, Any]]:
        body = await self._request(
            "GET",
            "/items",
            params={
                "status": "AVAILABLE",
                "category": category,
                "keyword": keyword,
                "limit": limit,
                "sortBy": "dateFound",
                "sortOrder": "desc",
            },
        )
        return list(body.get("data") or [])
