"""Portas de domínio para colaboradores externos (LLM e serviço de registros)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from lostfound_assistant.domain.models import NewLostReport


@dataclass(slots=True)
class RecordPage:
    """Página de registros desnormalizados + total."""

    data: list[dict[str, Any]] = field(default_factory=list)
    total: int = 0


class UnderstandingClient(Protocol):
    """Chamada de compreensão/geração de texto (opaca, pode falhar)."""

    async def complete(self, messages: list[dict[str, str]]) -> str:
        """Recebe mensagens `{role, content}` e retorna texto; levanta LLMError em falha."""


class ReportCreator(Protocol):
    """Cria relatos de perda a partir dos dados coletados."""

    async def create_lost_report(self, report: NewLostReport) -> str:
        """Retorna o id do relato criado."""


class ReportQueries(Protocol):
    async def list_my_reports(self, user_id: str, page: int = 1, limit: int = 5) -> RecordPage:
        """Relatos do usuário, mais recentes primeiro."""

    async def get_lost_report(self, report_id: str) -> dict[str, Any]:
        """Relato por id; levanta ReportNotFoundError se não existir."""


class MatchQueries(Protocol):
    async def get_matches_for_report(self, report_id: str) -> list[dict[str, Any]]:
        """Matches do relato, com o item encontrado embutido em `item`."""


class PickupQueries(Protocol):
    async def list_my_pickups(self, user_id: str, page: int = 1, limit: int = 5) -> RecordPage:
        """Retiradas agendadas do usuário."""


class ItemQueries(Protocol):
    async def search_available_items(
        self,
        category: str | None = None,
        keyword: str | None = None,
        limit: int = 5,
    ) -> list[dict[str, Any]]:
        """Itens encontrados com status AVAILABLE, mais recentes primeiro."""
