"""Contrato assíncrono de persistência de ConversationSession.

Separado para manter SRP e permitir reuso entre implementações
(memória com varredura periódica, Redis com TTL nativo).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta

from lostfound_assistant.config.settings import DEFAULT_SESSION_TTL_SECONDS
from lostfound_assistant.domain.models import ConversationSession, utcnow
from lostfound_assistant.observability.logging import get_logger
from lostfound_assistant.utils.ids import new_session_id

logger: logging.Logger = get_logger(__name__)

Clock = Callable[[], datetime]


class SessionStoreError(Exception):
    """Erro ao persistir ou recuperar sessão."""

    pass


class SessionStore(ABC):
    """Contrato abstrato para armazenamento de sessões de conversa.

    Responsabilidades:
    - Criar sessão nova (GREETING/UNKNOWN, dados vazios) com TTL
    - Recuperar sessão por id (ausente se inexistente ou expirada)
    - TTL deslizante: todo get/update bem-sucedido renova expires_at
    - Remoção idempotente
    - Isolamento entre sessões (acesso concorrente a chaves distintas)
    """

    def __init__(self, ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS, clock: Clock | None = None) -> None:
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock: Clock = clock or utcnow

    @property
    def ttl_seconds(self) -> int:
        return int(self._ttl.total_seconds())

    def _now(self) -> datetime:
        return self._clock()

    def _new_session(self, user_id: str, user_email: str) -> ConversationSession:
        now = self._now()
        return ConversationSession(
            session_id=new_session_id(),
            user_id=user_id,
            user_email=user_email,
            created_at=now,
            updated_at=now,
            expires_at=now + self._ttl,
        )

    def _touch(self, session: ConversationSession, *, mutated: bool) -> None:
        now = self._now()
        if mutated:
            session.updated_at = now
        session.expires_at = now + self._ttl

    @abstractmethod
    async def create(self, user_id: str, user_email: str) -> ConversationSession:
        """Cria e persiste uma sessão nova.

        Raises:
            SessionStoreError: Em caso de falha de persistência
        """
        ...

    @abstractmethod
    async def get(self, session_id: str) -> ConversationSession | None:
        """Carrega sessão por ID.

        Returns:
            Sessão se encontrada e não expirada, None caso contrário
        """
        ...

    @abstractmethod
    async def update(self, session: ConversationSession) -> None:
        """Persiste mutações e renova expires_at = agora + TTL.

        Raises:
            SessionStoreError: Em caso de falha de persistência
        """
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Remove sessão (idempotente)."""
        ...

    async def start(self) -> None:
        """Inicia tarefas de ciclo de vida do store (padrão: nenhuma)."""

    async def stop(self) -> None:
        """Encerra tarefas de ciclo de vida do store (padrão: nenhuma)."""

    async def __aenter__(self) -> SessionStore:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
