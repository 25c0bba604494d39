"""Implementação de SessionStore em memória com varredura periódica.

Escopo de processo único: não compartilha sessões entre instâncias.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from lostfound_assistant.config.settings import DEFAULT_SESSION_TTL_SECONDS
from lostfound_assistant.domain.models import ConversationSession
from lostfound_assistant.infra.session_contract import Clock, SessionStore
from lostfound_assistant.observability.logging import get_logger
from lostfound_assistant.utils.ids import short_id

logger: logging.Logger = get_logger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class InMemorySessionStore(SessionStore):
    """Armazenamento em memória (dev, testes e instância única).

    - Expiração preguiçosa no get (sempre vence a varredura)
    - Varredura periódica (padrão TTL/6) limita memória de sessões abandonadas
    - Retorna cópias: mutações só valem após update()
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        sweep_interval_seconds: float | None = None,
        clock: Clock | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        super().__init__(ttl_seconds=ttl_seconds, clock=clock)
        self._sessions: dict[str, ConversationSession] = {}
        self._lock = asyncio.Lock()
        self._sweep_interval = sweep_interval_seconds or ttl_seconds / 6
        self._sleep: Sleeper = sleep or asyncio.sleep
        self._sweeper: asyncio.Task[None] | None = None

    @property
    def sweep_interval_seconds(self) -> float:
        return self._sweep_interval

    @property
    def is_sweeping(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def __len__(self) -> int:
        return len(self._sessions)

    async def create(self, user_id: str, user_email: str) -> ConversationSession:
        session = self._new_session(user_id, user_email)
        async with self._lock:
            self._sessions[session.session_id] = session.model_copy(deep=True)
        logger.info(
            "Session created (in-memory)",
            extra={"session_id": short_id(session.session_id)},
        )
        return session

    async def get(self, session_id: str) -> ConversationSession | None:
        async with self._lock:
            stored = self._sessions.get(session_id)
            if stored is None:
                logger.debug(
                    "Session not found (in-memory)",
                    extra={"session_id": short_id(session_id)},
                )
                return None

            if self._now() > stored.expires_at:
                del self._sessions[session_id]
                logger.debug(
                    "Session expired (in-memory)",
                    extra={"session_id": short_id(session_id)},
                )
                return None

            self._touch(stored, mutated=False)
            return stored.model_copy(deep=True)

    async def update(self, session: ConversationSession) -> None:
        self._touch(session, mutated=True)
        async with self._lock:
            self._sessions[session.session_id] = session.model_copy(deep=True)
        logger.debug(
            "Session saved (in-memory)",
            extra={"session_id": short_id(session.session_id), "step": session.step.value},
        )

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.debug(
                "Session deleted (in-memory)",
                extra={"session_id": short_id(session_id)},
            )

    async def sweep_expired(self) -> int:
        """Remove todas as sessões expiradas; retorna quantas foram removidas.

        O lock é tomado por entrada, nunca pela varredura inteira.
        """
        removed = 0
        for session_id in list(self._sessions):
            async with self._lock:
                stored = self._sessions.get(session_id)
                if stored is not None and self._now() > stored.expires_at:
                    del self._sessions[session_id]
                    removed += 1

        if removed:
            logger.info(
                "Expired sessions swept",
                extra={"removed": removed, "remaining": len(self._sessions)},
            )
        return removed

    async def start(self) -> None:
        if self.is_sweeping:
            return
        self._sweeper = asyncio.create_task(self._sweep_loop(), name="session-sweeper")
        logger.info(
            "Session sweeper started",
            extra={"interval_seconds": self._sweep_interval},
        )

    async def stop(self) -> None:
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is None:
            return
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass
        logger.info("Session sweeper stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await self._sleep(self._sweep_interval)
            try:
                await self.sweep_expired()
            except Exception as e:  # noqa: BLE001 - a varredura não pode morrer
                logger.error("session_sweep_failed", extra={"error": str(e)})
