"""Implementação de SessionStore usando Redis (TTL nativo, multi-instância)."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError
from redis.exceptions import RedisError

from lostfound_assistant.config.settings import DEFAULT_SESSION_TTL_SECONDS
from lostfound_assistant.domain.models import ConversationSession
from lostfound_assistant.infra.session_contract import Clock, SessionStore, SessionStoreError
from lostfound_assistant.observability.logging import get_logger
from lostfound_assistant.utils.ids import short_id

logger: logging.Logger = get_logger(__name__)

KEY_PREFIX = "chat_session:"


class RedisSessionStore(SessionStore):
    """Armazenamento em Redis (`redis.asyncio`).

    Características:
    - Expiração nativa (SET ... EX) substitui a varredura periódica
    - TTL deslizante no get via EXPIRE (sem regravar o payload)
    - Payload corrompido é tratado como ausente e removido
    """

    def __init__(
        self,
        redis_client: Any,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(ttl_seconds=ttl_seconds, clock=clock)
        self._redis = redis_client

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{KEY_PREFIX}{session_id}"

    async def _write(self, session: ConversationSession) -> None:
        try:
            await self._redis.set(
                self._key(session.session_id),
                session.model_dump_json(),
                ex=self.ttl_seconds,
            )
        except RedisError as e:
            logger.error(
                "Failed to save session to Redis",
                extra={"session_id": short_id(session.session_id), "error": str(e)},
            )
            raise SessionStoreError(f"Redis save failed: {e}") from e

    async def create(self, user_id: str, user_email: str) -> ConversationSession:
        session = self._new_session(user_id, user_email)
        await self._write(session)
        logger.info("Session created (Redis)", extra={"session_id": short_id(session.session_id)})
        return session

    async def get(self, session_id: str) -> ConversationSession | None:
        key = self._key(session_id)
        try:
            payload = await self._redis.get(key)
        except RedisError as e:
            logger.error(
                "Failed to load session from Redis",
                extra={"session_id": short_id(session_id), "error": str(e)},
            )
            raise SessionStoreError(f"Redis load failed: {e}") from e

        if not payload:
            logger.debug("Session not found (Redis)", extra={"session_id": short_id(session_id)})
            return None

        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")

        try:
            session = ConversationSession.model_validate_json(payload)
        except ValidationError:
            logger.warning(
                "Corrupted session payload discarded (Redis)",
                extra={"session_id": short_id(session_id)},
            )
            await self.delete(session_id)
            return None

        try:
            await self._redis.expire(key, self.ttl_seconds)
        except RedisError as e:
            raise SessionStoreError(f"Redis expire failed: {e}") from e

        self._touch(session, mutated=False)
        return session

    async def update(self, session: ConversationSession) -> None:
        self._touch(session, mutated=True)
        await self._write(session)

    async def delete(self, session_id: str) -> None:
        try:
            await self._redis.delete(self._key(session_id))
        except RedisError as e:
            logger.error(
                "Failed to delete session from Redis",
                extra={"session_id": short_id(session_id), "error": str(e)},
            )
            raise SessionStoreError(f"Redis delete failed: {e}") from e
