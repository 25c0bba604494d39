"""Fábrica de SessionStore conforme backend configurado."""

from __future__ import annotations

import logging
from typing import Any

from lostfound_assistant.config.settings import Settings
from lostfound_assistant.infra.session_contract import SessionStore
from lostfound_assistant.infra.session_store_memory import InMemorySessionStore
from lostfound_assistant.infra.session_store_redis import RedisSessionStore
from lostfound_assistant.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


def _create_redis_client(redis_url: str) -> Any:
    """Cria cliente `redis.asyncio` a partir da URL."""
    from redis import asyncio as redis_asyncio

    return redis_asyncio.from_url(redis_url, decode_responses=True)


def create_session_store(settings: Settings, redis_client: Any | None = None) -> SessionStore:
    """Cria o store de sessão ativo.

    Args:
        settings: Configurações (backend, TTL, intervalo de varredura)
        redis_client: Cliente Redis já criado (testes); senão usa REDIS_URL

    Raises:
        ValueError: Backend desconhecido ou redis sem URL
    """
    backend = settings.session_store_backend.lower()

    if backend == "memory":
        return InMemorySessionStore(
            ttl_seconds=settings.session_ttl_seconds,
            sweep_interval_seconds=settings.effective_sweep_interval_seconds,
        )

    if backend == "redis":
        if redis_client is None:
            if not settings.redis_url:
                raise ValueError("SESSION_STORE_BACKEND=redis requer REDIS_URL configurado")
            redis_client = _create_redis_client(settings.redis_url)
        logger.info("Using Redis session store")
        return RedisSessionStore(redis_client, ttl_seconds=settings.session_ttl_seconds)

    raise ValueError(f"SESSION_STORE_BACKEND '{backend}' inválido")
