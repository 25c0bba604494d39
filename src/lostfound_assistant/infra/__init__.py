"""Camada de infraestrutura: adapters para serviços externos.

Este módulo exporta:

- Session: SessionStore, InMemorySessionStore, RedisSessionStore, create_session_store
- Registros: RecordsServiceClient (httpx) e seus erros

Uso típico:
    from lostfound_assistant.infra import create_session_store

Infraestrutura não decide regra de negócio; logs estruturados sem PII.
"""

from lostfound_assistant.infra.records_client import (
    RecordsServiceClient,
    RecordsServiceError,
    ReportNotFoundError,
)
from lostfound_assistant.infra.session_contract import SessionStore, SessionStoreError
from lostfound_assistant.infra.session_store import create_session_store
from lostfound_assistant.infra.session_store_memory import InMemorySessionStore
from lostfound_assistant.infra.session_store_redis import RedisSessionStore

__all__ = [
    "InMemorySessionStore",
    "RecordsServiceClient",
    "RecordsServiceError",
    "RedisSessionStore",
    "ReportNotFoundError",
    "SessionStore",
    "SessionStoreError",
    "create_session_store",
]
