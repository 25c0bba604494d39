"""Dependências injetadas nas rotas."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Header, HTTPException, Request, status

from lostfound_assistant.application.orchestrator import ConversationOrchestrator
from lostfound_assistant.config.settings import Settings


@dataclass(frozen=True, slots=True)
class UserIdentity:
    """Identidade do solicitante (autenticada a montante, propagada por headers)."""

    user_id: str
    email: str


def get_settings(request: Request) -> Settings:
    """Retorna settings da aplicação."""

    return request.app.state.settings


def get_orchestrator(request: Request) -> ConversationOrchestrator:
    """Retorna o orquestrador de conversa."""

    return request.app.state.orchestrator


def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> UserIdentity:
    """Lê a identidade dos headers X-User-Id / X-User-Email (401 se ausente)."""
    user_id = (x_user_id or "").strip()
    email = (x_user_email or "").strip()
    if not user_id or not email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthenticated")
    return UserIdentity(user_id=user_id, email=email)
