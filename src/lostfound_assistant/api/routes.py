"""Rotas HTTP do chat (borda fina sobre o orquestrador)."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from lostfound_assistant.api.dependencies import (
    UserIdentity,
    get_current_user,
    get_orchestrator,
    get_settings,
)
from lostfound_assistant.application.orchestrator import ConversationOrchestrator
from lostfound_assistant.config.settings import Settings
from lostfound_assistant.domain.models import ConversationSession
from lostfound_assistant.observability.logging import get_logger
from lostfound_assistant.utils.ids import short_id

logger = get_logger(__name__)

router = APIRouter()

MessageText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class SendMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)] = Field(
        alias="sessionId"
    )
    message: MessageText


def _envelope(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


async def _owned_session(
    orchestrator: ConversationOrchestrator, session_id: str, user: UserIdentity
) -> ConversationSession | None:
    """Carrega a sessão garantindo posse (403 se for de outro usuário)."""
    session = await orchestrator.get_session(session_id)
    if session is not None and session.user_id != user.user_id:
        logger.warning("chat_session_access_denied", extra={"session_id": short_id(session_id)})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return session


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Healthcheck simples."""
    return {"status": "ok", "service": settings.service_name, "version": settings.version}


@router.post("/chat/start")
async def start_session(
    user: UserIdentity = Depends(get_current_user),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Abre uma sessão nova e retorna a saudação."""
    result = await orchestrator.start(user.user_id, user.email)
    return _envelope(result.to_public())


@router.post("/chat/message")
async def send_message(
    body: SendMessageRequest,
    user: UserIdentity = Depends(get_current_user),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """Processa um turno. Id desconhecido/expirado abre sessão nova de forma transparente."""
    if len(body.message) > settings.max_message_length_chars:
        raise HTTPException(
            status_code=422,
            detail=f"Message must be at most {settings.max_message_length_chars} characters",
        )
    await _owned_session(orchestrator, body.session_id, user)
    result = await orchestrator.send(body.session_id, body.message, user.user_id, user.email)
    return _envelope(result.to_public())


@router.get("/chat/session/{session_id}")
async def get_session(
    session_id: str,
    user: UserIdentity = Depends(get_current_user),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    session = await _owned_session(orchestrator, session_id, user)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found or expired"
        )
    return _envelope(
        {
            "sessionId": session.session_id,
            "step": session.step.value,
            "collectedData": session.collected_data.model_dump(
                mode="json", by_alias=True, exclude_none=True
            ),
            "messageCount": len(session.messages),
            "expiresAt": session.expires_at.isoformat(),
        }
    )


@router.delete("/chat/session/{session_id}")
async def delete_session(
    session_id: str,
    user: UserIdentity = Depends(get_current_user),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Encerra a sessão (idempotente)."""
    await _owned_session(orchestrator, session_id, user)
    await orchestrator.delete_session(session_id)
    return {"success": True, "message": "Session ended"}
