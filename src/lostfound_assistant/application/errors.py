"""Erros da camada de aplicação expostos à borda HTTP."""

from __future__ import annotations

from lostfound_assistant.ai.prompts import SERVICE_UNAVAILABLE_MESSAGE


class AssistantUnavailableError(Exception):
    """Falha fatal do turno de coleta (chamada de compreensão indisponível).

    A sessão permanece no estado anterior ao turno e pode ser reutilizada.
    """

    def __init__(self, message: str = SERVICE_UNAVAILABLE_MESSAGE) -> None:
        super().__init__(message)
        self.message = message
