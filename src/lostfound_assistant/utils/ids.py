"""Geradores de identificadores."""

from __future__ import annotations

import uuid


def new_session_id() -> str:
    """Gera um session_id único (UUID v4)."""

    return str(uuid.uuid4())


def short_id(value: str | None) -> str | None:
    """Trunca identificadores para logs (primeiros 8 caracteres)."""

    if not value:
        return None
    return value[:8] + "..."
