"""Configurações centralizadas do lostfound_assistant.

Este módulo exporta:
- Settings: classe de configuração via variáveis de ambiente
- get_settings: função cacheada para obter instância única

Uso típico:
    from lostfound_assistant.config import get_settings
"""

from lostfound_assistant.config.settings import (
    DEFAULT_HISTORY_WINDOW,
    DEFAULT_SESSION_TTL_SECONDS,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "DEFAULT_HISTORY_WINDOW",
    "DEFAULT_SESSION_TTL_SECONDS",
]
