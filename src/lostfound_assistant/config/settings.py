"""Configurações da aplicação via variáveis de ambiente.

Todas as configurações são carregadas de env vars (ou `.env` em dev).
Nunca hardcode secrets ou valores sensíveis.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# -----------------------------------------------------------------------------
# Padrões do assistente (sessão de 30 min, varredura a cada TTL/6)
# -----------------------------------------------------------------------------
DEFAULT_SESSION_TTL_SECONDS: int = 30 * 60
DEFAULT_HISTORY_WINDOW: int = 10
DEFAULT_LLM_MODEL: str = "openai/gpt-oss-20b"


class Settings(BaseSettings):
    """Configurações lidas do ambiente.

    Comentários em PT-BR são obrigatórios por diretriz do projeto.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=".env",
        extra="ignore",
    )

    # Aplicação
    service_name: str = "lostfound_assistant"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"

    # Sessão de conversa
    session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS  # TTL deslizante
    session_sweep_interval_seconds: float | None = None  # None → TTL/6
    session_store_backend: str = "memory"  # memory | redis
    redis_url: str | None = None

    # Diálogo
    chat_history_window: int = DEFAULT_HISTORY_WINDOW  # Mensagens enviadas ao LLM
    max_message_length_chars: int = 1000

    # LLM (API compatível com OpenAI; em produção aponta para Groq)
    llm_api_key: str | None = None
    llm_base_url: str | None = "https://api.groq.com/openai/v1"
    llm_model: str = DEFAULT_LLM_MODEL
    llm_temperature: float = 0.3
    llm_max_tokens: int = 600
    llm_timeout_seconds: float = 20.0

    # Serviço de registros (itens, relatos, matches, retiradas)
    records_api_base_url: str = "http://localhost:5000/api"
    records_api_token: str | None = None
    records_timeout_seconds: float = 10.0

    @property
    def effective_sweep_interval_seconds(self) -> float:
        """Intervalo da varredura de sessões expiradas (padrão: TTL/6)."""
        if self.session_sweep_interval_seconds:
            return self.session_sweep_interval_seconds
        return self.session_ttl_seconds / 6

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    @property
    def is_development(self) -> bool:
        """Retorna True se ambiente é desenvolvimento."""
        return self.environment.lower() in ("development", "dev", "local")

    def validate_session_store_config(self) -> list[str]:
        """Valida backend de session store por ambiente.

        Retorna lista de erros (vazia = tudo OK).
        """
        errors: list[str] = []
        backend = self.session_store_backend.lower()

        valid_backends = {"memory", "redis"}
        if backend not in valid_backends:
            errors.append(
                f"SESSION_STORE_BACKEND '{backend}' inválido. Valores válidos: {valid_backends}"
            )

        if backend == "redis" and not self.redis_url:
            errors.append("SESSION_STORE_BACKEND=redis requer REDIS_URL configurado")

        if self.is_production and backend == "memory":
            errors.append(
                "SESSION_STORE_BACKEND=memory é proibido em produção. "
                "Use 'redis' para compartilhar sessões entre instâncias."
            )

        if self.session_ttl_seconds <= 0:
            errors.append("SESSION_TTL_SECONDS deve ser > 0")

        return errors

    def validate_llm_config(self) -> list[str]:
        """Valida configuração do LLM.

        Em produção a chave é obrigatória; em dev o erro aparece no primeiro turno.
        """
        errors: list[str] = []
        if self.is_production and not self.llm_api_key:
            errors.append("LLM_API_KEY obrigatório em produção")
        if self.chat_history_window < 1:
            errors.append("CHAT_HISTORY_WINDOW deve ser >= 1")
        return errors


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna uma instância cacheada de Settings.

    A cache garante que mesmo múltiplas injeções não criam novos objetos.
    """
    return Settings()
