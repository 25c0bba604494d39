"""Cliente LLM (API compatível com OpenAI) para a chamada de compreensão.

Em produção aponta para Groq via `base_url`. Sem retry dentro do core:
uma falha = um turno falho (coleta) ou uma classificação degradada.
"""

from __future__ import annotations

import asyncio
import logging

from openai import APIError, APITimeoutError, AsyncOpenAI

from lostfound_assistant.config.settings import DEFAULT_LLM_MODEL, Settings
from lostfound_assistant.domain.protocols import UnderstandingClient
from lostfound_assistant.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class LLMError(Exception):
    """Falha na chamada de compreensão (transporte, timeout ou resposta vazia)."""

    pass


class LLMClient:
    """Wrapper de `AsyncOpenAI` com timeout e criação preguiçosa do cliente.

    Responsabilidades:
    - Criar o cliente só no primeiro uso (chave ausente vira LLMError, não crash no boot)
    - Aplicar timeout por chamada
    - Converter erros da API e conteúdo vazio em LLMError
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str = DEFAULT_LLM_MODEL,
        temperature: float = 0.3,
        max_tokens: int = 600,
        timeout_seconds: float = 20.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout_seconds
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> LLMClient:
        return cls(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            timeout_seconds=settings.llm_timeout_seconds,
        )

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._api_key:
                raise LLMError("LLM_API_KEY is not set")
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                max_retries=0,
                timeout=self._timeout,
            )
        return self._client

    async def complete(self, messages: list[dict[str, str]]) -> str:
        """Envia mensagens `{role, content}` e retorna o texto da resposta."""
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self._model,
                messages=messages,  # type: ignore[arg-type]
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                timeout=self._timeout,
            )
        except (APIError, APITimeoutError) as e:
            logger.warning(
                "llm_call_error",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            raise LLMError(f"LLM call failed: {type(e).__name__}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise LLMError("Empty response from LLM")
        return content.strip()


async def complete_with_timeout(
    client: UnderstandingClient,
    messages: list[dict[str, str]],
    timeout_seconds: float | None,
) -> str:
    """Executa `client.complete` com limite de tempo de parede.

    Timeout é tratado como falha da chamada (LLMError).
    """
    if timeout_seconds is None:
        return await client.complete(messages)
    try:
        return await asyncio.wait_for(client.complete(messages), timeout=timeout_seconds)
    except TimeoutError as e:
        logger.warning("llm_call_timeout", extra={"timeout_seconds": timeout_seconds})
        raise LLMError("LLM call timed out") from e
