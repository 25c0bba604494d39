"""Testes do roteador de intenção (consultivo: nunca lança)."""

from __future__ import annotations

import asyncio
import logging

import pytest

from lostfound_assistant.ai.intent_router import IntentRouter, entry_step_for, is_query_intent
from lostfound_assistant.ai.llm_client import LLMError
from lostfound_assistant.ai.prompts import INTENT_SYSTEM_PROMPT
from lostfound_assistant.domain.enums import ChatIntent, ConversationStep
from tests.helpers.fakes import ScriptedLLM, intent_turn


class TestClassify:
    @pytest.mark.asyncio
    async def test_uses_fixed_instruction_and_raw_message_only(self) -> None:
        llm = ScriptedLLM(intent_turn("MY_PICKUPS"))
        result = await IntentRouter(llm).classify("show me my pickups")

        assert result.intent == ChatIntent.MY_PICKUPS
        assert llm.calls == [
            [
                {"role": "system", "content": INTENT_SYSTEM_PROMPT},
                {"role": "user", "content": "show me my pickups"},
            ]
        ]

    @pytest.mark.asyncio
    async def test_call_failure_degrades_to_unknown(self, caplog: pytest.LogCaptureFixture) -> None:
        llm = ScriptedLLM(LLMError("boom"))
        with caplog.at_level(logging.INFO):
            result = await IntentRouter(llm).classify("hello")

        assert result.intent == ChatIntent.UNKNOWN
        assert any(getattr(r, "fallback_used", False) for r in caplog.records)

    @pytest.mark.asyncio
    async def test_non_json_degrades_to_unknown(self) -> None:
        result = await IntentRouter(ScriptedLLM("I think they want to search")).classify("hi")
        assert result.intent == ChatIntent.UNKNOWN

    @pytest.mark.asyncio
    async def test_unexpected_intent_degrades_to_unknown(self) -> None:
        result = await IntentRouter(ScriptedLLM(intent_turn("ORDER_PIZZA"))).classify("hi")
        assert result.intent == ChatIntent.UNKNOWN

    @pytest.mark.asyncio
    async def test_timeout_degrades_to_unknown(self) -> None:
        class SlowLLM:
            async def complete(self, messages):
                await asyncio.sleep(1)
                return intent_turn("MY_REPORTS")

        result = await IntentRouter(SlowLLM(), timeout_seconds=0.01).classify("my reports")
        assert result.intent == ChatIntent.UNKNOWN


def test_query_intents() -> None:
    assert is_query_intent(ChatIntent.SEARCH_ITEMS)
    assert is_query_intent(ChatIntent.CHECK_MATCHES)
    assert not is_query_intent(ChatIntent.FILE_REPORT)
    assert not is_query_intent(ChatIntent.UNKNOWN)


def test_entry_step() -> None:
    assert entry_step_for(ChatIntent.FILE_REPORT) == ConversationStep.COLLECTING_CATEGORY
    assert entry_step_for(ChatIntent.UNKNOWN) == ConversationStep.GREETING
