"""Testes de cenário do orquestrador de conversa."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from lostfound_assistant.ai.llm_client import LLMError
from lostfound_assistant.ai.prompts import (
    ALREADY_FILED_REPLY,
    GREETING_PROMPT,
    QUERY_FAILED_MESSAGE,
    QUERY_FOLLOW_UP,
    REPORT_CANCELLED_REPLY,
    REPORT_FAILED_REPLY,
    SESSION_CANCELLED_REPLY,
    get_step_prompt,
)
from lostfound_assistant.application.errors import AssistantUnavailableError
from lostfound_assistant.application.orchestrator import ConversationOrchestrator
from lostfound_assistant.application.query_handlers import QueryHandlers
from lostfound_assistant.domain.enums import ChatIntent, ConversationStep, ItemCategory, MessageRole
from lostfound_assistant.domain.models import CollectedReportData
from tests.helpers.fakes import ScriptedLLM, intent_turn, report_turn

USER = "u1"
EMAIL = "u1@example.edu"

PHONE_TURN = report_turn(
    "Sorry to hear that!",
    category="ELECTRONICS",
    description="Black iPhone 13",
    locationLost="Main Library",
    dateLost="2026-03-09",
)


async def _drive_to_confirming(orchestrator: ConversationOrchestrator, llm: ScriptedLLM) -> str:
    started = await orchestrator.start(USER, EMAIL)
    llm.queue(
        intent_turn("FILE_REPORT"),
        PHONE_TURN,
        report_turn("Noted.", identifyingFeatures=["cracked case"]),
        report_turn("Okay.", signal="skip"),
    )
    await orchestrator.send(started.session_id, "I lost my phone at the library yesterday", USER, EMAIL)
    await orchestrator.send(started.session_id, "it has a cracked case", USER, EMAIL)
    reply = await orchestrator.send(started.session_id, "skip", USER, EMAIL)
    assert reply.step == ConversationStep.CONFIRMING
    return started.session_id


class TestStart:
    @pytest.mark.asyncio
    async def test_start_greets_and_persists(self, orchestrator, store) -> None:
        reply = await orchestrator.start(USER, EMAIL)

        assert reply.reply == GREETING_PROMPT
        assert reply.step == ConversationStep.GREETING
        assert reply.intent == ChatIntent.UNKNOWN

        session = await store.get(reply.session_id)
        assert [m.role for m in session.messages] == [MessageRole.ASSISTANT]


class TestFilingFlow:
    @pytest.mark.asyncio
    async def test_rich_first_message_jumps_to_features(self, orchestrator, llm) -> None:
        started = await orchestrator.start(USER, EMAIL)
        llm.queue(intent_turn("FILE_REPORT"), PHONE_TURN)

        reply = await orchestrator.send(
            started.session_id, "I lost my phone at the library yesterday", USER, EMAIL
        )

        assert reply.step == ConversationStep.COLLECTING_FEATURES
        assert reply.intent == ChatIntent.FILE_REPORT
        assert reply.collected_data.category == ItemCategory.ELECTRONICS
        assert reply.collected_data.date_lost == date(2026, 3, 9)
        features_prompt = get_step_prompt(ConversationStep.COLLECTING_FEATURES, CollectedReportData())
        assert reply.reply == f"Sorry to hear that!\n\n{features_prompt}"

    @pytest.mark.asyncio
    async def test_unknown_first_turn_falls_through_to_filling(self, orchestrator, llm) -> None:
        started = await orchestrator.start(USER, EMAIL)
        llm.queue("not json at all", report_turn("", category="bags"))

        reply = await orchestrator.send(started.session_id, "blue backpack", USER, EMAIL)

        assert reply.intent == ChatIntent.UNKNOWN
        assert reply.step == ConversationStep.COLLECTING_DESCRIPTION
        assert reply.reply == get_step_prompt(
            ConversationStep.COLLECTING_DESCRIPTION, CollectedReportData()
        )

    @pytest.mark.asyncio
    async def test_context_window_is_bounded(self, orchestrator, llm, store) -> None:
        started = await orchestrator.start(USER, EMAIL)
        llm.queue(intent_turn("FILE_REPORT"))
        for n in range(7):
            llm.queue(report_turn(f"turn {n}"))
        for n in range(7):
            await orchestrator.send(started.session_id, f"message {n}", USER, EMAIL)

        last_context = llm.calls[-1]
        assert last_context[0]["role"] == "system"
        assert len(last_context) == 1 + 10
        assert last_context[-1] == {"role": "user", "content": "message 6"}

    @pytest.mark.asyncio
    async def test_reply_already_containing_prompt_is_not_duplicated(self, orchestrator, llm):
        started = await orchestrator.start(USER, EMAIL)
        category_prompt = get_step_prompt(ConversationStep.COLLECTING_CATEGORY, CollectedReportData())
        llm.queue(intent_turn("FILE_REPORT"), report_turn(f"Sure. {category_prompt}"))

        reply = await orchestrator.send(started.session_id, "I want to report", USER, EMAIL)

        assert reply.reply.count(category_prompt) == 1

    @pytest.mark.asyncio
    async def test_unstructured_reply_is_kept(self, orchestrator, llm) -> None:
        started = await orchestrator.start(USER, EMAIL)
        llm.queue(intent_turn("FILE_REPORT"), "Oh no! What did you lose?")

        reply = await orchestrator.send(started.session_id, "I lost something", USER, EMAIL)

        assert reply.step == ConversationStep.COLLECTING_CATEGORY
        assert reply.reply.startswith("Oh no! What did you lose?")


class TestConfirmation:
    @pytest.mark.asyncio
    async def test_confirm_files_report_then_is_idempotent(self, orchestrator, llm, records):
        session_id = await _drive_to_confirming(orchestrator, llm)
        llm.queue(report_turn("Filing!", signal="confirm"))

        reply = await orchestrator.send(session_id, "confirm", USER, EMAIL)

        assert reply.step == ConversationStep.COMPLETED
        assert reply.report_id is not None
        assert f"`{reply.report_id}`" in reply.reply
        created = records.created[0]
        assert created.reported_by == USER
        assert created.contact_email == EMAIL
        assert created.identifying_features == ["cracked case"]

        calls_before = len(llm.calls)
        again = await orchestrator.send(session_id, "confirm", USER, EMAIL)
        assert again.reply == ALREADY_FILED_REPLY
        assert again.step == ConversationStep.COMPLETED
        assert again.collected_data == reply.collected_data
        assert len(llm.calls) == calls_before
        assert len(records.created) == 1

    @pytest.mark.asyncio
    async def test_creation_failure_rolls_back_to_confirming(self, orchestrator, llm, records, store):
        session_id = await _drive_to_confirming(orchestrator, llm)
        records.fail_create = True
        llm.queue(report_turn("Filing!", signal="confirm"))

        reply = await orchestrator.send(session_id, "confirm", USER, EMAIL)

        assert reply.step == ConversationStep.CONFIRMING
        assert reply.reply == REPORT_FAILED_REPLY
        assert reply.report_id is None
        session = await store.get(session_id)
        assert session.collected_data.description == "Black iPhone 13"

        records.fail_create = False
        llm.queue(report_turn("", signal="confirm"))
        retry = await orchestrator.send(session_id, "confirm", USER, EMAIL)
        assert retry.step == ConversationStep.COMPLETED

    @pytest.mark.asyncio
    async def test_cancel_is_absorbing(self, orchestrator, llm, store) -> None:
        session_id = await _drive_to_confirming(orchestrator, llm)
        llm.queue(report_turn("Okay", signal="cancel"))

        reply = await orchestrator.send(session_id, "cancel", USER, EMAIL)
        assert reply.step == ConversationStep.CANCELLED
        assert reply.reply == REPORT_CANCELLED_REPLY

        message_count = len((await store.get(session_id)).messages)
        again = await orchestrator.send(session_id, "actually confirm", USER, EMAIL)
        assert again.reply == SESSION_CANCELLED_REPLY
        assert again.step == ConversationStep.CANCELLED
        assert len((await store.get(session_id)).messages) == message_count


class TestQueryTurns:
    @pytest.mark.asyncio
    async def test_pickups_query_resets_intent(self, orchestrator, llm, store) -> None:
        started = await orchestrator.start(USER, EMAIL)
        llm.queue(intent_turn("MY_PICKUPS"))

        reply = await orchestrator.send(started.session_id, "show me my pickups", USER, EMAIL)

        assert reply.intent == ChatIntent.MY_PICKUPS
        assert reply.step == ConversationStep.GREETING
        assert reply.query_result is not None
        assert reply.query_result.type == ChatIntent.MY_PICKUPS
        assert reply.reply.endswith(QUERY_FOLLOW_UP)
        assert len(llm.calls) == 1

        session = await store.get(started.session_id)
        assert session.intent == ChatIntent.UNKNOWN
        assert session.step == ConversationStep.GREETING

        llm.queue(intent_turn("MY_REPORTS"))
        follow_up = await orchestrator.send(started.session_id, "and my reports?", USER, EMAIL)
        assert follow_up.intent == ChatIntent.MY_REPORTS
        assert len(llm.calls) == 2

    @pytest.mark.asyncio
    async def test_handler_failure_is_apologetic(self, orchestrator, llm, records) -> None:
        started = await orchestrator.start(USER, EMAIL)
        records.fail_queries = True
        llm.queue(intent_turn("MY_REPORTS"))

        reply = await orchestrator.send(started.session_id, "my reports", USER, EMAIL)

        assert reply.query_result.message == QUERY_FAILED_MESSAGE
        assert reply.query_result.total == 0
        assert reply.step == ConversationStep.GREETING


class TestFailuresAndRecovery:
    @pytest.mark.asyncio
    async def test_llm_failure_during_filling_is_fatal_but_resumable(
        self, orchestrator, llm, store
    ) -> None:
        started = await orchestrator.start(USER, EMAIL)
        llm.queue(intent_turn("FILE_REPORT"), PHONE_TURN, LLMError("down"))
        await orchestrator.send(started.session_id, "I lost my phone", USER, EMAIL)

        with pytest.raises(AssistantUnavailableError):
            await orchestrator.send(started.session_id, "it has a sticker", USER, EMAIL)

        session = await store.get(started.session_id)
        assert session.step == ConversationStep.COLLECTING_FEATURES
        assert session.collected_data.location_lost == "Main Library"

        llm.queue(report_turn("Got it", identifyingFeatures="sticker"))
        reply = await orchestrator.send(started.session_id, "it has a sticker", USER, EMAIL)
        assert reply.step == ConversationStep.COLLECTING_PHONE

    @pytest.mark.asyncio
    async def test_unknown_session_is_recovered(self, orchestrator, llm, store) -> None:
        llm.queue(intent_turn("MY_PICKUPS"))

        reply = await orchestrator.send("expired-id", "my pickups", USER, EMAIL)

        assert reply.session_id != "expired-id"
        assert await store.get(reply.session_id) is not None

    @pytest.mark.asyncio
    async def test_expired_session_is_recovered(self, orchestrator, llm, clock) -> None:
        started = await orchestrator.start(USER, EMAIL)
        clock.advance(1801)
        llm.queue(intent_turn("MY_PICKUPS"))

        reply = await orchestrator.send(started.session_id, "my pickups", USER, EMAIL)

        assert reply.session_id != started.session_id


class TestSequencing:
    @pytest.mark.asyncio
    async def test_same_session_turns_are_serialized(self, store, records) -> None:
        gate = asyncio.Event()
        order: list[str] = []

        class GatedLLM:
            async def complete(self, messages):
                user_text = messages[-1]["content"]
                order.append(f"start:{user_text}")
                if user_text == "first":
                    await gate.wait()
                order.append(f"end:{user_text}")
                if messages[0]["content"].startswith("You are a Lost & Found assistant intent"):
                    return intent_turn("FILE_REPORT")
                return report_turn("ok")

        orchestrator = ConversationOrchestrator(
            store=store,
            llm_client=GatedLLM(),
            query_handlers=QueryHandlers(records),
            report_creator=records,
        )
        started = await orchestrator.start(USER, EMAIL)

        first = asyncio.create_task(orchestrator.send(started.session_id, "first", USER, EMAIL))
        await asyncio.sleep(0)
        second = asyncio.create_task(orchestrator.send(started.session_id, "second", USER, EMAIL))
        await asyncio.sleep(0.01)
        gate.set()
        await asyncio.gather(first, second)

        assert order.index("end:first") < order.index("start:second")
        session = await store.get(started.session_id)
        user_messages = [m.content for m in session.messages if m.role == MessageRole.USER]
        assert user_messages == ["first", "second"]

    @pytest.mark.asyncio
    async def test_concurrent_sends_to_stale_id_recover_independently(
        self, orchestrator, llm, store
    ) -> None:
        llm.queue(intent_turn("MY_PICKUPS"), intent_turn("MY_PICKUPS"))

        first, second = await asyncio.gather(
            orchestrator.send("gone", "my pickups", USER, EMAIL),
            orchestrator.send("gone", "my pickups", USER, EMAIL),
        )

        assert first.session_id != second.session_id
        assert "gone" not in {first.session_id, second.session_id}
        for reply in (first, second):
            session = await store.get(reply.session_id)
            assert [m.content for m in session.messages if m.role == MessageRole.USER] == [
                "my pickups"
            ]
