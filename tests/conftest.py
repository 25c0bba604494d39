from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from lostfound_assistant.ai.intent_router import IntentRouter
from lostfound_assistant.api.app import create_app
from lostfound_assistant.application.orchestrator import ConversationOrchestrator
from lostfound_assistant.application.query_handlers import QueryHandlers
from lostfound_assistant.config.settings import Settings, get_settings
from lostfound_assistant.infra.session_store_memory import InMemorySessionStore
from tests.helpers.fakes import FakeRecords, ManualClock, ScriptedLLM


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture()
def records() -> FakeRecords:
    return FakeRecords()


@pytest.fixture()
def store(clock: ManualClock) -> InMemorySessionStore:
    return InMemorySessionStore(ttl_seconds=1800, clock=clock)


@pytest.fixture()
def orchestrator(
    store: InMemorySessionStore,
    llm: ScriptedLLM,
    records: FakeRecords,
    clock: ManualClock,
) -> ConversationOrchestrator:
    return ConversationOrchestrator(
        store=store,
        llm_client=llm,
        query_handlers=QueryHandlers(records),
        report_creator=records,
        router=IntentRouter(llm),
        clock=clock,
    )


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch, orchestrator: ConversationOrchestrator):
    for key in ("ENVIRONMENT", "SESSION_STORE_BACKEND", "LLM_API_KEY"):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    app = create_app(Settings(), orchestrator=orchestrator)
    with TestClient(app) as test_client:
        yield test_client
