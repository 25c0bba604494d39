"""Testes do parse defensivo das respostas do LLM."""

from __future__ import annotations

import pytest

from lostfound_assistant.ai.response_parser import (
    parse_intent_response,
    parse_report_response,
    strip_code_fences,
)
from lostfound_assistant.domain.enums import ChatIntent, FlowSignal


def test_strip_code_fences() -> None:
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


class TestParseIntentResponse:
    def test_parses_all_params(self) -> None:
        result = parse_intent_response(
            '{"intent": "CHECK_MATCHES", "keyword": null, "category": "null", "reportId": "abc123"}'
        )
        assert result.intent == ChatIntent.CHECK_MATCHES
        assert result.keyword is None
        assert result.category is None
        assert result.report_id == "abc123"

    def test_fenced_json(self) -> None:
        result = parse_intent_response('```json\n{"intent": "SEARCH_ITEMS", "keyword": "wallet"}\n```')
        assert result.intent == ChatIntent.SEARCH_ITEMS
        assert result.keyword == "wallet"

    def test_missing_intent_is_unknown(self) -> None:
        assert parse_intent_response("{}").intent == ChatIntent.UNKNOWN

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"intent": "DANCE"}', '{"intent": 5}'])
    def test_invalid_shapes_raise(self, raw: str) -> None:
        with pytest.raises(ValueError):
            parse_intent_response(raw)


class TestParseReportResponse:
    def test_structured_response(self) -> None:
        raw = (
            '{"reply": "Got it!", "extracted": {"category": "ELECTRONICS", '
            '"locationLost": "Library", "intent": "provide_info"}}'
        )
        result = parse_report_response(raw)
        assert result.structured is True
        assert result.reply == "Got it!"
        assert result.extracted.category == "ELECTRONICS"
        assert result.extracted.location_lost == "Library"
        assert result.extracted.flow_signal == FlowSignal.PROVIDE_INFO

    def test_json_surrounded_by_text(self) -> None:
        result = parse_report_response('Sure! {"reply": "Ok", "extracted": {"intent": "confirm"}} bye')
        assert result.reply == "Ok"
        assert result.extracted.flow_signal == FlowSignal.CONFIRM

    def test_plain_text_falls_back_to_raw_reply(self) -> None:
        result = parse_report_response("  Could you tell me where you lost it?  ")
        assert result.structured is False
        assert result.reply == "Could you tell me where you lost it?"
        assert result.extracted.model_dump(exclude_none=True) == {}

    def test_missing_extracted_block(self) -> None:
        result = parse_report_response('{"reply": "Hello"}')
        assert result.reply == "Hello"
        assert result.extracted.flow_signal is None

    def test_non_string_reply_becomes_empty(self) -> None:
        result = parse_report_response('{"reply": 7, "extracted": {"description": "Umbrella"}}')
        assert result.reply == ""
        assert result.extracted.description == "Umbrella"
