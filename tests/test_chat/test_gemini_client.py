"""Tests for the Gemini chat client (mocked HTTP)."""

from __future__ import annotations

import json

import httpx
import pytest

from market_timing.chat.gemini_client import (
    FALLBACK_ANSWER,
    SYSTEM_PROMPT,
    ChatError,
    GeminiChatClient,
    build_user_message,
    extract_answer,
)


def _client(handler, **kwargs) -> GeminiChatClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return GeminiChatClient(api_key="test-key", http_client=http, **kwargs)


def _answer(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class TestPrompt:
    def test_user_message_layout(self):
        message = build_user_message("지금 살까요?", "투자매력도: 55점", "2026-01-15")
        assert message == "[현재 시장 지표 - 2026-01-15]\n투자매력도: 55점\n\n[질문]\n지금 살까요?"

    def test_extract_answer(self):
        assert extract_answer(_answer("분석 결과")) == "분석 결과"
        assert extract_answer({"candidates": []}) == FALLBACK_ANSWER
        assert extract_answer(_answer("")) == FALLBACK_ANSWER
        assert extract_answer(None) == FALLBACK_ANSWER


class TestAsk:
    def test_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers["x-goog-api-key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_answer("현황 진단: 중립"))

        with _client(handler, model="gemini-test", temperature=0.2, max_output_tokens=100) as chat:
            answer = chat.ask("질문", "context", "2026-01-15")

        assert answer == "현황 진단: 중립"
        assert seen["url"].endswith("/models/gemini-test:generateContent")
        assert seen["key"] == "test-key"
        text = seen["body"]["contents"][0]["parts"][0]["text"]
        assert text.startswith(SYSTEM_PROMPT)
        assert "[질문]\n질문" in text
        assert seen["body"]["generationConfig"] == {"temperature": 0.2, "maxOutputTokens": 100}

    def test_blank_question_rejected(self):
        chat = _client(lambda r: httpx.Response(200, json=_answer("x")))
        with pytest.raises(ValueError):
            chat.ask("   ", "context", "2026-01-15")

    def test_error_status_raises(self):
        chat = _client(lambda r: httpx.Response(429, text="quota"))
        with pytest.raises(ChatError):
            chat.ask("질문", "context", "2026-01-15")

    def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ChatError):
            _client(handler).ask("질문", "context", "2026-01-15")

    def test_non_json_body_gives_fallback(self):
        chat = _client(lambda r: httpx.Response(200, text="<html>"))
        assert chat.ask("질문", "context", "2026-01-15") == FALLBACK_ANSWER

    def test_requires_api_key(self):
        with pytest.raises(RuntimeError):
            GeminiChatClient(api_key=None)
