"""
Gemini chat client for market questions.

API:  https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent

Credential setup (.env, gitignored):
  GEMINI_API_KEY=your_api_key

The system prompt and the market context are sent as a single user turn
(the v1beta ``generateContent`` call used here has no separate system role).
Unlike the data collectors, chat failures are not best-effort: a transport
error or non-2xx status raises ``ChatError`` so the caller can report it.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Optional

import httpx

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """당신은 월가 출신 시장 전략가입니다. 제공된 시장 지표 데이터를 기반으로 투자자에게 객관적인 분석을 제공합니다.

[답변 구조]
1. 현황 진단: 현재 시장 상태를 한 문장으로 요약
2. 핵심 시그널: 가장 주목할 2-3개 지표와 의미
3. 리스크 요인: 주의해야 할 점
4. 기회 요인: 현재 환경에서의 기회

[규칙]
- 500자 이내로 답변
- 인사, 감사, 마무리 멘트 없이 바로 본론
- 숫자와 근거를 명시
- 불확실한 부분은 솔직하게 인정
- 특정 투자 방식을 강요하지 말고 객관적 사실 전달"""

FALLBACK_ANSWER = "답변을 생성할 수 없습니다."


class ChatError(RuntimeError):
    """The Gemini API call failed (transport error or non-2xx status)."""


def build_user_message(question: str, context: str, date: str) -> str:
    return f"[현재 시장 지표 - {date}]\n{context}\n\n[질문]\n{question}"


def extract_answer(payload: Any) -> str:
    """``candidates[0].content.parts[0].text``, or the fallback text."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return FALLBACK_ANSWER
    return text if isinstance(text, str) and text else FALLBACK_ANSWER


class GeminiChatClient:
    """Client for one-shot market questions.

    Usage::

        with GeminiChatClient(api_key=gemini_api_key()) as chat:
            answer = chat.ask("지금 매수해도 될까요?", context, "2026-01-15")
    """

    BASE_URL: ClassVar[str] = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.0-flash-lite",
        temperature: float = 0.7,
        max_output_tokens: int = 600,
        timeout_seconds: float = 60.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        """Initialise the client.

        Raises:
            RuntimeError: If ``api_key`` is empty.
        """
        if not api_key:
            raise RuntimeError("GEMINI_API_KEY must be set in .env or the environment.")
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout_seconds)

    @classmethod
    def from_config(cls, chat_config, api_key: Optional[str]) -> "GeminiChatClient":
        return cls(
            api_key=api_key,
            model=chat_config.model,
            temperature=chat_config.temperature,
            max_output_tokens=chat_config.max_output_tokens,
            timeout_seconds=chat_config.timeout_seconds,
        )

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "GeminiChatClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def url(self) -> str:
        return f"{self.BASE_URL}/{self.model}:generateContent"

    def ask(self, question: str, context: str, date: str) -> str:
        """Ask one question about the given market context.

        Args:
            question: The user's question.
            context: Indicator summary (see ``reporting.chat_context``).
            date: Day the context describes, shown in the prompt header.

        Returns:
            The model's answer, or ``FALLBACK_ANSWER`` if the response holds no text.

        Raises:
            ValueError: If ``question`` is blank.
            ChatError: On transport errors or a non-2xx response.
        """
        if not question or not question.strip():
            raise ValueError("Question is required.")

        body = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": f"{SYSTEM_PROMPT}\n\n{build_user_message(question, context, date)}"}
                    ],
                }
            ],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }
        headers = {"Content-Type": "application/json", "x-goog-api-key": self.api_key}

        try:
            resp = self._http.post(self.url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise ChatError(f"Gemini request failed: {exc}") from exc

        if resp.status_code >= 400:
            logger.error("Gemini API error: HTTP %d %s", resp.status_code, resp.text[:200])
            raise ChatError(f"Gemini API error: HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError:
            logger.warning("Gemini returned a non-JSON body")
            return FALLBACK_ANSWER
        return extract_answer(payload)
