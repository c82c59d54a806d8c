from __future__ import annotations

from typing import Any, Optional

import requests

ADVISOR_PROMPT = (
    "You are a helpful financial advisor. Answer the user's financial questions in a clear, "
    "concise, and professional manner. Provide practical advice based on sound financial "
    "principles.\n\nUser question: {message}"
)
FALLBACK_REPLY = "Sorry, I could not generate a response. Please try again."


class GeminiClient:
    """generateContent client for single-turn advisor questions."""

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        session: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout_sec: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.session = session or requests
        self.base_url = base_url or self.BASE_URL
        self.timeout_sec = timeout_sec

    @staticmethod
    def _extract_text(payload: Any) -> str | None:
        try:
            text = payload["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return None
        return text if isinstance(text, str) and text.strip() else None

    def ask(self, message: str) -> str:
        response = self.session.post(
            f"{self.base_url}/{self.model}:generateContent",
            params={"key": self.api_key},
            headers={"Content-Type": "application/json"},
            json={"contents": [{"parts": [{"text": ADVISOR_PROMPT.format(message=message)}]}]},
            timeout=self.timeout_sec,
        )
        response.raise_for_status()
        text = self._extract_text(response.json())
        return (text or FALLBACK_REPLY).strip()
