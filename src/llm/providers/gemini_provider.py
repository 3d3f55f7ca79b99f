from __future__ import annotations
import os
import httpx
from .base import LLMProvider

class GeminiProvider(LLMProvider):
    def __init__(self, transport: httpx.BaseTransport | None = None):
        self.api_key = os.getenv("GEMINI_API_KEY", "").strip()
        self.model = os.getenv("GEMINI_MODEL", "gemini-1.5-flash").strip()
        self.base_url = os.getenv(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        ).strip()
        self.transport = transport

        if not self.api_key:
            raise RuntimeError("GEMINI_API_KEY is missing")

    def generate(self, *, system: str, user: str, model: str | None = None) -> str:
        url = f"{self.base_url}/models/{model or self.model}:generateContent"
        # key goes in a header so it never shows up in httpx error messages
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        payload = {
            "contents": [{"role": "user", "parts": [{"text": user}]}],
            "generationConfig": {"temperature": 0.2},
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}

        with httpx.Client(timeout=60.0, transport=self.transport) as client:
            r = client.post(url, headers=headers, json=payload)
            r.raise_for_status()
            data = r.json()

        candidates = data.get("candidates") or []
        if not candidates:
            raise RuntimeError(f"Gemini returned no candidates: {data.get('promptFeedback')}")

        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts)
