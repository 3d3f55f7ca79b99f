from __future__ import annotations
import os
import httpx
from .base import LLMProvider

class OpenAIProvider(LLMProvider):
    """Chat-completions backend. The reply must be the task array itself."""

    def __init__(self, transport: httpx.BaseTransport | None = None):
        self.api_key = os.getenv("OPENAI_API_KEY", "").strip()
        self.model = os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip()
        self.base_url = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").strip().rstrip("/")
        self.transport = transport

        if not self.api_key:
            raise RuntimeError("OPENAI_API_KEY is missing")

    def _messages(self, system: str, user: str) -> list[dict]:
        messages = [{"role": "user", "content": user}]
        if system:
            messages.insert(0, {"role": "system", "content": system})
        return messages

    def generate(self, *, system: str, user: str, model: str | None = None) -> str:
        model = model or self.model
        payload = {
            "model": model,
            "messages": self._messages(system, user),
            # extraction wants the same array for the same syllabus
            "temperature": 0,
        }

        with httpx.Client(timeout=60.0, transport=self.transport) as client:
            r = client.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload,
            )
            r.raise_for_status()
            data = r.json()

        choices = data.get("choices") or []
        if not choices:
            raise RuntimeError(f"{model} returned no choices for the syllabus")

        choice = choices[0]
        content = ((choice.get("message") or {}).get("content") or "").strip()
        if not content:
            reason = choice.get("finish_reason") or "unknown"
            raise RuntimeError(f"{model} returned an empty reply (finish_reason={reason})")
        return content
