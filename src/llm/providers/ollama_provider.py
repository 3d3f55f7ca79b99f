from __future__ import annotations
import os
import httpx
from .base import LLMProvider

class OllamaProvider(LLMProvider):
    """Local models through Ollama's chat endpoint; handy when no API key is at hand."""

    def __init__(self, transport: httpx.BaseTransport | None = None):
        self.model = os.getenv("OLLAMA_MODEL", "llama3.1").strip()
        self.base_url = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434").strip()
        self.transport = transport

    def generate(self, *, system: str, user: str, model: str | None = None) -> str:
        url = f"{self.base_url}/api/chat"
        messages = [{"role": "user", "content": user}]
        if system:
            messages.insert(0, {"role": "system", "content": system})
        payload = {
            "model": model or self.model,
            "stream": False,
            "messages": messages,
            "options": {"temperature": 0.2},
        }

        # local models can be slow on long syllabi
        with httpx.Client(timeout=120.0, transport=self.transport) as client:
            r = client.post(url, json=payload)
            r.raise_for_status()
            data = r.json()

        return data.get("message", {}).get("content", "")
