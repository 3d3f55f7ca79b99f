import json
import logging
import os
import re
from typing import Any, Optional

from duelist.errors import MalformedModelResponse
from llm.providers.base import LLMProvider

logger = logging.getLogger(__name__)

LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini").strip().lower()

SYSTEM_PROMPT = "You read course documents and answer with JSON only."

EXTRACTION_PROMPT = """You are given the text of a college syllabus.
Extract all assignments, quizzes, exams, and projects with their due dates.
Return the result as JSON in this format:
[
  {{
    "title": "Assignment 1",
    "due_date": "2025-09-25",
    "description": "Read chapters 1-3 and submit reflection"
  }}
]

Important:
- Only include items with clear due dates
- Format dates as YYYY-MM-DD
- Extract concise, descriptive titles
- Include brief descriptions when available
- If no year is specified, assume 2025
- Return ONLY the JSON array, no additional text or formatting

Syllabus text:
{text}"""

_FENCE = re.compile(r"```json\s*|\s*```")


def build_extraction_prompt(text: str) -> str:
    return EXTRACTION_PROMPT.format(text=text)


def strip_code_fences(content: str) -> str:
    """Remove ```json / ``` wrapping that models add despite being told not to."""
    return _FENCE.sub("", content).strip()


def make_provider(name: Optional[str] = None) -> LLMProvider:
    name = (name or LLM_PROVIDER).strip().lower()
    if name == "gemini":
        from llm.providers.gemini_provider import GeminiProvider
        return GeminiProvider()
    if name == "openai":
        from llm.providers.openai_provider import OpenAIProvider
        return OpenAIProvider()
    if name == "ollama":
        from llm.providers.ollama_provider import OllamaProvider
        return OllamaProvider()
    if name == "mock":
        from llm.providers.mock_provider import MockProvider
        return MockProvider()
    raise RuntimeError(f"Unknown LLM_PROVIDER: {name}")


class LLMClient:
    """Thin wrapper around a provider: prompt in, parsed task list out.

    The provider is resolved on first use so that a missing API key surfaces as
    a failed upload instead of a failed import.
    """

    def __init__(self, provider: Optional[LLMProvider] = None):
        self._provider = provider

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = make_provider()
            logger.info(f"LLM provider: {type(self._provider).__name__}")
        return self._provider

    def complete(self, prompt: str) -> str:
        return self.provider.generate(system=SYSTEM_PROMPT, user=prompt)

    def parse_tasks(self, content: str) -> list[dict[str, Any]]:
        cleaned = strip_code_fences(content)
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.warning(f"Model reply is not JSON: {cleaned[:200]!r}")
            raise MalformedModelResponse(f"Failed to parse model response as JSON: {e}") from e

        if not isinstance(data, list):
            raise MalformedModelResponse(
                f"Expected a JSON array of tasks, got {type(data).__name__}"
            )
        return data

    def extract_tasks(self, text: str) -> list[dict[str, Any]]:
        """Single attempt: build the prompt, call the provider, parse the array."""
        return self.parse_tasks(self.complete(build_extraction_prompt(text)))
