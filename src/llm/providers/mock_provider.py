from __future__ import annotations
import json
import re
from llm.providers.base import LLMProvider

_DATE = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")


class MockProvider(LLMProvider):
    def generate(self, *, system: str, user: str, model: str | None = None) -> str:
        """
        Offline stand-in: turns every document line holding an ISO date into a task.

        Only the part of the prompt after the document marker is scanned, so the
        example in the instructions never leaks into the result.
        """
        _, _, document = user.partition("Syllabus text:")
        tasks = []
        for line in document.splitlines():
            match = _DATE.search(line)
            if not match:
                continue
            title = line.replace(match.group(1), "").strip(" -:,\t") or "Untitled"
            tasks.append({"title": title, "due_date": match.group(1), "description": ""})

        # wrapped in a fence on purpose, like real models tend to do
        return "```json\n" + json.dumps(tasks) + "\n```"
