from __future__ import annotations
from abc import ABC, abstractmethod

class LLMProvider(ABC):
    @abstractmethod
    def generate(self, *, system: str, user: str) -> str:
        """
        Must return the model output as TEXT (LLMClient strips fences and parses JSON).

        Transport failures are raised as-is; their message text decides whether
        the extraction client retries (see llm.retry).
        """
        raise NotImplementedError
