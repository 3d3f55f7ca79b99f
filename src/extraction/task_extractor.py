import asyncio
import logging
from typing import Awaitable, Callable, Optional

from pydantic import ValidationError

from duelist.errors import DueListError, MalformedModelResponse, ModelCallFailed
from duelist.models import TaskDraft
from llm.llm_client import LLMClient, build_extraction_prompt
from llm.retry import ABORT_EXHAUSTED, MAX_ATTEMPTS, retry_decision

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class TaskExtractor:
    """Turns document text into task drafts, retrying transient model faults.

    Only the provider call is retried. A reply that cannot be parsed ends the
    call immediately with MalformedModelResponse.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        sleep: Optional[Sleep] = None,
        max_attempts: int = MAX_ATTEMPTS,
    ):
        self.llm = llm_client or LLMClient()
        self._sleep = sleep or asyncio.sleep
        self.max_attempts = max_attempts

    async def _complete_with_retry(self, prompt: str) -> str:
        attempt = 1
        while True:
            try:
                # provider calls are blocking httpx requests
                return await asyncio.to_thread(self.llm.complete, prompt)
            except DueListError:
                raise
            except Exception as e:
                logger.warning(f"Model call attempt {attempt} failed: {e}")
                decision = retry_decision(attempt, e, max_attempts=self.max_attempts)

                if decision.should_retry:
                    logger.info(f"Waiting {decision.delay_s:.0f}s before retry...")
                    await self._sleep(decision.delay_s)
                    attempt += 1
                    continue

                if decision.action == ABORT_EXHAUSTED:
                    raise ModelCallFailed(
                        f"Failed to process with the model after {attempt} attempts: {e}"
                    ) from e
                raise ModelCallFailed(f"Failed to process with the model: {e}") from e

    async def extract(self, text: str) -> list[TaskDraft]:
        content = await self._complete_with_retry(build_extraction_prompt(text))
        items = self.llm.parse_tasks(content)

        drafts = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise MalformedModelResponse(f"Task #{index + 1} is not a JSON object")
            try:
                drafts.append(TaskDraft(**item))
            except ValidationError as e:
                raise MalformedModelResponse(
                    f"Task #{index + 1} has invalid fields: {e.errors()[0]['msg']}"
                ) from e

        logger.info(f"Model returned {len(drafts)} task drafts")
        return drafts
