from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

MAX_ATTEMPTS = 3

# case-sensitive substrings of transient service faults
RETRYABLE_MARKERS = ("overloaded", "503", "429", "rate limit")

WAIT = "wait"
ABORT_NON_RETRYABLE = "abort_non_retryable"
ABORT_EXHAUSTED = "abort_exhausted"


@dataclass(frozen=True)
class RetryDecision:
    action: str
    delay_s: Optional[float] = None

    @property
    def should_retry(self) -> bool:
        return self.action == WAIT


def is_retryable(error: BaseException | str) -> bool:
    message = error if isinstance(error, str) else str(error)
    return any(marker in message for marker in RETRYABLE_MARKERS)


def retry_decision(
    attempt: int,
    error: BaseException | str,
    max_attempts: int = MAX_ATTEMPTS,
) -> RetryDecision:
    """Decide what happens after ``attempt`` (1-based) failed with ``error``.

    Transient faults wait ``2 ** attempt`` seconds while attempts remain;
    anything else aborts straight away.
    """
    if not is_retryable(error):
        return RetryDecision(ABORT_NON_RETRYABLE)
    if attempt >= max_attempts:
        return RetryDecision(ABORT_EXHAUSTED)
    return RetryDecision(WAIT, float(2 ** attempt))
