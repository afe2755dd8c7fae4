from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, stop_after_delay
from tenacity.wait import wait_base

from health_insights.llm_client import RateLimitedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_delay: float = 1.0
    multiplier: float = 2.0
    max_elapsed: float | None = None


class BackoffWait(wait_base):
    """
    Wait strategy for one logical request.

    Rate-limited failures sleep for the provider's suggested wait (or the
    current backoff when none was given) and leave the backoff untouched.
    Any other failure sleeps for the current backoff and then multiplies it.
    """

    def __init__(self, initial_delay: float, multiplier: float = 2.0) -> None:
        self.current_delay = initial_delay
        self.multiplier = multiplier

    def __call__(self, retry_state: RetryCallState) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, RateLimitedError):
            return exc.wait_seconds if exc.wait_seconds is not None else self.current_delay
        delay = self.current_delay
        self.current_delay *= self.multiplier
        return delay


def _log_before_sleep(label: str) -> Callable[[RetryCallState], None]:
    def log(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        kind = "Rate limit hit" if isinstance(exc, RateLimitedError) else "Attempt failed"
        logger.warning(
            "%s: %s (attempt %d): %s. Waiting %.2fs before retry",
            label,
            kind,
            retry_state.attempt_number,
            exc,
            delay,
        )

    return log


def call_with_retry(
    fn: Callable[[], T],
    policy: RetryPolicy,
    retry_on: tuple[type[BaseException], ...],
    sleep: Callable[[float], Any] = time.sleep,
    label: str = "llm",
) -> T:
    """
    Run fn until it succeeds or the attempt budget is spent.

    Exceptions outside retry_on propagate immediately; on exhaustion the last
    error is re-raised unchanged.
    """
    stop = stop_after_attempt(policy.max_attempts)
    if policy.max_elapsed is not None:
        stop = stop | stop_after_delay(policy.max_elapsed)

    retrying = Retrying(
        stop=stop,
        wait=BackoffWait(policy.initial_delay, policy.multiplier),
        retry=retry_if_exception_type(retry_on),
        sleep=sleep,
        before_sleep=_log_before_sleep(label),
        reraise=True,
    )
    return retrying(fn)
