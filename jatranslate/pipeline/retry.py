"""Bounded retry with exponential backoff for async operations."""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from jatranslate.prompts.translation import PromptTemplateError

T = TypeVar("T")

# Programming defects: retrying cannot help.
NON_RETRYABLE = (PromptTemplateError,)


def is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, Exception) and not isinstance(exc, NON_RETRYABLE)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    initial_delay: float = 1.0,
    *,
    label: str = "operation",
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """Run ``operation``, retrying failures up to ``max_retries`` times.

    The wait before retry n is ``initial_delay * 2 ** (n - 1)`` seconds. The
    cause of each failure is logged before waiting. Once retries are
    exhausted the last exception is re-raised unchanged.

    Args:
        operation: Zero-argument coroutine function; called once per attempt.
        max_retries: Retries after the first attempt (0 disables retrying).
        initial_delay: Wait before the first retry, in seconds.
        label: Name used in log messages (for example "Chunk 3").
        sleep: Awaitable sleep override, used by tests.
    """
    if max_retries < 0:
        raise ValueError(f"max_retries must be >= 0, got {max_retries}")
    if initial_delay < 0:
        raise ValueError(f"initial_delay must be >= 0, got {initial_delay}")

    def _log_before_sleep(retry_state) -> None:
        exc = retry_state.outcome.exception()
        remaining = max_retries - retry_state.attempt_number + 1
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"  {label} failed, retrying in {delay:.1f}s ({remaining} retries left): "
            f"{type(exc).__name__}: {exc}"
        )

    kwargs = {
        "stop": stop_after_attempt(max_retries + 1),
        "wait": wait_exponential(multiplier=initial_delay, exp_base=2, min=0),
        "retry": retry_if_exception(is_retryable),
        "before_sleep": _log_before_sleep,
        "reraise": True,
    }
    if sleep is not None:
        kwargs["sleep"] = sleep

    async for attempt in AsyncRetrying(**kwargs):
        with attempt:
            result = await operation()
    return result
