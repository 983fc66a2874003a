"""
Bounded retry with exponential backoff for transient infrastructure failures
"""

from typing import Awaitable, Callable, Tuple, Type, TypeVar, Union

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.core.logger import logger

T = TypeVar("T")


def _log_before_sleep(operation: str):
    def log(retry_state: RetryCallState):
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"Retrying {operation} after transient failure",
            metadata={
                "event": "retry_scheduled",
                "operation": operation,
                "attempt": retry_state.attempt_number,
                "waitSeconds": retry_state.next_action.sleep if retry_state.next_action else None,
                "errorType": type(exc).__name__ if exc else None,
                "error": str(exc) if exc else None,
            }
        )
    return log


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    operation_name: str,
    retry_on: Union[Type[BaseException], Tuple[Type[BaseException], ...]],
    max_attempts: int,
    backoff_initial: float = 0.0,
    backoff_max: float = 0.0,
) -> T:
    """
    Run ``operation`` until it succeeds or ``max_attempts`` is reached.

    Only exceptions matching ``retry_on`` are retried; the last one is
    re-raised unchanged once the budget is spent.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=backoff_initial, max=backoff_max),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_before_sleep(operation_name),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            result = await operation()
    return result
