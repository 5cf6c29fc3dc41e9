"""
Polling with a fixed delay between attempts.

The advisor polls the page for several things (board element, move list,
backend health). Whether a poll gives up is a property of its RetryPolicy:
`max_retries=None` keeps polling forever.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    delay: float
    max_retries: int | None = None

    @property
    def unbounded(self) -> bool:
        return self.max_retries is None


class RetryState:
    def __init__(self, policy: RetryPolicy):
        self.policy = policy
        self.attempts = 0

    @property
    def retries(self) -> int:
        return max(0, self.attempts - 1)

    def record_attempt(self):
        self.attempts += 1

    def should_retry(self) -> bool:
        if self.policy.unbounded:
            return True
        return self.retries < self.policy.max_retries


async def poll_until(
    check: Callable[[], Any],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    label: str = "condition",
):
    """Call `check` until it returns something truthy or the policy gives up.

    Returns the first truthy result, or the last (falsy) one when retries are
    exhausted. `check` may be a plain function or a coroutine function.
    """
    state = RetryState(policy)
    while True:
        result = check()
        if inspect.isawaitable(result):
            result = await result
        state.record_attempt()
        if result:
            return result
        if not state.should_retry():
            return result

        if policy.unbounded:
            logger.debug(f"{label} not met, retrying in {policy.delay}s")
        else:
            logger.debug(
                f"{label} not met, retrying in {policy.delay}s "
                f"(attempt {state.retries + 1}/{policy.max_retries})"
            )
        await sleep(policy.delay)
