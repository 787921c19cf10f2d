"""Bounded retry with a fixed delay between attempts."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, kw_only=True)
class RetryPolicy:
    """Retry an async operation a fixed number of times.

    Process creation can fail transiently when the machine is loaded, so
    starting a child is attempted up to ``max_attempts`` times, sleeping
    ``delay`` seconds in between. The last failure is re-raised unchanged.
    """

    max_attempts: int = 10
    delay: float = 1.0
    retry_on: tuple[type[Exception], ...] = (OSError,)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    async def run(
        self, operation: Callable[[], Awaitable[T]], *, description: str
    ) -> T:
        """Run ``operation`` until it succeeds or attempts are exhausted.

        Args:
            operation: Zero-argument coroutine function to call
            description: What is being attempted, for log messages

        Returns:
            The result of the first successful call

        """
        attempt = 1
        while True:
            try:
                return await operation()
            except self.retry_on as e:
                if attempt >= self.max_attempts:
                    log.error(
                        "Giving up on %s after %d attempt(s): %s",
                        description,
                        attempt,
                        e,
                    )
                    raise
                log.warning(
                    "Attempt %d/%d of %s failed: %s",
                    attempt,
                    self.max_attempts,
                    description,
                    e,
                )
            attempt += 1
            await asyncio.sleep(self.delay)
