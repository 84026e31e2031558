"""
Polling controller for long-running generation jobs (video synthesis).

Protocol:
1. Submit the job and receive an operation handle.
2. While the handle is not done: wait, then re-query it.
3. When done, resolve the handle into a fetchable locator.

The wait between polls is bounded by a ``PollingPolicy`` and interrupted by
a ``CancellationToken``; the token is checked at every iteration boundary.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import BackendError, GenerationCancelledError, NoResultError, PollTimeoutError
from .providers.base import GenerationBackend

logger = logging.getLogger(__name__)


@dataclass
class PollingPolicy:
    """
    How often and for how long to poll.

    ``max_attempts`` and ``timeout`` of None mean unbounded. With
    ``backoff`` of 1.0 the interval stays fixed.
    """
    interval: float = 5.0
    max_attempts: Optional[int] = 120
    timeout: Optional[float] = 900.0
    backoff: float = 1.0
    max_interval: float = 30.0

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before poll number ``attempt`` (0-based)"""
        ceiling = max(self.max_interval, self.interval)
        if self.backoff <= 1.0:
            return max(0.0, min(self.interval * (self.backoff ** attempt), ceiling))

        # Grow step by step so the power never overflows on long unbounded polls
        delay = self.interval
        for _ in range(attempt):
            if delay <= 0 or delay >= ceiling:
                break
            delay *= self.backoff
        return max(0.0, min(delay, ceiling))


class CancellationToken:
    """One-shot cancellation flag that can also interrupt a pending wait"""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled"):
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self):
        if self.cancelled:
            raise GenerationCancelledError(f"Generation {self.reason}")

    async def sleep(self, delay: float):
        """Wait ``delay`` seconds or until cancelled, whichever comes first"""
        if delay <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass


class VideoGenerationController:
    """
    Drives a backend video job from submission to a fetchable locator.

    Any failure (backend error, timeout, cancellation, empty result) aborts
    the loop and propagates; no partial result is ever returned.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        policy: Optional[PollingPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.backend = backend
        self.policy = policy or PollingPolicy()
        self._clock = clock

    async def generate(
        self,
        prompt: str,
        image: Optional[str] = None,
        token: Optional[CancellationToken] = None,
    ) -> str:
        """
        Run one video job to completion.

        Args:
            prompt: Video prompt
            image: Optional conditioning image (data URL)
            token: Cancellation token checked at each poll boundary

        Returns:
            Complete, fetchable video locator

        Raises:
            BackendError: Backend failure or backend-reported job failure
            NoResultError: Job finished without a video
            PollTimeoutError: Attempt or time bound exceeded
            GenerationCancelledError: Token fired
        """
        token = token or CancellationToken()
        token.raise_if_cancelled()

        operation = await self.backend.start_video_generation(prompt, image)
        started = self._clock()
        attempts = 0

        while not operation.done:
            token.raise_if_cancelled()

            if self.policy.max_attempts is not None and attempts >= self.policy.max_attempts:
                raise PollTimeoutError(
                    f"Video operation {operation.name} not done after {attempts} polls"
                )

            delay = self.policy.delay_for(attempts)
            elapsed = self._clock() - started
            if self.policy.timeout is not None and elapsed + delay > self.policy.timeout:
                raise PollTimeoutError(
                    f"Video operation {operation.name} timed out after {elapsed:.0f}s"
                )

            await token.sleep(delay)
            token.raise_if_cancelled()

            operation = await self.backend.poll_video_operation(operation)
            attempts += 1
            logger.info("Polling video operation %s (attempt %d, done=%s)", operation.name, attempts, operation.done)

        if operation.error:
            raise BackendError(f"Video generation failed: {operation.error}")

        locator = await self.backend.resolve_video_result(operation)
        if not locator:
            raise NoResultError(f"Video operation {operation.name} finished without a video")

        logger.info("Video operation %s finished after %d polls", operation.name, attempts)
        return locator
