"""Throttled, retried delivery of page requests to Notion.

Notion allows about 3 requests per second. Requests are sent in groups of 3:
the members of a group run concurrently, and the next group starts only after
every member has settled *and* a pacing delay (measured from the start of the
group) has elapsed. The delay is randomized between 1.1 and 1.3 seconds so
repeated runs do not hit the rate limit in lockstep.

The Notion API fails sporadically, so each request is retried on its own. After
half of the attempts have failed the retry loop pauses once for a couple of
seconds to let any throttling reset. A request that exhausts its attempts aborts
the whole run; there is no checkpoint, a new run starts from the beginning.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
import random
from typing import Any, Protocol, TypeVar

from errors import DeliveryAbortedError, TransientDeliveryError
from logger import get_logger
from payload_batcher import CreateRequest, split_into_chunks

logger = get_logger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 10
RETRY_WAIT_SEC = 2.0
REQUESTS_PER_GROUP = 3
PACING_SEC = (1.1, 1.3)

Sleep = Callable[[float], Awaitable[Any]]


class PageCreator(Protocol):
    async def create_page(self, body: dict[str, Any]) -> dict[str, Any]: ...


def midpoint_backoff(
    max_attempts: int = MAX_ATTEMPTS, pause: float = RETRY_WAIT_SEC
) -> Callable[[int], float]:
    """Backoff that waits ``pause`` seconds once, after half the attempts failed."""
    midpoint = max(1, max_attempts // 2)

    def backoff(failures: int) -> float:
        return pause if failures == midpoint else 0.0

    return backoff


@dataclass(frozen=True)
class RetryPolicy:
    """How often to try an operation and how long to wait after each failure.

    ``backoff`` receives the number of failures so far and returns seconds to
    wait before the next attempt (0 retries immediately).
    """

    max_attempts: int = MAX_ATTEMPTS
    backoff: Callable[[int], float] = field(default_factory=midpoint_backoff)


async def retry_with_policy(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    label: str,
    sleep: Sleep = asyncio.sleep,
    retry_on: tuple[type[BaseException], ...] = (TransientDeliveryError,),
) -> T:
    """Await ``operation()`` until it succeeds or the policy's attempts run out.

    Raises:
        DeliveryAbortedError: after ``policy.max_attempts`` failed attempts.
    """
    failures = 0
    while True:
        try:
            return await operation()
        except retry_on as exc:
            failures += 1
            if failures >= policy.max_attempts:
                logger.error("FAILED REQUEST: %s (%d attempts): %s", label, failures, exc)
                raise DeliveryAbortedError(label, failures, exc) from exc

            delay = policy.backoff(failures)
            if delay > 0:
                logger.warning("retrying %s (%d) and waiting %.1fs...", label, failures, delay)
                await sleep(delay)
            else:
                logger.warning("retrying %s (%d)...", label, failures)


class DeliveryEngine:
    """Deliver page requests in paced groups with per-request retry."""

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        client: PageCreator,
        *,
        group_size: int = REQUESTS_PER_GROUP,
        pacing: tuple[float, float] = PACING_SEC,
        retry_policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
        uniform: Callable[[float, float], float] = random.uniform,
    ) -> None:
        low, high = pacing
        if low < 0 or high < low:
            raise ValueError(f"Invalid pacing window {pacing}")
        self.client = client
        self.group_size = group_size
        self.pacing = pacing
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._uniform = uniform

    def pacing_delay(self) -> float:
        low, high = self.pacing
        return low if low == high else self._uniform(low, high)

    async def submit(self, request: CreateRequest) -> dict[str, Any]:
        body = request.to_notion()
        return await retry_with_policy(
            lambda: self.client.create_page(body),
            self.retry_policy,
            label=request.title,
            sleep=self._sleep,
        )

    async def submit_group(self, group: Sequence[CreateRequest]) -> list[dict[str, Any]]:
        tasks = [asyncio.ensure_future(self.submit(r)) for r in group]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # A fatal member ends the run; stop its siblings mid-retry.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def deliver(self, requests: Sequence[CreateRequest]) -> int:
        """Send every request; returns how many pages were created.

        Raises:
            DeliveryAbortedError: when any request exhausts its retries. Nothing
                after that request's group is sent.
        """
        groups = split_into_chunks(requests, self.group_size)
        for idx, group in enumerate(groups, start=1):
            pause = asyncio.ensure_future(self._sleep(self.pacing_delay()))
            try:
                await self.submit_group(group)
                await pause
            finally:
                pause.cancel()
            logger.info("%d of %d completed", idx, len(groups))
        return len(requests)
