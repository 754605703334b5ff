"""Waiting on the ingestion status queues.

A queued ingestion with ReportLevel.FailuresAndSuccesses posts one message to
either the success or the failure queue once the service has processed it.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

from ingestcheck.errors import StatusWaitTimeoutError
from ingestcheck.verifier import Clock, Sleep

logger = logging.getLogger(__name__)

# Azure storage queues hand out at most 32 messages per request.
DRAIN_BATCH_SIZE = 32


class StatusQueue(Protocol):
    def is_empty(self) -> bool: ...

    def pop(self, n: int = 1) -> list[Any]: ...


class StatusQueues(Protocol):
    success: StatusQueue
    failure: StatusQueue


@dataclass
class StatusSnapshot:
    successes: list[Any] = field(default_factory=list)
    failures: list[Any] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.successes)

    @property
    def failure_count(self) -> int:
        return len(self.failures)


def drain(queue: StatusQueue, batch_size: int = DRAIN_BATCH_SIZE) -> list[Any]:
    """Pop every message currently on ``queue``.

    Keeps popping until a batch comes back empty, so messages that land while
    draining are collected too. Popped messages are deleted from the queue.
    """
    messages: list[Any] = []
    while True:
        batch = queue.pop(batch_size)
        if not batch:
            return messages
        messages.extend(batch)


async def _both_empty(queues: StatusQueues) -> bool:
    if not await asyncio.to_thread(queues.failure.is_empty):
        return False
    return await asyncio.to_thread(queues.success.is_empty)


async def wait_for_status(
    queues: StatusQueues,
    timeout: float = 180.0,
    interval: float = 1.0,
    sleep: Sleep = asyncio.sleep,
    clock: Clock = time.monotonic,
) -> StatusSnapshot:
    """Wait until either status queue has a message, then drain both.

    Raises:
        StatusWaitTimeoutError: both queues stayed empty for ``timeout`` seconds.
    """
    deadline = clock() + timeout
    while await _both_empty(queues):
        remaining = deadline - clock()
        if remaining <= 0:
            raise StatusWaitTimeoutError(timeout)
        await sleep(min(interval, remaining))

    failures = await asyncio.to_thread(drain, queues.failure)
    successes = await asyncio.to_thread(drain, queues.success)
    snapshot = StatusSnapshot(successes=successes, failures=failures)
    logger.info(
        "Ingestion status: %d succeeded, %d failed",
        snapshot.success_count,
        snapshot.failure_count,
    )
    return snapshot
