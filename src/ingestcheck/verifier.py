"""Eventual-consistency row count verification.

Queued ingestion is asynchronous: a submitted file becomes visible in the
table some time later. RowCountVerifier polls the table count until the
expected number of new rows shows up, measuring each delta against a
BaselineCounter that carries the rows confirmed by earlier verifications.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from ingestcheck.errors import RowCountMismatchError, TransientQueryError
from ingestcheck.query.service import QueryService

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


@dataclass(frozen=True)
class VerificationPolicy:
    """Polling budget: at most ``attempts`` polls, ``delay`` seconds apart.

    The whole verification never runs longer than ``attempts * delay`` seconds;
    when the deadline and the attempt count disagree, the deadline wins.
    """

    attempts: int = 18
    delay: float = 10.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {self.attempts}")
        if self.delay <= 0:
            raise ValueError(f"delay must be > 0, got {self.delay}")

    @property
    def budget(self) -> float:
        return self.attempts * self.delay


@dataclass
class BaselineCounter:
    """Rows already confirmed in ``table`` by earlier verifications.

    Created once per suite run and passed into every verify() call.
    """

    table: str
    confirmed: int = 0

    def advance(self, delta: int) -> None:
        if delta < 0:
            raise ValueError(f"Baseline for {self.table} cannot move backwards (delta={delta})")
        self.confirmed += delta


class RowCountVerifier:
    """Polls ``<table> | count`` until an expected row delta is visible."""

    def __init__(
        self,
        service: QueryService,
        database: str,
        policy: VerificationPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
    ):
        self._service = service
        self._database = database
        self._policy = policy or VerificationPolicy()
        self._sleep = sleep
        self._clock = clock

    @property
    def policy(self) -> VerificationPolicy:
        return self._policy

    async def _count(self, table: str, timeout: float) -> int:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._service.count, self._database, table),
                timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransientQueryError(
                f"Count on {table} did not finish within the remaining {timeout:.1f}s"
            ) from e

    async def verify(
        self,
        expected: int,
        baseline: BaselineCounter,
        description: str = "",
    ) -> int:
        """Wait until ``expected`` new rows are visible in ``baseline.table``.

        Stops polling as soon as the observed delta reaches ``expected``.
        Transient query failures are retried; any other QueryError propagates
        at once. The baseline always advances by the observed delta, even on
        a mismatch, so later verifications only measure their own rows.

        Returns the confirmed delta.

        Raises:
            RowCountMismatchError: the observed delta differs from ``expected``
                once polling stops. Chained from the last transient error, if any.
                Also raised when no count succeeded, even if ``expected`` is 0.
        """
        if expected < 0:
            raise ValueError(f"expected must be >= 0, got {expected}")
        description = description or baseline.table

        deadline = self._clock() + self._policy.budget
        observed = 0
        counted = False
        last_error: TransientQueryError | None = None

        for attempt in range(1, self._policy.attempts + 1):
            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            await self._sleep(min(self._policy.delay, remaining))

            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            try:
                total = await self._count(baseline.table, remaining)
            except TransientQueryError as e:
                last_error = e
                logger.warning(
                    "Attempt %d/%d for %s failed: %s",
                    attempt,
                    self._policy.attempts,
                    description,
                    e,
                )
                continue

            counted = True
            observed = total - baseline.confirmed
            if observed >= expected:
                break
            logger.debug(
                "Attempt %d/%d for %s: %d of %d rows visible",
                attempt,
                self._policy.attempts,
                description,
                observed,
                expected,
            )

        baseline.advance(max(observed, 0))

        if not counted or observed != expected:
            logger.warning(
                "%s: expected %d rows, observed %d (baseline now %d)",
                description,
                expected,
                observed,
                baseline.confirmed,
            )
            raise RowCountMismatchError(description, expected, observed, last_error) from last_error

        logger.info(
            "%s: confirmed %d rows (baseline now %d)", description, observed, baseline.confirmed
        )
        return observed
