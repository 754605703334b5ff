"""Shared test fixtures."""

from pathlib import Path

import pytest

from ingestcheck.query.service import QueryService

DATA_DIR = Path(__file__).parent / "data"


class FakeQueryService(QueryService):
    """Scripted in-memory backend.

    ``counts`` is consumed one item per count query; an item that is an
    exception is raised instead of returned. The last item repeats.
    """

    def __init__(self, counts=None, clock=None, query_cost=0.0):
        self.counts = list(counts or [0])
        self.clock = clock
        self.query_cost = query_cost
        self.queries: list[tuple[str, str]] = []
        self.commands: list[tuple[str, str]] = []
        self.connected = False

    def connect(self) -> None:
        self.connected = True

    def close(self) -> None:
        self.connected = False

    def execute(self, database, query):
        self.queries.append((database, query))
        if self.clock is not None:
            self.clock.now += self.query_cost
        item = self.counts.pop(0) if len(self.counts) > 1 else self.counts[0]
        if isinstance(item, Exception):
            raise item
        return [[{"Count": item}]]

    def execute_command(self, database, command):
        self.commands.append((database, command))
        return []


class FakeClock:
    """Monotonic clock whose sleep() advances time instantly."""

    def __init__(self, now: float = 1000.0):
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeStatusQueue:
    """Status queue backed by a list; pop() removes up to n messages."""

    def __init__(self, messages=None, arrivals=None):
        self.messages = list(messages or [])
        # Messages that land on the queue after the given number of is_empty() calls.
        self.arrivals = dict(arrivals or {})
        self.empty_checks = 0
        self.pops: list[int] = []

    def is_empty(self) -> bool:
        self.empty_checks += 1
        self.messages.extend(self.arrivals.pop(self.empty_checks, []))
        return not self.messages

    def pop(self, n: int = 1):
        self.pops.append(n)
        batch, self.messages = self.messages[:n], self.messages[n:]
        return batch


class FakeStatusQueues:
    def __init__(self, success=None, failure=None):
        self.success = success or FakeStatusQueue()
        self.failure = failure or FakeStatusQueue()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def query_service(clock):
    """Provide a connected fake QueryService sharing the test clock."""
    service = FakeQueryService(clock=clock)
    service.connect()
    yield service
    service.close()
