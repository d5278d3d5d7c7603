from __future__ import annotations

import pytest

from lrcd.registry import NickRegistry
from lrcd.router import MessageRouter
from lrcd.session import Session
from lrcd.stats import StatsManager


class FakeConnection:
    """In-memory stand-in for SocketConnection."""

    def __init__(self, peer: str, lines=(), *, fail_writes: bool = False) -> None:
        self.peer = peer
        self._lines = list(lines)
        self.sent: list[str] = []
        self.fail_writes = fail_writes
        self.fail_reads = False
        self.closed = False

    def read_line(self) -> str | None:
        if self.fail_reads:
            raise ConnectionResetError("connection reset by peer")
        if not self._lines:
            return None
        item = self._lines.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def write_lines(self, lines) -> int:
        if self.fail_writes:
            raise BrokenPipeError("broken pipe")
        lines = list(lines)
        self.sent.extend(lines)
        return sum(len(line) + 2 for line in lines)

    def write_line(self, text: str) -> int:
        return self.write_lines((text,))

    def shutdown(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    def __repr__(self) -> str:
        return f"<FakeConnection {self.peer}>"


@pytest.fixture
def registry() -> NickRegistry:
    return NickRegistry()


@pytest.fixture
def stats(registry: NickRegistry) -> StatsManager:
    return StatsManager(registry)


@pytest.fixture
def router(registry: NickRegistry, stats: StatsManager) -> MessageRouter:
    return MessageRouter(registry, stats)


@pytest.fixture
def make_session(registry: NickRegistry, router: MessageRouter, stats: StatsManager):
    def _make(peer: str, lines=(), **kwargs) -> Session:
        conn = FakeConnection(peer, lines, fail_writes=kwargs.pop("fail_writes", False))
        return Session(conn, registry, router, stats=stats, **kwargs)

    return _make


@pytest.fixture
def fake_connection():
    return FakeConnection
