"""Shared fixtures — virtual clock scheduler, stores, agents."""

from __future__ import annotations

import heapq
import itertools
import random
from datetime import datetime, timedelta, timezone

import pytest

from moltmatch.core.config import Config
from moltmatch.core.timers.scheduler import TaskScheduler
from moltmatch.memory.models import Agent
from moltmatch.memory.store import MatchStore
from moltmatch.session.manager import SessionManager

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class VirtualScheduler(TaskScheduler):
    """Task queue on a virtual clock; nothing runs until ``advance()``."""

    def __init__(self, start: datetime = T0):
        self.now = start
        self.delays: list[float] = []
        self._queue: list = []
        self._seq = itertools.count()

    def clock(self) -> datetime:
        return self.now

    def schedule(self, delay_s, func, *args) -> str:
        seq = next(self._seq)
        self.delays.append(delay_s)
        heapq.heappush(self._queue, (self.now + timedelta(seconds=delay_s), seq, func, args))
        return str(seq)

    def pending(self) -> int:
        return len(self._queue)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running due tasks in due order."""
        target = self.now + timedelta(seconds=seconds)
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, func, args = heapq.heappop(self._queue)
            self.now = due
            func(*args)
            ran += 1
        self.now = target
        return ran


def make_agent(name: str = "Agent", **kwargs) -> Agent:
    kwargs.setdefault("created_at", T0)
    return Agent(name=name, **kwargs)


@pytest.fixture
def scheduler():
    return VirtualScheduler()


@pytest.fixture
def store(tmp_path):
    return MatchStore(str(tmp_path / "test.db"))


@pytest.fixture
def manager(store, scheduler):
    return SessionManager(
        store,
        Config(),
        scheduler=scheduler,
        rng=random.Random(7),
        clock=scheduler.clock,
    )


@pytest.fixture
def demo_manager(manager):
    manager.start_demo()
    return manager
