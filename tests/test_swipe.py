"""Tests for moltmatch.session.swipe."""

from __future__ import annotations

import random

import httpx
import pytest

from moltmatch.core.config import Config
from moltmatch.core.errors import PreconditionError
from moltmatch.core.network.client import make_client_factory
from moltmatch.matching.candidates import CandidateSource, DemoGenerator
from moltmatch.matching.scorer import score
from moltmatch.memory.models import CompatibilityResult
from moltmatch.session.swipe import Direction, SwipeSession, SwipeStatus

from tests.conftest import T0, make_agent


class FixedSource:
    """Returns the same batch every time."""

    def __init__(self, agents):
        self.agents = list(agents)
        self.calls = 0

    async def next(self, state):
        self.calls += 1
        return [a for a in self.agents]


def _demo_source() -> CandidateSource:
    return CandidateSource(
        Config(),
        demo=DemoGenerator(rng=random.Random(11), clock=lambda: T0),
        client_factory=make_client_factory(transport=httpx.MockTransport(lambda r: httpx.Response(500))),
    )


@pytest.fixture
def celebrations():
    return []


@pytest.fixture
def swipe(demo_manager, celebrations):
    s = SwipeSession(demo_manager, _demo_source())
    s.on_match(celebrations.append)
    return s


@pytest.mark.asyncio
async def test_refresh_fills_queue(swipe):
    queue = await swipe.refresh()
    assert len(queue) == 15
    assert swipe.status is SwipeStatus.BROWSING
    assert swipe.current == queue[0]
    assert swipe.manager.state.cursor == 0


def test_exhausted_before_refresh(swipe):
    assert swipe.status is SwipeStatus.EXHAUSTED
    assert swipe.current is None
    assert swipe.preview() is None
    assert swipe.decide(Direction.ACCEPT) is None


@pytest.mark.asyncio
async def test_reject_advances(swipe, celebrations):
    queue = await swipe.refresh()
    assert swipe.decide(Direction.REJECT) is None
    assert swipe.current == queue[1]
    assert swipe.manager.state.matches == ()
    assert celebrations == []


@pytest.mark.asyncio
async def test_accept_creates_match(swipe, celebrations):
    queue = await swipe.refresh()
    me = swipe.manager.state.my_agent
    expected = score(me, queue[0])
    assert swipe.preview() == expected

    match = swipe.decide("accept")
    assert match.agent == queue[0]
    assert match.compatibility == expected
    assert celebrations == [match]
    assert swipe.current == queue[1]
    assert swipe.manager.store.load_snapshot().get_match(queue[0].name) is not None


@pytest.mark.asyncio
async def test_walk_to_exhaustion(swipe, celebrations):
    queue = await swipe.refresh()
    for i in range(len(queue)):
        swipe.decide(Direction.ACCEPT if i % 2 == 0 else Direction.REJECT)
    assert swipe.status is SwipeStatus.EXHAUSTED
    assert len(celebrations) == 8

    before = swipe.manager.state
    assert swipe.decide(Direction.REJECT) is None
    assert swipe.manager.state == before


@pytest.mark.asyncio
async def test_refresh_excludes_matches(swipe):
    first = await swipe.refresh()
    swipe.decide(Direction.ACCEPT)
    second = await swipe.refresh()
    assert len(second) == 14
    assert first[0].name not in {a.name for a in second}
    assert swipe.manager.state.cursor == 0


@pytest.mark.asyncio
async def test_already_matched_candidate_not_duplicated(demo_manager, celebrations):
    bob = make_agent("Bob", karma=100)
    demo_manager.commit(
        demo_manager.store.add_match(demo_manager.state, bob, CompatibilityResult(score=70))
    )
    s = SwipeSession(demo_manager, FixedSource([bob, make_agent("Eve")]))
    s.on_match(celebrations.append)
    await s.refresh()

    assert s.decide(Direction.ACCEPT) is None
    assert [m.agent.name for m in demo_manager.state.matches] == ["Bob"]
    assert demo_manager.state.matches[0].compatibility.score == 70
    assert celebrations == []
    assert s.current.name == "Eve"


@pytest.mark.asyncio
async def test_custom_scorer(demo_manager):
    s = SwipeSession(
        demo_manager,
        FixedSource([make_agent("Eve")]),
        scorer=lambda a, b: CompatibilityResult(score=99, reasons=("fixed",)),
    )
    await s.refresh()
    assert s.decide(Direction.ACCEPT).compatibility.reasons == ("fixed",)


@pytest.mark.asyncio
async def test_requires_session(manager):
    s = SwipeSession(manager, FixedSource([make_agent("Eve")]))
    with pytest.raises(PreconditionError):
        await s.refresh()
    with pytest.raises(PreconditionError):
        s.decide(Direction.REJECT)


def test_unknown_direction(swipe):
    with pytest.raises(ValueError):
        swipe.decide("superlike")
