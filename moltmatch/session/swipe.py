"""SwipeSession — candidate queue, accept/reject decisions, match celebrations."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from loguru import logger

from moltmatch.matching.candidates import CandidateSource
from moltmatch.matching.scorer import score
from moltmatch.memory.models import Agent, CompatibilityResult, Match
from moltmatch.session.manager import SessionManager

Scorer = Callable[[Agent, Agent], CompatibilityResult]
MatchListener = Callable[[Match], None]


class Direction(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


class SwipeStatus(str, Enum):
    BROWSING = "browsing"
    EXHAUSTED = "exhausted"


class SwipeSession:
    """Walk a candidate queue one decision at a time.

    The queue and cursor live in the manager's SessionState. Listeners
    registered with :meth:`on_match` are called once per newly created
    match; re-accepting an agent that is already matched creates nothing and
    notifies nobody.
    """

    def __init__(
        self,
        manager: SessionManager,
        source: CandidateSource,
        scorer: Scorer = score,
    ):
        self.manager = manager
        self.source = source
        self.scorer = scorer
        self._listeners: list[MatchListener] = []

    def on_match(self, listener: MatchListener) -> None:
        self._listeners.append(listener)

    @property
    def status(self) -> SwipeStatus:
        state = self.manager.state
        if state.cursor >= len(state.candidate_queue):
            return SwipeStatus.EXHAUSTED
        return SwipeStatus.BROWSING

    @property
    def current(self) -> Agent | None:
        return self.manager.state.current_candidate

    def preview(self) -> CompatibilityResult | None:
        """Score for the candidate on screen, without deciding."""
        candidate = self.current
        me = self.manager.state.my_agent
        if candidate is None or me is None:
            return None
        return self.scorer(me, candidate)

    async def refresh(self) -> list[Agent]:
        """Fetch a new batch, reset the cursor, back to browsing."""
        self.manager.require_agent()
        queue = await self.source.next(self.manager.state)
        self.manager.commit(
            self.manager.state.model_copy(
                update={"candidate_queue": tuple(queue), "cursor": 0}
            )
        )
        return queue

    def decide(self, direction: Direction | str) -> Match | None:
        """Accept or reject the current candidate.

        Returns the new Match on a fresh accept, None otherwise. With no
        current candidate (exhausted) this is a no-op.
        """
        direction = Direction(direction)
        me = self.manager.require_agent()
        state = self.manager.state
        candidate = state.current_candidate
        if candidate is None:
            return None

        if direction is Direction.REJECT:
            self.manager.commit(state.model_copy(update={"cursor": state.cursor + 1}))
            return None

        compat = self.scorer(me, candidate)
        updated = self.manager.store.add_match(state, candidate, compat)
        created = updated is not state
        self.manager.commit(updated.model_copy(update={"cursor": state.cursor + 1}))
        if not created:
            logger.debug(f"{candidate.name} already matched, accept ignored")
            return None

        match = self.manager.state.get_match(candidate.name)
        for listener in self._listeners:
            listener(match)
        return match
