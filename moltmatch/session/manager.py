"""SessionManager — holds the current SessionState and persists every change.

Sign-in, demo start and sign-out create or destroy the session; message
sending hands off to :class:`ConversationSimulator`, whose delayed replies
come back through :meth:`SessionManager.receive_reply` and read whatever the
state is *then*. After sign-out that is an empty state, so late replies
drop out quietly.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from datetime import datetime

from loguru import logger
from pydantic import ValidationError

from moltmatch.chat.simulator import ConversationSimulator
from moltmatch.core.config.schema import Config
from moltmatch.core.errors import AuthError, PreconditionError
from moltmatch.core.network.client import MoltbookClient, failed, make_client_factory
from moltmatch.core.timers.scheduler import AsyncIOTaskScheduler, TaskScheduler
from moltmatch.memory.models import (
    Agent,
    Message,
    SessionState,
    new_message_id,
    utcnow,
)
from moltmatch.memory.store import MatchStore

DEMO_AGENT = {
    "name": "MoltMatch_Explorer",
    "description": "A dating agent exploring connections on the Moltbook network",
    "karma": 42,
    "is_claimed": True,
    "stats": {"posts": 7, "comments": 23},
}

INVALID_KEY = "Invalid API key. Try demo mode instead."
UNREACHABLE = "Couldn't reach Moltbook. Try demo mode."


class SessionManager:
    """Owns the live :class:`SessionState` for one process."""

    def __init__(
        self,
        store: MatchStore,
        config: Config | None = None,
        scheduler: TaskScheduler | None = None,
        client_factory: Callable[[str], MoltbookClient] | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.config = config or Config()
        self.scheduler = scheduler or AsyncIOTaskScheduler()
        self.clock = clock
        self._client_factory = client_factory or make_client_factory(
            self.config.network.api_base, self.config.network.timeout_s
        )
        conv = self.config.conversation
        self.simulator = ConversationSimulator(
            self.scheduler,
            deliver=self.receive_reply,
            rng=rng,
            clock=clock,
            min_delay_ms=conv.min_delay_ms,
            max_delay_ms=conv.max_delay_ms,
        )
        self._reply_listeners: list[Callable[[str, Message], None]] = []
        self.state = store.load_snapshot()
        if self.state.my_agent:
            logger.info(f"Session resumed as {self.state.my_agent.name}")

    # ── State ────────────────────────────────────────────────

    @property
    def signed_in(self) -> bool:
        return self.state.my_agent is not None

    def require_agent(self) -> Agent:
        if self.state.my_agent is None:
            raise PreconditionError("No active agent: sign in or start demo mode first")
        return self.state.my_agent

    def on_reply(self, listener: Callable[[str, Message], None]) -> None:
        self._reply_listeners.append(listener)

    def commit(self, state: SessionState) -> SessionState:
        """Make ``state`` current and persist it (signed-in sessions only)."""
        self.state = state
        if state.my_agent is not None:
            self.store.save_snapshot(state)
        return state

    # ── Session lifecycle ────────────────────────────────────

    async def sign_in(self, api_key: str) -> Agent:
        """Authenticate against ``/agents/me`` and start a live session."""
        api_key = api_key.strip()
        if not api_key:
            raise AuthError("API key required. Try demo mode instead.")
        async with self._client_factory(api_key) as client:
            res = await client.me()
        if failed(res):
            if res.get("status_code") is None:
                raise AuthError(UNREACHABLE)
            raise AuthError(INVALID_KEY)
        try:
            agent = Agent.from_api(res.get("agent") or res)
        except ValidationError:
            agent = None
        if agent is None:
            raise AuthError(INVALID_KEY)
        self.commit(SessionState(api_key=api_key, my_agent=agent, live_mode=True))
        logger.info(f"Signed in as {agent.name} (live)")
        return agent

    def start_demo(self) -> Agent:
        agent = Agent.model_validate({**DEMO_AGENT, "created_at": self.clock()})
        self.commit(SessionState(my_agent=agent, live_mode=False))
        logger.info(f"Demo session started as {agent.name}")
        return agent

    def sign_out(self) -> None:
        self.state = self.store.clear()
        logger.info("Signed out")

    # ── Messages ─────────────────────────────────────────────

    def send_message(self, agent_name: str, content: str) -> Message | None:
        """Post to a match's thread and schedule its reply.

        Returns None (nothing scheduled) when there is no match for
        ``agent_name``.
        """
        me = self.require_agent()
        content = content.strip()
        if not content:
            raise ValueError("message content must not be empty")
        if self.state.get_match(agent_name) is None:
            logger.warning(f"send_message: no match named {agent_name}")
            return None
        ts = self.clock()
        msg = Message(id=new_message_id(ts), sender=me.name, content=content, timestamp=ts)
        self.commit(self.store.append_message(self.state, agent_name, msg))
        self.simulator.on_outgoing_message(agent_name, msg)
        return msg

    def receive_reply(self, agent_name: str, reply: Message) -> None:
        """Delivery target for scheduled replies; no-op if the match is gone."""
        updated = self.store.append_message(self.state, agent_name, reply)
        if updated is self.state:
            logger.debug(f"Reply from {agent_name} dropped (no such match)")
            return
        self.commit(updated)
        logger.info(f"Reply from {agent_name}: {reply.content[:60]}")
        for listener in self._reply_listeners:
            listener(agent_name, reply)
