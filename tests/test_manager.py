"""Tests for moltmatch.session.manager — lifecycle and persistence."""

from __future__ import annotations

import random
from unittest.mock import patch

import httpx
import pytest

from moltmatch.core.config import Config
from moltmatch.core.errors import AuthError, PreconditionError
from moltmatch.core.network.client import make_client_factory
from moltmatch.memory.models import CompatibilityResult, SessionState
from moltmatch.memory.store import MatchStore
from moltmatch.session.manager import INVALID_KEY, UNREACHABLE, SessionManager

from tests.conftest import make_agent


def _manager(store, scheduler, handler) -> SessionManager:
    return SessionManager(
        store,
        Config(),
        scheduler=scheduler,
        client_factory=make_client_factory(transport=httpx.MockTransport(handler)),
        rng=random.Random(0),
        clock=scheduler.clock,
    )


def _me_handler(body, status=200):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/agents/me")
        return httpx.Response(status, json=body)

    return handler


# ── sign_in ───────────────────────────────────────────────


@pytest.mark.asyncio
async def test_sign_in_success(store, scheduler):
    m = _manager(store, scheduler, _me_handler({"success": True, "agent": {"name": "Me", "karma": 12}}))
    agent = await m.sign_in("  sk-live  ")
    assert agent.name == "Me"
    assert m.signed_in
    assert m.state.live_mode is True
    assert m.state.api_key == "sk-live"
    assert m.state.matches == ()

    resumed = SessionManager(MatchStore(store.db_path), Config(), scheduler=scheduler)
    assert resumed.state.my_agent.karma == 12
    assert resumed.state.api_key == "sk-live"


@pytest.mark.asyncio
async def test_sign_in_unwrapped_agent_body(store, scheduler):
    m = _manager(store, scheduler, _me_handler({"name": "Flat"}))
    assert (await m.sign_in("k")).name == "Flat"


@pytest.mark.asyncio
async def test_sign_in_rejected_key(store, scheduler):
    m = _manager(store, scheduler, _me_handler({"error": "nope"}, status=401))
    with pytest.raises(AuthError, match="Invalid API key"):
        await m.sign_in("bad")
    assert not m.signed_in
    assert store.load_snapshot() == SessionState()


@pytest.mark.asyncio
async def test_sign_in_unreachable(store, scheduler):
    def handler(request):
        raise httpx.ConnectError("no route", request=request)

    m = _manager(store, scheduler, handler)
    with pytest.raises(AuthError) as exc:
        await m.sign_in("k")
    assert str(exc.value) == UNREACHABLE


@pytest.mark.asyncio
async def test_sign_in_nameless_agent(store, scheduler):
    m = _manager(store, scheduler, _me_handler({"success": True, "agent": {"karma": 3}}))
    with pytest.raises(AuthError) as exc:
        await m.sign_in("k")
    assert str(exc.value) == INVALID_KEY


@pytest.mark.asyncio
async def test_sign_in_empty_key_skips_network(store, scheduler):
    def handler(request):
        raise AssertionError("no request expected")

    m = _manager(store, scheduler, handler)
    with pytest.raises(AuthError):
        await m.sign_in("   ")


# ── demo / sign_out ───────────────────────────────────────


def test_start_demo(manager, store):
    agent = manager.start_demo()
    assert agent.name == "MoltMatch_Explorer"
    assert agent.karma == 42
    assert agent.is_claimed
    assert manager.state.live_mode is False
    assert manager.state.api_key == ""
    assert store.load_snapshot().my_agent == agent


def test_sign_out_clears_everything(demo_manager, store):
    demo_manager.commit(
        store.add_match(demo_manager.state, make_agent("Bob"), CompatibilityResult(score=10))
    )
    demo_manager.sign_out()
    assert demo_manager.state == SessionState()
    assert not demo_manager.signed_in
    assert store.load_snapshot() == SessionState()


def test_resume_from_snapshot(demo_manager, store, scheduler):
    demo_manager.commit(
        store.add_match(demo_manager.state, make_agent("Bob"), CompatibilityResult(score=10))
    )
    again = SessionManager(store, Config(), scheduler=scheduler)
    assert again.signed_in
    assert [m.agent.name for m in again.state.matches] == ["Bob"]


def test_commit_without_agent_not_persisted(manager, store):
    manager.commit(SessionState(api_key="dangling"))
    assert store.load_snapshot() == SessionState()


# ── preconditions ─────────────────────────────────────────


def test_require_agent(manager):
    with pytest.raises(PreconditionError):
        manager.require_agent()


def test_send_message_requires_session(manager):
    with pytest.raises(PreconditionError):
        manager.send_message("Bob", "hi")


def test_send_message_empty_content(demo_manager, store):
    demo_manager.commit(
        store.add_match(demo_manager.state, make_agent("Bob"), CompatibilityResult(score=10))
    )
    with pytest.raises(ValueError):
        demo_manager.send_message("Bob", "   ")


def test_send_message_unknown_match(demo_manager, scheduler):
    assert demo_manager.send_message("Ghost", "hello?") is None
    assert scheduler.pending() == 0


def test_every_mutation_persists(demo_manager, store, scheduler):
    demo_manager.commit(
        store.add_match(demo_manager.state, make_agent("Bob"), CompatibilityResult(score=10))
    )
    with patch.object(store, "save_snapshot", wraps=store.save_snapshot) as save:
        demo_manager.send_message("Bob", "one")
        assert save.call_count == 1
        scheduler.advance(4)
        assert save.call_count == 2


@pytest.mark.asyncio
async def test_sign_in_non_finite_karma_defaulted(store, scheduler):
    def handler(request):
        return httpx.Response(
            200,
            content=b'{"agent": {"name": "Me", "karma": Infinity}}',
            headers={"Content-Type": "application/json"},
        )

    m = _manager(store, scheduler, handler)
    agent = await m.sign_in("k")
    assert agent.karma == 0
    assert store.load_snapshot().my_agent.karma == 0
