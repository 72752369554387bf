"""SQLite-backed match store for MoltMatch.

Holds the session snapshot (api key, own agent, matches, live mode) as a
single JSON row in ``snapshots``.  State transitions (add a match, append a
message) are pure functions over :class:`SessionState`; persistence is a full
snapshot rewrite after every mutation.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from moltmatch.core.errors import StorageError
from moltmatch.memory.models import (
    Agent,
    CompatibilityResult,
    Match,
    Message,
    SessionState,
    utcnow,
)


class MatchStore:
    """Session snapshot persistence + match/message transitions."""

    def __init__(
        self,
        db_path: str = "data/moltmatch.db",
        snapshot_key: str = "moltmatch-data",
    ):
        self.db_path = db_path
        self.snapshot_key = snapshot_key
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()
        logger.info(f"MatchStore initialized: {db_path}")

    @contextmanager
    def _get_conn(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        try:
            yield conn
        finally:
            conn.close()

    def _init_db(self):
        with self._get_conn() as conn:
            conn.executescript(_SCHEMA)
            conn.commit()

    # ════════════════════════════════════════════════════════════
    # TRANSITIONS (pure)
    # ════════════════════════════════════════════════════════════

    @staticmethod
    def add_match(
        state: SessionState, agent: Agent, compatibility: CompatibilityResult
    ) -> SessionState:
        """Append a new match. Returns ``state`` itself if already matched."""
        if state.get_match(agent.name) is not None:
            return state
        match = Match(agent=agent, compatibility=compatibility, matched_at=utcnow())
        logger.info(f"New match: {agent.name} ({compatibility.score}%)")
        return state.model_copy(update={"matches": state.matches + (match,)})

    @staticmethod
    def append_message(
        state: SessionState, agent_name: str, message: Message
    ) -> SessionState:
        """Append to a match's thread. Returns ``state`` itself if no such match."""
        if state.get_match(agent_name) is None:
            logger.debug(f"append_message: no match for {agent_name}, dropped")
            return state
        matches = tuple(
            m.model_copy(update={"messages": m.messages + (message,)})
            if m.agent.name == agent_name
            else m
            for m in state.matches
        )
        return state.model_copy(update={"matches": matches})

    # ════════════════════════════════════════════════════════════
    # SNAPSHOT
    # ════════════════════════════════════════════════════════════

    def save_snapshot(self, state: SessionState) -> bool:
        """Rewrite the snapshot row. Returns False (old row kept) on failure."""
        payload = json.dumps(state.to_snapshot(), ensure_ascii=False, sort_keys=True)
        try:
            with self._get_conn() as conn:
                conn.execute(
                    """INSERT INTO snapshots (key, payload) VALUES (?, ?)
                       ON CONFLICT(key) DO UPDATE SET
                           payload = excluded.payload,
                           updated_at = CURRENT_TIMESTAMP""",
                    (self.snapshot_key, payload),
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Snapshot write failed, previous snapshot kept: {e}")
            return False
        return True

    def load_snapshot(self) -> SessionState:
        """Read the snapshot; absent or corrupt data yields an empty state."""
        try:
            data = self._read_payload()
        except StorageError as e:
            logger.warning(f"Discarding unreadable snapshot: {e}")
            return SessionState()
        if data is None:
            return SessionState()
        try:
            state = SessionState.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Discarding malformed snapshot: {e.error_count()} errors")
            return SessionState()
        if state.my_agent is None:
            return SessionState()
        return _dedupe_matches(state)

    def clear(self) -> SessionState:
        """Erase the snapshot (sign-out). Returns a fresh empty state."""
        try:
            with self._get_conn() as conn:
                conn.execute("DELETE FROM snapshots WHERE key = ?", (self.snapshot_key,))
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Snapshot clear failed: {e}")
        logger.info("Session snapshot cleared")
        return SessionState()

    def _read_payload(self) -> dict[str, Any] | None:
        try:
            with self._get_conn() as conn:
                row = conn.execute(
                    "SELECT payload FROM snapshots WHERE key = ?", (self.snapshot_key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e
        if not row:
            return None
        try:
            data = json.loads(row["payload"])
        except (TypeError, json.JSONDecodeError) as e:
            raise StorageError(f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"expected object, got {type(data).__name__}")
        return data


def _dedupe_matches(state: SessionState) -> SessionState:
    """Keep the first match per agent name."""
    seen: set[str] = set()
    kept = []
    for m in state.matches:
        if m.agent.name not in seen:
            seen.add(m.agent.name)
            kept.append(m)
    if len(kept) == len(state.matches):
        return state
    return state.model_copy(update={"matches": tuple(kept)})


_SCHEMA = """
CREATE TABLE IF NOT EXISTS snapshots (
    key TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""
