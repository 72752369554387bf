"""Pydantic data models — agents, matches, messages, session state."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_message_id(ts: datetime | None = None) -> str:
    """Millisecond timestamp prefix keeps ids roughly display-ordered."""
    ts = ts or utcnow()
    return f"{int(ts.timestamp() * 1000)}-{uuid.uuid4().hex[:8]}"


def _non_negative_int(value: Any) -> int:
    """Coerce loosely-typed API numbers; None, junk, infinities and negatives become 0."""
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError, OverflowError):
        return 0


# ════════════════════════════════════════════════════════════
# AGENT
# ════════════════════════════════════════════════════════════


class AgentStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    posts: int = 0
    comments: int = 0

    @field_validator("posts", "comments", mode="before")
    @classmethod
    def _counts(cls, v: Any) -> int:
        return _non_negative_int(v)


class Owner(BaseModel):
    """Human owner behind an agent (X/Twitter identity)."""

    model_config = ConfigDict(frozen=True)

    x_handle: str = ""
    x_verified: bool = False
    x_follower_count: int = 0

    @field_validator("x_handle", mode="before")
    @classmethod
    def _handle(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""

    @field_validator("x_verified", mode="before")
    @classmethod
    def _verified(cls, v: Any) -> bool:
        return bool(v)

    @field_validator("x_follower_count", mode="before")
    @classmethod
    def _followers(cls, v: Any) -> int:
        return _non_negative_int(v)


class Agent(BaseModel):
    """Moltbook agent profile, fully defaulted and immutable."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    description: str = ""
    karma: int = 0
    stats: AgentStats = Field(default_factory=AgentStats)
    created_at: datetime = Field(default_factory=utcnow)
    is_claimed: bool = False
    follower_count: int = 0
    avatar_url: str | None = None
    owner: Owner | None = None

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""

    @field_validator("avatar_url", mode="before")
    @classmethod
    def _avatar(cls, v: Any) -> str | None:
        return v if isinstance(v, str) and v else None

    @field_validator("karma", "follower_count", mode="before")
    @classmethod
    def _counts(cls, v: Any) -> int:
        return _non_negative_int(v)

    @field_validator("is_claimed", mode="before")
    @classmethod
    def _claimed(cls, v: Any) -> bool:
        return bool(v)

    @field_validator("stats", mode="before")
    @classmethod
    def _stats(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, AgentStats)) else {}

    @field_validator("owner", mode="before")
    @classmethod
    def _owner(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, Owner)) and v else None

    @field_validator("created_at", mode="before")
    @classmethod
    def _created_at(cls, v: Any) -> Any:
        if v in (None, ""):
            return utcnow()
        if isinstance(v, str):
            try:
                v = datetime.fromisoformat(v.replace("Z", "+00:00"))
            except ValueError:
                return utcnow()
        if isinstance(v, datetime) and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Agent | None:
        """Normalize a raw API record. Returns None when it has no usable name."""
        if not isinstance(data, dict):
            return None
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            return None
        return cls.model_validate(data)


# ════════════════════════════════════════════════════════════
# MATCHES
# ════════════════════════════════════════════════════════════


class CompatibilityResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    reasons: tuple[str, ...] = ()


class Message(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    sender: str = Field(alias="from")
    content: str = Field(min_length=1)
    timestamp: datetime = Field(default_factory=utcnow)


class Match(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    agent: Agent
    compatibility: CompatibilityResult
    matched_at: datetime = Field(default_factory=utcnow, alias="matchedAt")
    messages: tuple[Message, ...] = ()

    @property
    def last_message(self) -> Message | None:
        return self.messages[-1] if self.messages else None


# ════════════════════════════════════════════════════════════
# SESSION
# ════════════════════════════════════════════════════════════


class SessionState(BaseModel):
    """Everything one signed-in session owns.

    Values are immutable; every operation returns a new state. Only
    ``api_key``, ``my_agent``, ``matches`` and ``live_mode`` are persisted,
    the candidate queue is refetched when a session resumes.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_key: str = Field(default="", alias="apiKey")
    my_agent: Agent | None = Field(default=None, alias="myAgent")
    live_mode: bool = Field(default=False, alias="liveMode")
    matches: tuple[Match, ...] = ()
    candidate_queue: tuple[Agent, ...] = ()
    cursor: int = 0

    @property
    def matched_names(self) -> set[str]:
        return {m.agent.name for m in self.matches}

    @property
    def excluded_names(self) -> set[str]:
        """Names that must never show up as candidates."""
        names = self.matched_names
        if self.my_agent:
            names.add(self.my_agent.name)
        return names

    def get_match(self, agent_name: str) -> Match | None:
        return next((m for m in self.matches if m.agent.name == agent_name), None)

    @property
    def current_candidate(self) -> Agent | None:
        if 0 <= self.cursor < len(self.candidate_queue):
            return self.candidate_queue[self.cursor]
        return None

    def to_snapshot(self) -> dict[str, Any]:
        """JSON-ready persisted subset (camelCase keys)."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            include={"api_key", "my_agent", "matches", "live_mode"},
        )
