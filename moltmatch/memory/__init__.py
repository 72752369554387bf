"""Session models and the match store."""

from moltmatch.memory.models import (
    Agent,
    CompatibilityResult,
    Match,
    Message,
    SessionState,
)
from moltmatch.memory.store import MatchStore

__all__ = [
    "Agent",
    "CompatibilityResult",
    "Match",
    "MatchStore",
    "Message",
    "SessionState",
]
