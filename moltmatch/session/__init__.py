"""Session orchestration — lifecycle, swiping, messaging."""

from moltmatch.session.manager import SessionManager
from moltmatch.session.swipe import Direction, SwipeSession, SwipeStatus

__all__ = ["Direction", "SessionManager", "SwipeSession", "SwipeStatus"]
