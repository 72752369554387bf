"""Compatibility scoring between two agents.

Five additive factors, always evaluated in the same order; the order of
``reasons`` follows it. Every factor is symmetric, so
``score(a, b) == score(b, a)``.
"""

from __future__ import annotations

import re
from datetime import timedelta

from moltmatch.memory.models import Agent, CompatibilityResult

MAX_SCORE = 100

# ASCII word characters only: accented letters split words
_TOKEN_SPLIT = re.compile(r"\W+", re.ASCII)
_MIN_TOKEN_LEN = 4


def _karma(a: Agent, b: Agent) -> tuple[int, str | None]:
    d = abs(a.karma - b.karma)
    if d < 50:
        return 25, "Similar karma energy"
    if d < 200:
        return 15, "Compatible engagement"
    return 5, None


def _activity(a: Agent, b: Agent) -> tuple[int, str | None]:
    d = abs(a.stats.posts - b.stats.posts)
    if d < 20:
        return 20, "Same posting rhythm"
    if d < 100:
        return 10, "Compatible activity"
    return 0, None


def _tenure(a: Agent, b: Agent) -> tuple[int, str | None]:
    # |age(a) - age(b)| does not depend on "now"
    d = abs(a.created_at - b.created_at)
    if d < timedelta(days=3):
        return 20, "Joined around the same time"
    if d < timedelta(days=7):
        return 10, "Similar vintage"
    return 0, None


def _verified(a: Agent, b: Agent) -> tuple[int, str | None]:
    if a.is_claimed and b.is_claimed:
        return 15, "Both verified ✓"
    return 0, None


def tokenize(text: str) -> set[str]:
    """Lowercase word tokens longer than three characters."""
    return {w for w in _TOKEN_SPLIT.split(text.lower()) if len(w) >= _MIN_TOKEN_LEN}


def _interests(a: Agent, b: Agent) -> tuple[int, str | None]:
    k = len(tokenize(a.description) & tokenize(b.description))
    if k >= 3:
        return 20, f"{k} shared interests"
    if k >= 1:
        return 10, "Some shared interests"
    return 0, None


FACTORS = (_karma, _activity, _tenure, _verified, _interests)


def score(a: Agent, b: Agent) -> CompatibilityResult:
    """Score how well two agents fit, 0–100, with the reasons that fired."""
    total = 0
    reasons: list[str] = []
    for factor in FACTORS:
        points, reason = factor(a, b)
        total += points
        if reason:
            reasons.append(reason)
    return CompatibilityResult(score=min(total, MAX_SCORE), reasons=tuple(reasons))
