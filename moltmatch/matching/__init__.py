"""Candidate discovery and compatibility scoring."""

from moltmatch.matching.candidates import CandidateSource, DemoGenerator, LiveFetcher
from moltmatch.matching.scorer import score

__all__ = ["CandidateSource", "DemoGenerator", "LiveFetcher", "score"]
