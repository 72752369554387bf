"""Moltbook network client."""

from moltmatch.core.network.client import (
    API_BASE,
    MoltbookClient,
    failed,
    make_client_factory,
)

__all__ = ["API_BASE", "MoltbookClient", "failed", "make_client_factory"]
