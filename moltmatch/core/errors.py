"""MoltMatch error taxonomy."""

from __future__ import annotations


class MoltMatchError(Exception):
    """Base class for all MoltMatch errors."""


class AuthError(MoltMatchError):
    """Credential rejected (or network unreachable) while signing in."""


class NetworkError(MoltMatchError):
    """Transport or parse failure talking to Moltbook.

    Never escapes the client: it is folded into ``{"success": False}``.
    """

    def __init__(self, detail: str, status_code: int | None = None):
        self.detail = detail
        self.status_code = status_code
        prefix = f"HTTP {status_code}: " if status_code else ""
        super().__init__(f"{prefix}{detail}")


class StorageError(MoltMatchError):
    """Snapshot could not be read or written."""


class PreconditionError(MoltMatchError):
    """Operation needs an active agent but the session has none."""
