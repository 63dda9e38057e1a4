from __future__ import annotations

from enum import StrEnum


class InlineGamesError(Exception):
    """Base class for engine errors."""


class StorageError(InlineGamesError):
    """Session backend unreachable or a load/save call failed."""


class SessionBusyError(StorageError):
    """Another action holds the per-session lock."""


class SessionDecodeError(InlineGamesError):
    """A stored session blob could not be parsed."""

    def __init__(self, session_id: str, raw: str) -> None:
        super().__init__(f"Stored session {session_id!r} is not a valid session record")
        self.session_id = session_id
        self.raw = raw


class SessionInvariantError(InlineGamesError):
    """A session record breaks the host/guest/game-state invariants."""


class RenderOutcome(StrEnum):
    edited = "edited"
    acknowledged = "acknowledged"
    rejected = "rejected"
    ignored = "ignored"
    storage_failure = "storage_failure"
    transport_error = "transport_error"
    crashed = "crashed"
