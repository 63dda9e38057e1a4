from __future__ import annotations

from contextlib import AbstractContextManager, nullcontext
from typing import Protocol

import redis
from pydantic import ValidationError

from inlinegames.api.models import SessionState
from inlinegames.errors import SessionDecodeError, StorageError
from inlinegames.lock import session_lock


SESSION_KEY_PREFIX = "inlinegames:session:"  # + {session_id}
GAME_INDEX_PREFIX = "inlinegames:sessions:"  # + {game_code} -> set of session ids


def _session_key(session_id: str) -> str:
    return f"{SESSION_KEY_PREFIX}{session_id}"


def _index_key(game_code: str) -> str:
    return f"{GAME_INDEX_PREFIX}{game_code}"


class SessionStore(Protocol):
    def load(self, session_id: str) -> SessionState | None: ...

    def save(self, session_id: str, state: SessionState) -> None: ...

    def lock(self, session_id: str) -> AbstractContextManager[None]: ...


class RedisSessionStore:
    """Session blobs as JSON strings, one key per session id.

    `save` is an unconditional overwrite. Each save also records the session id in
    a per-game index set so housekeeping can find sessions by game code.
    """

    def __init__(self, r: redis.Redis, *, lock_ttl_ms: int = 5_000, use_lock: bool = False) -> None:
        self._r = r
        self._lock_ttl_ms = lock_ttl_ms
        self._use_lock = use_lock

    def load(self, session_id: str) -> SessionState | None:
        try:
            raw = self._r.get(_session_key(session_id))
        except redis.RedisError as e:
            raise StorageError(f"Failed to load session {session_id}") from e
        if not raw:
            return None
        try:
            return SessionState.model_validate_json(raw)
        except ValidationError as e:
            raise SessionDecodeError(session_id, str(raw)) from e

    def load_raw(self, session_id: str) -> str | None:
        try:
            raw = self._r.get(_session_key(session_id))
        except redis.RedisError as e:
            raise StorageError(f"Failed to load session {session_id}") from e
        return raw or None

    def save(self, session_id: str, state: SessionState) -> None:
        try:
            pipe = self._r.pipeline()
            pipe.set(_session_key(session_id), state.model_dump_json())
            pipe.sadd(_index_key(state.game_code), session_id)
            pipe.execute()
        except redis.RedisError as e:
            raise StorageError(f"Failed to save session {session_id}") from e

    def delete(self, session_id: str) -> bool:
        try:
            raw = self._r.get(_session_key(session_id))
            if not raw:
                return False
            try:
                code: str | None = SessionState.model_validate_json(raw).game_code
            except ValidationError:
                # Undecodable blob; it was never indexed under a known code.
                code = None
            pipe = self._r.pipeline()
            pipe.delete(_session_key(session_id))
            if code is not None:
                pipe.srem(_index_key(code), session_id)
            pipe.execute()
        except redis.RedisError as e:
            raise StorageError(f"Failed to delete session {session_id}") from e
        return True

    def list_session_ids(self, *, game_code: str | None = None) -> list[str]:
        try:
            if game_code is not None:
                return sorted(self._r.smembers(_index_key(game_code)))
            prefix_len = len(SESSION_KEY_PREFIX)
            return sorted(key[prefix_len:] for key in self._r.scan_iter(match=f"{SESSION_KEY_PREFIX}*"))
        except redis.RedisError as e:
            raise StorageError("Failed to list sessions") from e

    def lock(self, session_id: str) -> AbstractContextManager[None]:
        if not self._use_lock:
            return nullcontext()
        return session_lock(r=self._r, session_id=session_id, ttl_ms=self._lock_ttl_ms)
