from __future__ import annotations

import logging
from contextlib import contextmanager
from uuid import uuid4

import redis

from inlinegames.errors import SessionBusyError


logger = logging.getLogger(__name__)

LOCK_KEY_PREFIX = "inlinegames:lock:"  # + {session_id}


@contextmanager
def session_lock(*, r: redis.Redis, session_id: str, ttl_ms: int = 5_000):
    """Best-effort per-session lock.

    Fails fast instead of waiting: the callback is answered with a "try again"
    notice and the player retries. The TTL bounds how long a dead holder blocks
    the session.
    """

    key = f"{LOCK_KEY_PREFIX}{session_id}"
    token = uuid4().hex
    try:
        acquired = r.set(key, token, nx=True, px=ttl_ms)
    except redis.RedisError as e:
        raise SessionBusyError(f"Could not acquire lock for session {session_id}") from e
    if not acquired:
        raise SessionBusyError(f"Session {session_id} is busy")
    try:
        yield
    finally:
        # Only release if we still own it; the TTL may have handed it to someone else.
        try:
            if r.get(key) == token:
                r.delete(key)
        except redis.RedisError:
            logger.warning("Could not release lock for session %s; it expires in %d ms", session_id, ttl_ms)
