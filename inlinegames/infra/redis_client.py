from __future__ import annotations

import os

import redis


def get_redis_url() -> str:
    return os.environ.get("INLINEGAMES_REDIS_URL") or os.environ.get("REDIS_URL", "redis://localhost:6379/0")


def create_redis(*, timeout_s: float = 2.0) -> redis.Redis:
    """Client for the session store.

    Short socket timeouts: a callback must be answered within seconds, so an
    unreachable backend should surface as a storage failure rather than hang.
    """

    return redis.Redis.from_url(
        get_redis_url(),
        decode_responses=True,
        socket_timeout=timeout_s,
        socket_connect_timeout=timeout_s,
    )
