# Redis try-locks that serialize per-resource critical sections across API processes.
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator
from uuid import uuid4

from .redis_client import get_redis

logger = logging.getLogger("estatehub.locks")

# Delete the key only if it still holds our token
_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
else
    return 0
end
"""


def offer_lock_key(property_id: str) -> str:
    return f"lock:offers:property:{property_id}"


@contextmanager
def redis_try_lock(key: str, ttl_ms: int = 5000) -> Iterator[bool]:
    """
    Best-effort lock implemented with Redis SET NX PX.

    Yields True when the lock is acquired or Redis is unavailable, False when
    another process holds it:

        with redis_try_lock(offer_lock_key(pid)) as locked:
            if not locked:
                raise HTTPException(429, ...)
    """
    r = get_redis()
    if r is None:
        yield True
        return

    token = uuid4().hex
    acquired = False
    try:
        acquired = bool(r.set(key, token, nx=True, px=ttl_ms))
    except Exception as exc:
        logger.warning("redis_try_lock error (key=%s): %s", key, exc)
        yield True
        return

    try:
        yield acquired
    finally:
        if acquired:
            try:
                r.eval(_RELEASE_SCRIPT, 1, key, token)
            except Exception as exc:
                # The lock expires by TTL
                logger.debug("redis_try_lock release error (key=%s): %s", key, exc)
