# Opt-in, fail-open access to a shared Redis connection (REDIS_ENABLED, REDIS_URL).
# Used by the rate limiter and the per-property offer lock; the API works without Redis.
import logging
import os
from typing import Optional

import redis

_logger = logging.getLogger("estatehub.redis")


def _truthy(val: Optional[str]) -> bool:
    if val is None:
        return False
    return val.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def is_redis_enabled() -> bool:
    return _truthy(os.getenv("REDIS_ENABLED", "false"))


# Cached client and a one-shot guard: after a failed connect this process stays fail-open
_client: Optional[redis.Redis] = None
_initialized = False


def get_redis() -> Optional[redis.Redis]:
    """
    Return a Redis client if enabled and reachable; otherwise return None.

    Connects lazily on first call and pings once. Errors are logged, never raised.
    """
    global _client, _initialized
    if not is_redis_enabled():
        return None
    if _client is not None:
        return _client
    if _initialized:
        return None

    url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    _initialized = True
    try:
        client = redis.Redis.from_url(
            url,
            socket_timeout=0.25,
            socket_connect_timeout=0.25,
            retry_on_timeout=False,
            health_check_interval=0,
        )
        client.ping()
    except redis.RedisError as exc:
        _logger.warning("Redis unavailable (fail-open): %s", exc)
        return None
    _client = client
    _logger.info("Connected to Redis at %s", url)
    return _client


def reset_redis() -> None:
    """Forget the cached client so the next call reconnects (used after config changes)."""
    global _client, _initialized
    _client = None
    _initialized = False
