# Redis-backed fixed-window rate limiter, applied as a route dependency.
# Counters are per client IP and scope (rl:v1:ip:{ip}:{scope}); fails open when Redis is unavailable.
import os
import logging
from typing import Callable, Literal, Optional

from fastapi import Request, HTTPException, status

from .redis_client import get_redis, is_redis_enabled

logger = logging.getLogger("estatehub.rate_limit")

# token: POST /jwt, signup: POST /users, write: listing/offer/review/report mutations
Scope = Literal["token", "signup", "write"]

_DEFAULT_LIMITS = {"token": 10, "signup": 5, "write": 30}


def _to_int(val: Optional[str], default: int) -> int:
    try:
        return int(val) if val is not None else default
    except ValueError:
        return default


def _window_seconds() -> int:
    return _to_int(os.getenv("RATE_LIMIT_WINDOW_SECONDS"), 60)


# RATE_LIMIT_TOKEN_PER_WINDOW, RATE_LIMIT_SIGNUP_PER_WINDOW, RATE_LIMIT_WRITE_PER_WINDOW
def _limit_for_scope(scope: Scope) -> int:
    return _to_int(os.getenv(f"RATE_LIMIT_{scope.upper()}_PER_WINDOW"), _DEFAULT_LIMITS[scope])


def _client_ip(request: Request) -> str:
    # Connection address only; X-Forwarded-For is not trusted here
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(scope: Scope) -> Callable[[Request], None]:
    """
    Fixed-window rate limiting using Redis counters.

    The first hit in a window sets the key's TTL; later hits share that expiry.
    Over the limit the request is refused with 429 and a retry_after hint.
    If Redis is disabled or erroring, requests pass through.
    """
    window = _window_seconds()
    limit = _limit_for_scope(scope)

    def _dependency(request: Request) -> None:
        if not is_redis_enabled():
            return

        r = get_redis()
        if r is None:
            return

        ip = _client_ip(request)
        key = f"rl:v1:ip:{ip}:{scope}"
        try:
            current = r.incr(key, amount=1)
            if current == 1:
                r.expire(key, window)
            if current > limit:
                ttl = r.ttl(key)
                retry_after = ttl if isinstance(ttl, int) and ttl > 0 else window
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail={"error": "rate_limited", "scope": scope, "limit": limit, "retry_after": retry_after},
                )
        except HTTPException:
            raise
        except Exception as exc:
            logger.warning("Rate limit fail-open (scope=%s, ip=%s): %s", scope, ip, exc)

    return _dependency
