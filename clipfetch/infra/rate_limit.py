import functools
import logging

from fastapi import HTTPException, Request
from redis.exceptions import RedisError

from clipfetch.config.settings import config
from clipfetch.i18n import i18n
from clipfetch.infra.redis import get_redis
from clipfetch.utils.locale import get_locale

logger = logging.getLogger(__name__)

class RedisRateLimiter:
    """
    Fixed-window per-client limiter.
    Off by default; with no redis connection every request is allowed.
    """

    async def __call__(self, request: Request):
        if not config.rate_limit.enabled:
            return True

        redis = get_redis()
        if not redis:
            return True

        window = config.rate_limit.window_seconds
        client_ip = request.client.host if request.client else "unknown"
        key = f"rate:{client_ip}:{request.url.path}"

        try:
            async with redis.pipeline(transaction=True) as pipe:
                pipe.set(key, 0, ex=window, nx=True)
                pipe.incr(key)
                pipe.ttl(key)
                _, current, ttl = await pipe.execute()
        except RedisError as e:
            logger.warning(f"Rate limiter unavailable: {e}")
            return True

        if current > config.rate_limit.max_requests:
            retry_after = max(int(ttl), 1)
            locale = get_locale(request.headers.get("accept-language"))
            _ = functools.partial(i18n.get, locale=locale)
            raise HTTPException(
                status_code=429,
                detail=_("error.rate_limit", seconds=retry_after),
                headers={"Retry-After": str(retry_after)}
            )

        return True

rate_limiter = RedisRateLimiter()
