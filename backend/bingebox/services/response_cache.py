"""
response_cache.py

Redis-backed revalidation cache for read-only upstream responses (TMDB,
streamed). A cached payload is served until its revalidate window elapses;
Redis being unavailable only disables caching.
"""
import json
import logging
from typing import Any, Awaitable, Callable

from bingebox.core.redis_client import get_redis

logger = logging.getLogger(__name__)

CACHE_PREFIX = "bingebox:cache:"


async def cached_json(key: str, revalidate_seconds: int, fetch: Callable[[], Awaitable[Any]]) -> Any:
    """Return the cached payload for ``key`` or call ``fetch`` and cache its result.

    ``fetch`` raising propagates and nothing is cached.
    """
    r = get_redis()
    full_key = f"{CACHE_PREFIX}{key}"
    try:
        cached = await r.get(full_key)
        if cached:
            return json.loads(cached)
    except Exception as e:
        logger.debug(f"Cache read skipped for {key}: {e}")

    data = await fetch()

    if revalidate_seconds > 0:
        try:
            await r.setex(full_key, revalidate_seconds, json.dumps(data))
        except Exception as e:
            logger.debug(f"Cache write skipped for {key}: {e}")
    return data

