import json
import logging
from typing import Any

import redis

logger = logging.getLogger(__name__)


def build_cache_key(prefix: str, *parts: Any):
    """
    Build a Redis cache key with a prefix and optional segments.

    Args:
        prefix (str): Root part of the key.
        *parts: Additional segments.

    Returns:
        str: Colon-separated cache key.
    """
    normalized = [prefix]
    for part in parts:
        normalized.append(str(part) if part is not None else "")
    return ":".join(normalized)


def build_redis_client(config: dict):
    """
    Create the Redis client used by the listing cache.

    Args:
        config (dict): Effective application configuration.

    Returns:
        redis.Redis | None: Client, or None when caching is disabled.
    """
    if not config.get("CACHE_ENABLED"):
        return None
    return redis.Redis(
        host=config["REDIS_HOST"],
        port=int(config["REDIS_PORT"]),
        db=int(config["REDIS_DB"]),
    )


class ListingCache:
    """
    Read-through JSON cache for listing responses.

    Redis is an optimization only: any ``RedisError`` is logged and handled as
    a miss so a cache outage never fails a request.
    """

    def __init__(self, redis_client: redis.Redis | None, ttl_seconds: int = 600):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    @property
    def enabled(self):
        return self.redis is not None

    def get(self, key: str):
        """
        Fetch a cached payload.

        Args:
            key (str): Cache key.

        Returns:
            Any | None: Decoded payload, or None on a miss.
        """
        if not self.enabled:
            return None
        try:
            cached = self.redis.get(key)
        except redis.RedisError as exc:
            logger.warning(f"Cache read failed for {key}: {exc}")
            return None
        if not cached:
            logger.debug(f"cache miss {key}")
            return None
        try:
            payload = json.loads(cached)
        except ValueError as exc:
            logger.warning(f"Discarding unreadable cache entry {key}: {exc}")
            return None
        logger.debug(f"cache hit {key}")
        return payload

    def set(self, key: str, value: Any):
        if not self.enabled:
            return
        try:
            self.redis.setex(key, self.ttl_seconds, json.dumps(value))
        except redis.RedisError as exc:
            logger.warning(f"Cache write failed for {key}: {exc}")

    def invalidate(self, prefix: str):
        """
        Drop the key ``prefix`` and every key below ``prefix:``.

        Args:
            prefix (str): Root of the keys to remove.
        """
        if not self.enabled:
            return
        try:
            self.redis.delete(prefix)
            for key in self.redis.scan_iter(f"{prefix}:*"):
                self.redis.delete(key)
        except redis.RedisError as exc:
            logger.warning(f"Cache invalidation failed for {prefix}: {exc}")
