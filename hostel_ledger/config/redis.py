"""
Redis configuration for the hostel fee ledger.
Provides a pooled client used for cross-process student locks.
"""

import logging
from typing import Optional

from redis import Redis
from redis.connection import ConnectionPool

from hostel_ledger.config.settings import settings

logger = logging.getLogger(__name__)

_redis_pool: Optional[ConnectionPool] = None


def get_redis_pool() -> ConnectionPool:
    """Create the Redis connection pool on first use"""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = ConnectionPool.from_url(
            settings.get_redis_url(),
            max_connections=settings.REDIS_POOL_SIZE,
            decode_responses=True,
        )
        logger.info("Redis connection pool created")
    return _redis_pool


def get_redis_client() -> Redis:
    """Get Redis client backed by the shared pool"""
    return Redis(connection_pool=get_redis_pool())
