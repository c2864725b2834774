"""Centralized Redis connection pool management.

The pool is only created when the Redis event bus backend asks for a client,
so single-process deployments never touch Redis.
"""

from __future__ import annotations

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from .config import Settings
from .logging import get_logger

logger = get_logger(__name__)


class RedisPoolManager:
    """Singleton manager for Redis connection pool."""

    _instance: RedisPoolManager | None = None
    _pool: ConnectionPool | None = None
    _client: redis.Redis | None = None

    def __new__(cls) -> RedisPoolManager:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize the Redis pool manager."""
        if self._pool is None:
            settings = Settings()

            # Subscribers block on get_message, so no socket read timeout here
            self._pool = redis.ConnectionPool.from_url(
                settings.redis_url,
                decode_responses=True,
                max_connections=50,
                socket_connect_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
            self._client = redis.Redis(connection_pool=self._pool)

            logger.info(
                "Redis connection pool initialized with max_connections=50, "
                "health_check_interval=30s"
            )

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client with connection pooling."""
        if self._client is None:
            raise RuntimeError("Redis pool not initialized")
        return self._client

    async def close(self):
        """Close the Redis connection pool."""
        if self._client:
            await self._client.aclose()
            logger.info("Redis client closed")
        if self._pool:
            await self._pool.disconnect()
            logger.info("Redis connection pool disconnected")
        RedisPoolManager._instance = None
        RedisPoolManager._pool = None
        RedisPoolManager._client = None


def get_redis_client() -> redis.Redis:
    """Get a Redis client with connection pooling."""
    return RedisPoolManager().client


async def close_redis_pool():
    """Close the Redis connection pool if one was opened.

    Call this during application shutdown to cleanly close connections.
    """
    if RedisPoolManager._instance is not None:
        await RedisPoolManager._instance.close()
