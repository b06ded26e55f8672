# backend/core/redis_config.py

"""
Redis connection management.

The realtime backplane uses the asyncio client; health checks use the same
configuration.
"""

import logging
from typing import Optional

import redis.asyncio as aioredis

from core.config import settings

logger = logging.getLogger(__name__)


class RedisConfig:
    """Redis connection configuration"""

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.redis_url or "redis://localhost:6379/0"
        self.max_connections = 20
        self.decode_responses = True
        # pub/sub listeners block indefinitely between messages
        self.socket_timeout = None
        self.socket_connect_timeout = 5
        self.health_check_interval = 30


def create_async_redis(url: Optional[str] = None) -> aioredis.Redis:
    """Build an asyncio Redis client from configuration."""
    config = RedisConfig(url)
    return aioredis.from_url(
        config.url,
        max_connections=config.max_connections,
        decode_responses=config.decode_responses,
        socket_timeout=config.socket_timeout,
        socket_connect_timeout=config.socket_connect_timeout,
        health_check_interval=config.health_check_interval,
    )
