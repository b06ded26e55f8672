# backend/modules/realtime/services/backplane.py

"""
Redis pub/sub backplane so several API instances share realtime rooms.

Each instance publishes every emitted event on one channel, tagged with its
server id, and delivers events from other instances to its local sockets.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from redis.exceptions import RedisError

from core.config import settings
from core.redis_config import create_async_redis

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Dict[str, Any]], Awaitable[None]]


class RedisBackplane:
    def __init__(
        self,
        server_id: str,
        redis_url: Optional[str] = None,
        channel: Optional[str] = None,
        client=None,
    ):
        self.server_id = server_id
        self.redis_url = redis_url or settings.redis_url
        self.channel = channel or settings.realtime_channel
        self.redis = client
        self.pubsub = None
        self._handler: Optional[MessageHandler] = None
        self._listener_task: Optional[asyncio.Task] = None
        self.state = "disconnected"

    async def start(self, handler: MessageHandler) -> None:
        """Connect, subscribe and start the listener task."""
        self._handler = handler
        try:
            if self.redis is None:
                self.redis = create_async_redis(self.redis_url)
            await self.redis.ping()
            self.pubsub = self.redis.pubsub()
            await self.pubsub.subscribe(self.channel)
        except RedisError as e:
            self.state = "error"
            logger.error(f"Realtime backplane could not connect: {e}")
            raise

        self._listener_task = asyncio.create_task(self._listen())
        self.state = "connected"
        logger.info(f"Realtime backplane subscribed to {self.channel}")

    async def publish(self, room: str, event: str, data: Any) -> None:
        if self.redis is None:
            return
        message = {
            "server_id": self.server_id,
            "room": room,
            "event": event,
            "data": data,
        }
        await self.redis.publish(self.channel, json.dumps(message, default=str))

    async def _listen(self) -> None:
        try:
            async for message in self.pubsub.listen():
                if message.get("type") != "message":
                    continue
                await self.dispatch(message.get("data"))
        except asyncio.CancelledError:
            raise
        except RedisError as e:
            self.state = "error"
            logger.error(f"Realtime backplane listener stopped: {e}")

    async def dispatch(self, raw: Any) -> bool:
        """Hand a raw pub/sub payload to the hub; returns False when skipped."""
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            message = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            logger.warning("Ignoring non-JSON backplane payload")
            return False

        if not isinstance(message, dict):
            return False
        # Our own publishes were already delivered locally
        if message.get("server_id") == self.server_id:
            return False
        if self._handler is None:
            return False

        try:
            await self._handler(message)
        except Exception as e:
            logger.error(f"Error handling backplane message: {e}")
            return False
        return True

    async def close(self) -> None:
        if self._listener_task is not None:
            self._listener_task.cancel()
            try:
                await self._listener_task
            except asyncio.CancelledError:
                pass
            self._listener_task = None

        if self.pubsub is not None:
            await self.pubsub.unsubscribe(self.channel)
            await self.pubsub.close()
            self.pubsub = None
        if self.redis is not None:
            await self.redis.close()
            self.redis = None
        self.state = "disconnected"
        logger.info("Realtime backplane closed")
