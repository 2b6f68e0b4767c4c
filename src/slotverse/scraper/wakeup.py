"""Redis pub/sub nudge from the ingress to an idle worker.

The committed ``pending`` row is the actual handoff; this channel only
shortens the time until a worker notices it.  Losing a message costs at
most one poll interval, so every Redis error is logged and ignored.
"""

from __future__ import annotations

import asyncio
import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class JobWakeup:
    """Publishes and awaits "new job" events on one Redis channel.

    Args:
        redis_url: Redis connection URL.
        channel: Pub/sub channel name.
    """

    def __init__(self, redis_url: str, channel: str) -> None:
        self.redis_url = redis_url
        self.channel = channel
        self._client: aioredis.Redis | None = None
        self._pubsub = None
        self._warned = False

    def _get_client(self) -> aioredis.Redis:
        if self._client is None:
            self._client = aioredis.from_url(
                self.redis_url,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
        return self._client

    async def publish(self, job_id: int) -> bool:
        """Announce *job_id*.  Returns ``False`` when Redis is unreachable."""
        try:
            await self._get_client().publish(self.channel, str(job_id))
        except (RedisError, OSError) as exc:
            logger.warning("wakeup: could not publish job %s: %s", job_id, exc)
            return False
        return True

    async def wait(self, timeout: float) -> bool:
        """Block until a job is announced or *timeout* elapses.

        Returns ``True`` when an announcement arrived.  Without Redis this
        degrades to a plain sleep.
        """
        try:
            if self._pubsub is None:
                pubsub = self._get_client().pubsub()
                await pubsub.subscribe(self.channel)
                self._pubsub = pubsub
            message = await self._pubsub.get_message(
                ignore_subscribe_messages=True,
                timeout=timeout,
            )
        except (RedisError, OSError) as exc:
            if not self._warned:
                logger.warning("wakeup: Redis unavailable, polling only: %s", exc)
                self._warned = True
            self._pubsub = None
            await asyncio.sleep(timeout)
            return False
        return message is not None

    async def close(self) -> None:
        if self._pubsub is not None:
            await self._pubsub.aclose()
            self._pubsub = None
        if self._client is not None:
            await self._client.aclose()
            self._client = None
