"""Redis client backing the idempotency records and the video caches.

Redis is the single source of truth: nothing read from it is kept in
process memory between requests.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

KEY_PREFIX = "videohook"


class RedisClient:
    """Async Redis client with a namespaced key-value surface."""

    def __init__(self, url: str = "redis://localhost:6379/0") -> None:
        self._url = url
        self._client: aioredis.Redis | None = None  # type: ignore[type-arg]

    async def connect(self) -> None:
        """Establish Redis connection."""
        self._client = aioredis.from_url(
            self._url,
            decode_responses=True,
            socket_connect_timeout=5,
        )
        logger.info("Redis connected: %s", self._url)

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            logger.info("Redis disconnected")

    @property
    def connected(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> aioredis.Redis:  # type: ignore[type-arg]
        """Get the Redis client, raising if not connected."""
        if self._client is None:
            raise RuntimeError("Redis not connected. Call connect() first.")
        return self._client

    async def ping(self) -> bool:
        """Check if Redis is reachable."""
        try:
            return bool(await self.client.ping())
        except Exception:
            return False

    @staticmethod
    def key(namespace: str, name: str) -> str:
        """Build a namespaced key: videohook:{namespace}:{name}."""
        return f"{KEY_PREFIX}:{namespace}:{name}"

    # ================================================================
    # Key-value surface
    # ================================================================

    async def get(self, key: str) -> str | None:
        return await self.client.get(key)  # type: ignore[no-any-return]

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        """Unconditional write; ``ttl`` in seconds, None or 0 keeps forever."""
        await self.client.set(key, value, ex=ttl or None)

    async def exists(self, key: str) -> bool:
        return bool(await self.client.exists(key))

    async def put_if_absent(self, key: str, value: str, ttl: int | None = None) -> bool:
        """Atomic SET NX (+EX). Returns True if this call created the key."""
        created = await self.client.set(key, value, nx=True, ex=ttl or None)
        return bool(created)

    async def delete(self, key: str) -> None:
        await self.client.delete(key)

    # ================================================================
    # JSON helpers (video caches)
    # ================================================================

    async def get_json(self, key: str) -> Any | None:
        """Read and decode a JSON value; None when the key is absent."""
        raw = await self.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def put_json(self, key: str, value: Any) -> None:
        await self.put(key, json.dumps(value))
