"""Webhook idempotency — Redis-based replay protection.

Security contract:
- The key is the raw Webhook-Signature header text (timestamp + signature),
  not a hash of the payload. An exact redelivery is rejected; a re-signed
  delivery of the same logical event is not.
- ``exists`` is the cheap pre-verification check.
- ``claim`` is an atomic SET NX made after authentication, so two concurrent
  identical deliveries cannot both reach the handler.
- ``record`` stores the raw body once the handler succeeded. It is
  best-effort: a failed write is logged, never raised.
"""

from __future__ import annotations

import logging

from videohook.db.redis_client import RedisClient

logger = logging.getLogger(__name__)

_NAMESPACE = "idempotent"

# Placeholder stored between claim and record
_CLAIMED = ""


class IdempotencyStore:
    """Tracks processed deliveries keyed by their signature header."""

    def __init__(self, redis: RedisClient, ttl_seconds: int = 0) -> None:
        self._redis = redis
        self._ttl = ttl_seconds or None

    def _key(self, header: str) -> str:
        return self._redis.key(_NAMESPACE, header)

    async def exists(self, header: str) -> bool:
        """True if this exact delivery was already claimed or recorded."""
        return await self._redis.exists(self._key(header))

    async def claim(self, header: str) -> bool:
        """Atomically reserve a delivery. False means another request has it."""
        claimed = await self._redis.put_if_absent(self._key(header), _CLAIMED, ttl=self._ttl)
        if not claimed:
            logger.info("Concurrent duplicate delivery lost the claim")
        return claimed

    async def release(self, header: str) -> None:
        """Drop a claim so the provider's retry of a failed delivery can succeed."""
        try:
            await self._redis.delete(self._key(header))
        except Exception:
            logger.error("Failed to release idempotency claim", exc_info=True)

    async def record(self, header: str, raw_body: str) -> None:
        """Persist the raw body of a successfully handled delivery."""
        try:
            await self._redis.put(self._key(header), raw_body, ttl=self._ttl)
        except Exception:
            logger.error("Failed to record processed delivery", exc_info=True)

    async def get(self, header: str) -> str | None:
        """Return the stored body ('' while only claimed), or None."""
        return await self._redis.get(self._key(header))
