"""Per-user storage actor namespace.

Each provisioned user gets its own storage actor, addressed by a freshly
minted identifier scoped to a data-residency jurisdiction. The actor itself
lives elsewhere; this module only allocates identifiers and talks HTTP to
``{base_url}/{jurisdiction}/{id}{path}``.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# 256-bit identifiers, hex encoded
_ID_BYTES = 32


@dataclass(frozen=True)
class ActorId:
    """Identifier of one storage actor instance."""

    value: str
    jurisdiction: str

    def __str__(self) -> str:
        return self.value


class UserActorStub:
    """Handle to a single storage actor."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, actor_id: ActorId) -> None:
        self._client = client
        self._url = f"{base_url}/{actor_id.jurisdiction}/{actor_id}"
        self.actor_id = actor_id

    async def fetch(
        self,
        path: str,
        *,
        method: str = "POST",
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request to the actor. Transport errors propagate."""
        return await self._client.request(method, f"{self._url}{path}", json=json)


class UserActorNamespace:
    """Allocates actor identifiers and hands out stubs for them."""

    def __init__(self, base_url: str, timeout: float = 10.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def new_unique_id(self, jurisdiction: str) -> ActorId:
        """Mint a new, never-before-used actor identifier."""
        actor_id = ActorId(value=secrets.token_hex(_ID_BYTES), jurisdiction=jurisdiction)
        logger.debug("Allocated user actor %s in %s", actor_id, jurisdiction)
        return actor_id

    def get(self, actor_id: ActorId) -> UserActorStub:
        return UserActorStub(self._client, self._base_url, actor_id)
