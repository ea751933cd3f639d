"""Pydantic V2 data models for videohook.

Only the fields the service actually inspects are declared. Everything
else the providers send is kept via extra="allow" and carried through
untouched when records are cached or forwarded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

READY_STATE = "ready"


# ============================================================
# Webhook Envelope
# ============================================================


@dataclass(frozen=True)
class WebhookEnvelope:
    """Parsed Webhook-Signature header.

    ``time`` is the time component exactly as sent; it is what the provider
    signed. ``header`` is the raw header text, which doubles as the
    idempotency key.
    """

    time: str
    signature: str
    header: str

    @property
    def timestamp(self) -> int:
        return int(self.time)


# ============================================================
# Stream Models (video provider)
# ============================================================


class VideoStatus(BaseModel):
    """Processing status block of a Stream video."""

    model_config = ConfigDict(extra="allow")

    state: str | None = None
    pctComplete: str | None = None  # noqa: N815 — Stream's API naming
    errorReasonCode: str | None = None  # noqa: N815
    errorReasonText: str | None = None  # noqa: N815


class VideoRecord(BaseModel):
    """One hosted video, as delivered by the Stream webhook or list API."""

    model_config = ConfigDict(extra="allow")

    uid: str = Field(description="Stream video identifier")
    readyToStream: bool | None = None  # noqa: N815
    status: VideoStatus | None = None
    meta: dict[str, Any] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        """Video name from metadata (empty if unset)."""
        value = self.meta.get("name")
        return value if isinstance(value, str) else ""

    @property
    def is_ready(self) -> bool:
        """False only when the video reports an explicit non-ready state."""
        if self.status is None or self.status.state is None:
            return self.readyToStream is not False
        return self.status.state == READY_STATE

    def matches_tag(self, tag: str) -> bool:
        """Case-insensitive containment of ``tag`` in the video name."""
        return bool(tag) and tag.lower() in self.name.lower()

    def to_cache(self) -> dict[str, Any]:
        """Serialize for storage, keeping exactly the fields that were sent."""
        return self.model_dump(mode="json", exclude_unset=True)


class StreamVideoResponse(BaseModel):
    """Envelope of GET /accounts/{id}/stream."""

    model_config = ConfigDict(extra="allow")

    success: bool = True
    errors: list[Any] = Field(default_factory=list)
    messages: list[Any] = Field(default_factory=list)
    result: list[dict[str, Any]] = Field(default_factory=list)
    total: str | None = None
    range: str | None = None


# ============================================================
# Auth0 Models (identity provider)
# ============================================================


class FirstLoginEvent(BaseModel):
    """Payload of the Auth0 first-login hook."""

    model_config = ConfigDict(strict=True, extra="allow")

    uid: str
    email: str
