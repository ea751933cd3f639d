"""Shared test fixtures for the videohook test suite."""

from __future__ import annotations

import hashlib
import hmac
import json
from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

from videohook.config import VideohookConfig
from videohook.db.redis_client import RedisClient
from videohook.egress.user_actors import UserActorNamespace
from videohook.observability import MetricsCollector
from videohook.server import build_services, create_app

STREAM_SECRET = "test_stream_webhook_secret"
AUTH0_SECRET = "test_auth0_webhook_secret"
ACTOR_URL = "http://actors.test/users"
TIMESTAMP = 1700000000

# ================================================================
# Configuration Fixture
# ================================================================


@pytest.fixture
def config() -> VideohookConfig:
    """Test configuration with dummy values."""
    return VideohookConfig(
        stream_webhook_secret=STREAM_SECRET,
        auth0_webhook_secret=AUTH0_SECRET,
        stream_account_id="acc_test_12345",
        stream_api_token="test_stream_token_12345",
        redis_url="redis://localhost:6379/0",
        feature_tag="featured",
        feature_cache_key="featured",
        user_actor_url=ACTOR_URL,
        user_jurisdiction="eu",
    )


# ================================================================
# Redis Fixture (using fakeredis)
# ================================================================


@pytest_asyncio.fixture
async def fake_redis() -> AsyncGenerator[RedisClient, None]:
    """Create a fakeredis-backed RedisClient for testing."""
    try:
        from fakeredis.aioredis import FakeRedis as FakeAioRedis
    except ImportError:
        pytest.skip("fakeredis not installed")

    client = RedisClient(url="redis://fake:6379/0")
    # Replace the real client with fakeredis
    client._client = FakeAioRedis(decode_responses=True)
    await client.client.flushall()
    yield client


# ================================================================
# Collaborator Fixtures
# ================================================================


@pytest.fixture
def stream_api() -> MagicMock:
    """Mock Stream API client returning three ready videos."""
    mock = MagicMock()
    mock.list_videos = AsyncMock(
        return_value=[make_video("vid_r1"), make_video("vid_r2"), make_video("vid_r3")]
    )
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def actor_requests() -> list[httpx.Request]:
    """Requests received by the fake storage actor service."""
    return []


@pytest_asyncio.fixture
async def user_actors(
    actor_requests: list[httpx.Request],
) -> AsyncGenerator[UserActorNamespace, None]:
    """User actor namespace talking to an in-memory actor service."""

    def handler(request: httpx.Request) -> httpx.Response:
        actor_requests.append(request)
        return httpx.Response(201, json={"created": True})

    namespace = UserActorNamespace(base_url=ACTOR_URL)
    await namespace._client.aclose()
    namespace._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    yield namespace
    await namespace.close()


@pytest_asyncio.fixture
async def app_client(
    config: VideohookConfig,
    fake_redis: RedisClient,
    stream_api: MagicMock,
    user_actors: UserActorNamespace,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client bound to the application via ASGI transport."""
    services = build_services(
        config,
        redis=fake_redis,
        stream_api=stream_api,
        user_actors=user_actors,
        metrics_collector=MetricsCollector(),
    )
    app = create_app(config, services)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ================================================================
# Webhook Helpers
# ================================================================


def make_video(
    uid: str = "vid_test_0001",
    name: str = "Weekly update",
    state: str = "ready",
) -> dict[str, Any]:
    """Create a realistic Stream video record for testing."""
    return {
        "uid": uid,
        "thumbnail": f"https://customer.videodelivery.net/{uid}/thumbnails/thumbnail.jpg",
        "readyToStream": state == "ready",
        "status": {"state": state, "pctComplete": "100.000000", "errorReasonCode": "", "errorReasonText": ""},
        "meta": {"name": name},
        "created": "2024-02-10T10:19:24.000000Z",
        "duration": 42.5,
        "playback": {
            "hls": f"https://customer.videodelivery.net/{uid}/manifest/video.m3u8",
            "dash": f"https://customer.videodelivery.net/{uid}/manifest/video.mpd",
        },
    }


def sign_header(body: bytes, secret: str, timestamp: int | str = TIMESTAMP) -> str:
    """Build a valid Webhook-Signature header for ``body``."""
    message = f"{timestamp}.".encode("utf-8") + body
    digest = hmac.new(
        key=secret.encode("utf-8"),
        msg=message,
        digestmod=hashlib.sha256,
    ).hexdigest()
    return f"time={timestamp},sig1={digest}"


def encode(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload).encode("utf-8")
