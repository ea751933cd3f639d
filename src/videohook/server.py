"""videohook server — Starlette application and uvicorn entrypoint.

Wires the Redis-backed idempotency store and video caches, the Stream API
client and the user actor namespace into the webhook routing table, and
manages their lifecycle.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route

from videohook.catalog.merger import VideoCatalogMerger
from videohook.config import VideohookConfig, load_config
from videohook.db.redis_client import RedisClient
from videohook.egress.stream_api import StreamAPIClient
from videohook.egress.user_actors import UserActorNamespace
from videohook.ingress.dispatcher import build_routes, webhook_routes
from videohook.ingress.idempotency import IdempotencyStore
from videohook.ingress.pipeline import WebhookPipeline
from videohook.logging_config import configure_logging
from videohook.observability import MetricsCollector, metrics
from videohook.provisioning.forwarder import UserProvisioningForwarder

logger = logging.getLogger("videohook")


@dataclass
class Services:
    """Long-lived collaborators shared by all requests."""

    config: VideohookConfig
    redis: RedisClient
    stream_api: StreamAPIClient
    user_actors: UserActorNamespace
    metrics: MetricsCollector
    started_at: float


def build_services(
    config: VideohookConfig,
    *,
    redis: RedisClient | None = None,
    stream_api: StreamAPIClient | None = None,
    user_actors: UserActorNamespace | None = None,
    metrics_collector: MetricsCollector | None = None,
) -> Services:
    """Create any collaborator not supplied by the caller from ``config``."""
    return Services(
        config=config,
        redis=redis or RedisClient(url=config.redis_url),
        stream_api=stream_api or StreamAPIClient(
            account_id=config.stream_account_id,
            api_token=config.stream_api_token,
            api_base=config.stream_api_base,
            timeout=config.stream_api_timeout,
        ),
        user_actors=user_actors or UserActorNamespace(
            base_url=config.user_actor_url,
            timeout=config.user_actor_timeout,
        ),
        metrics=metrics_collector or metrics,
        started_at=time.time(),
    )


def create_app(
    config: VideohookConfig | None = None,
    services: Services | None = None,
) -> Starlette:
    """Build the Starlette application.

    Tests pass pre-built ``services`` (fake Redis, mocked clients); in
    production everything is derived from the environment.
    """
    if config is None:
        config = services.config if services is not None else load_config()
    if services is None:
        services = build_services(config)

    merger = VideoCatalogMerger(
        services.redis,
        services.stream_api,
        feature_tag=config.feature_tag,
        catalog_key=config.catalog_cache_key,
        feature_key=config.feature_cache_key,
        fetch_limit=config.catalog_fetch_limit,
        metrics_collector=services.metrics,
    )
    forwarder = UserProvisioningForwarder(
        services.user_actors,
        jurisdiction=config.user_jurisdiction,
        metrics_collector=services.metrics,
    )
    pipeline = WebhookPipeline(
        config,
        IdempotencyStore(services.redis, ttl_seconds=config.idempotency_ttl_seconds),
        metrics_collector=services.metrics,
    )

    async def health_endpoint(request: Request) -> JSONResponse:
        """HTTP health check for load balancers."""
        redis_ok = await services.redis.ping()
        return JSONResponse(
            {
                "status": "ok" if redis_ok else "degraded",
                "service": "videohook",
                "redis": "ok" if redis_ok else "unreachable",
                "uptime_seconds": int(time.time() - services.started_at),
            },
            status_code=200 if redis_ok else 503,
        )

    async def metrics_endpoint(request: Request) -> PlainTextResponse:
        return PlainTextResponse(
            services.metrics.render(),
            media_type="text/plain; version=0.0.4",
        )

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        await _startup(services)
        try:
            yield
        finally:
            await _shutdown(services)

    routes = build_routes(pipeline, webhook_routes(merger, forwarder))
    routes.append(Route("/health", health_endpoint, methods=["GET"]))
    routes.append(Route("/metrics", metrics_endpoint, methods=["GET"]))

    app = Starlette(routes=routes, lifespan=lifespan)
    app.state.services = services
    app.state.merger = merger
    return app


# ================================================================
# Lifecycle
# ================================================================


async def _startup(services: Services) -> None:
    """Connect to Redis and check it is reachable."""
    logger.info("Starting videohook...")
    if not services.redis.connected:
        await services.redis.connect()
    if not await services.redis.ping():
        logger.warning("Redis is not reachable at startup — webhooks will fail until it is")
    logger.info("videohook ready")


async def _shutdown(services: Services) -> None:
    """Close all outbound connections."""
    logger.info("Shutting down videohook...")
    await services.stream_api.close()
    await services.user_actors.close()
    await services.redis.disconnect()
    logger.info("videohook stopped")


# ================================================================
# Server Runner
# ================================================================


def run_server() -> None:
    """Serve the application with uvicorn using environment config."""
    import uvicorn

    config = load_config()
    configure_logging(config.log_level, config.log_format == "json")
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    run_server()
