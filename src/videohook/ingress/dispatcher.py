"""Webhook routing table.

Maps each inbound webhook path to the secret it is signed with, the event
model its body must fit, and the handler that acts on it. The validation
pipeline is applied uniformly by ``build_routes``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from pydantic import BaseModel
from starlette.responses import Response
from starlette.routing import Route

from videohook.catalog.merger import VideoCatalogMerger
from videohook.config import VideohookConfig
from videohook.ingress.pipeline import Delivery, WebhookPipeline
from videohook.models import FirstLoginEvent, VideoRecord
from videohook.provisioning.forwarder import UserProvisioningForwarder

logger = logging.getLogger(__name__)

WebhookHandler = Callable[[Delivery], Awaitable[Response]]
SecretSelector = Callable[[VideohookConfig], str]


@dataclass(frozen=True)
class WebhookRoute:
    """One entry of the routing table."""

    path: str
    name: str
    secret: SecretSelector
    event_model: type[BaseModel]
    handler: WebhookHandler
    method: str = "POST"


def webhook_routes(
    merger: VideoCatalogMerger,
    forwarder: UserProvisioningForwarder,
) -> list[WebhookRoute]:
    """The service's webhook routing table."""

    async def stream_handler(delivery: Delivery) -> Response:
        return await merger.handle(delivery.event)

    async def first_login_handler(delivery: Delivery) -> Response:
        return await forwarder.handle(delivery.request, delivery.event)

    return [
        WebhookRoute(
            path="/stream",
            name="stream",
            secret=lambda config: config.stream_webhook_secret,
            event_model=VideoRecord,
            handler=stream_handler,
        ),
        WebhookRoute(
            path="/auth0/stream-worker",
            name="auth0",
            secret=lambda config: config.auth0_webhook_secret,
            event_model=FirstLoginEvent,
            handler=first_login_handler,
        ),
    ]


def build_routes(pipeline: WebhookPipeline, routes: list[WebhookRoute]) -> list[Route]:
    """Turn routing-table entries into Starlette routes behind the pipeline."""
    starlette_routes = [
        Route(route.path, pipeline.endpoint(route), methods=[route.method], name=route.name)
        for route in routes
    ]
    logger.info("Webhook routes registered: %s", ", ".join(r.path for r in routes))
    return starlette_routes
