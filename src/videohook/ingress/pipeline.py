"""Shared webhook validation pipeline.

Every webhook route runs the same steps; only the signing secret, the
event model and the business handler differ:

1. Size guard on the raw body
2. Parse the Webhook-Signature envelope (422 if missing/malformed)
3. Replay check on the raw header text (409, no verification)
4. HMAC verification against the route's secret (406, not recorded)
5. Parse the body into the route's event model (400)
6. Atomic claim of the delivery (409 if a concurrent twin won)
7. Business handler
8. Record the raw body as a background task after the response

A handler failure releases the claim so the provider's retry goes through.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from starlette.background import BackgroundTask, BackgroundTasks
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from videohook.config import VideohookConfig
from videohook.errors import PayloadTooLarge, ReplayedDelivery, WebhookError
from videohook.ingress.idempotency import IdempotencyStore
from videohook.ingress.webhook import authenticate, parse_event, parse_signature_header
from videohook.models import WebhookEnvelope
from videohook.observability import MetricsCollector, metrics

if TYPE_CHECKING:
    from videohook.ingress.dispatcher import WebhookRoute

logger = logging.getLogger(__name__)

Endpoint = Callable[[Request], Awaitable[Response]]


@dataclass(frozen=True)
class Delivery:
    """An authenticated, parsed webhook delivery handed to a route handler."""

    request: Request
    envelope: WebhookEnvelope
    body: bytes
    event: Any


class WebhookPipeline:
    """Builds authenticated Starlette endpoints from webhook routes."""

    def __init__(
        self,
        config: VideohookConfig,
        idempotency: IdempotencyStore,
        metrics_collector: MetricsCollector | None = None,
    ) -> None:
        self._config = config
        self._idempotency = idempotency
        self._metrics = metrics_collector or metrics

    async def authenticate(self, request: Request, route: WebhookRoute) -> Delivery:
        """Run steps 1-5. Raises a WebhookError subclass on rejection."""
        limit = self._config.max_payload_bytes
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > limit:
            raise PayloadTooLarge(limit)

        body = await request.body()
        if len(body) > limit:
            raise PayloadTooLarge(limit)

        header_name = self._config.signature_header
        envelope = parse_signature_header(request.headers.get(header_name), header_name)

        if await self._idempotency.exists(envelope.header):
            raise ReplayedDelivery()

        authenticate(
            envelope,
            body,
            route.secret(self._config),
            tolerance_seconds=self._config.signature_tolerance_seconds,
        )

        event = parse_event(body, route.event_model)
        return Delivery(request=request, envelope=envelope, body=body, event=event)

    def endpoint(self, route: WebhookRoute) -> Endpoint:
        """Wrap ``route.handler`` in the validation pipeline."""

        async def webhook_endpoint(request: Request) -> Response:
            start = time.monotonic()

            try:
                delivery = await self.authenticate(request, route)
                if not await self._idempotency.claim(delivery.envelope.header):
                    raise ReplayedDelivery()
            except WebhookError as e:
                return self._reject(route, e, start)

            header = delivery.envelope.header
            try:
                response = await route.handler(delivery)
            except WebhookError as e:
                await self._idempotency.release(header)
                return self._reject(route, e, start)
            except Exception:
                await self._idempotency.release(header)
                self._metrics.record_webhook(route.name, "handler_error", _elapsed_ms(start))
                logger.exception("Unhandled error in %s webhook handler", route.name)
                raise

            if response.status_code >= 400:
                await self._idempotency.release(header)
                self._metrics.record_webhook(route.name, "handler_rejected", _elapsed_ms(start))
                logger.warning(
                    "%s webhook handler answered %d — delivery not recorded",
                    route.name, response.status_code,
                )
                return response

            raw_body = delivery.body.decode("utf-8", errors="replace")
            _add_background(response, BackgroundTask(self._idempotency.record, header, raw_body))

            self._metrics.record_webhook(route.name, "ok", _elapsed_ms(start))
            logger.info("%s webhook processed in %.1fms", route.name, _elapsed_ms(start))
            return response

        webhook_endpoint.__name__ = f"{route.name}_webhook"
        return webhook_endpoint

    def _reject(self, route: WebhookRoute, error: WebhookError, start: float) -> Response:
        outcome = error.code.lower()
        self._metrics.record_webhook(route.name, outcome, _elapsed_ms(start))
        logger.warning(
            "WEBHOOK_REJECTED route=%s code=%s status=%d detail=%s",
            route.name, error.code, error.status_code, error,
        )
        return PlainTextResponse(str(error), status_code=error.status_code)


def _elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000


def _add_background(response: Response, task: BackgroundTask) -> None:
    if response.background is None:
        response.background = task
    else:
        response.background = BackgroundTasks(tasks=[response.background, task])
