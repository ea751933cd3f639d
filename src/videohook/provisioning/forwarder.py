"""User provisioning — hands a first-login event to a new storage actor.

One first-login webhook allocates exactly one new actor identifier in the
configured jurisdiction and forwards ``{slug, uid, email}`` to that actor's
``POST /new``. The actor's response is returned to the caller as-is so
provisioning errors are visible to the identity provider.
"""

from __future__ import annotations

import logging

import httpx
from starlette.requests import Request
from starlette.responses import Response

from videohook.egress.user_actors import UserActorNamespace
from videohook.errors import UpstreamError
from videohook.models import FirstLoginEvent
from videohook.observability import MetricsCollector, metrics

logger = logging.getLogger(__name__)

SERVICE_NAME = "user-actor"


class UserProvisioningForwarder:
    """Forwards first-login events to freshly allocated user actors."""

    def __init__(
        self,
        actors: UserActorNamespace,
        jurisdiction: str = "eu",
        metrics_collector: MetricsCollector | None = None,
    ) -> None:
        self._actors = actors
        self._jurisdiction = jurisdiction
        self._metrics = metrics_collector or metrics

    async def handle(self, request: Request, user: FirstLoginEvent) -> Response:
        actor_id = self._actors.new_unique_id(jurisdiction=self._jurisdiction)
        stub = self._actors.get(actor_id)

        # The allocated id wins over any slug field in the event
        payload = {**user.model_dump(), "slug": str(actor_id)}

        try:
            resp = await stub.fetch("/new", method="POST", json=payload)
        except httpx.HTTPError as e:
            self._metrics.record_user_provisioned(False)
            logger.error("User actor %s unreachable (via %s): %s", actor_id, request.url.path, e)
            raise UpstreamError(SERVICE_NAME, str(e) or type(e).__name__) from e

        ok = resp.status_code < 400
        self._metrics.record_user_provisioned(ok)
        if ok:
            logger.info("Provisioned user %s into actor %s", user.uid, actor_id)
        else:
            logger.warning(
                "User actor %s rejected provisioning of %s: HTTP %d",
                actor_id, user.uid, resp.status_code,
            )

        return Response(
            content=resp.content,
            status_code=resp.status_code,
            media_type=resp.headers.get("content-type"),
        )
