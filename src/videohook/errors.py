"""Error taxonomy for the webhook pipeline.

Every error carries the HTTP status it maps to, so the endpoint can turn
it into a response without knowing which stage raised it.
"""

from __future__ import annotations


class WebhookError(Exception):
    """Base class for per-request webhook failures."""

    status_code = 500

    def __init__(self, message: str, code: str = "WEBHOOK_ERROR") -> None:
        self.code = code
        super().__init__(message)


class MissingSignature(WebhookError):
    """Signature header absent."""

    status_code = 422

    def __init__(self, header: str = "Webhook-Signature") -> None:
        super().__init__(f"Missing {header} header", code="MISSING_SIGNATURE")


class MalformedSignature(WebhookError):
    """Signature header present but not shaped like time=<digits>,sig1=<hex>."""

    status_code = 422

    def __init__(self, header: str = "Webhook-Signature") -> None:
        super().__init__(f"Malformed {header} header", code="MALFORMED_SIGNATURE")


class ReplayedDelivery(WebhookError):
    """Signature header already seen."""

    status_code = 409

    def __init__(self) -> None:
        super().__init__("Webhook already processed", code="REPLAYED_DELIVERY")


class InvalidSignature(WebhookError):
    status_code = 406

    def __init__(self, message: str = "Signature invalid") -> None:
        super().__init__(message, code="INVALID_SIGNATURE")


class MalformedPayload(WebhookError):
    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid webhook payload: {detail}", code="MALFORMED_PAYLOAD")


class PayloadTooLarge(WebhookError):
    status_code = 413

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Webhook payload exceeds maximum size of {limit} bytes",
            code="PAYLOAD_TOO_LARGE",
        )


class UpstreamError(WebhookError):
    """A collaborator (Stream API, storage actor, cache) failed."""

    status_code = 502

    def __init__(self, service: str, message: str) -> None:
        self.service = service
        super().__init__(f"{service}: {message}", code="UPSTREAM_ERROR")
