"""Webhook envelope parsing and signature verification.

CRITICAL SECURITY:
- Every webhook MUST carry a Webhook-Signature header of the exact form
  ``time=<digits>,sig1=<hex>``; anything else is rejected before any
  cryptographic work is done.
- The signature is HMAC-SHA256 over ``<time>.<raw body>``, compared with
  hmac.compare_digest.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import re
import time
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from videohook.errors import (
    InvalidSignature,
    MalformedPayload,
    MalformedSignature,
    MissingSignature,
)
from videohook.models import WebhookEnvelope

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Webhook-Signature"

# Whole-value match: up to 20 digits for the time component, hex for the signature.
_HEADER_PATTERN = re.compile(r"time=\d{1,20},sig1=[0-9a-fA-F]+")

EventT = TypeVar("EventT", bound=BaseModel)


def verify_signature(
    message: bytes,
    signature: str,
    secret: str | bytes,
) -> bool:
    """Verify a webhook signature using HMAC-SHA256.

    Args:
        message: The signed message (see build_signed_message).
        signature: Lowercase hex digest taken from the sig1 component.
        secret: Provider webhook signing secret.

    Returns:
        True if signature is valid, False otherwise.
    """
    key = secret.encode("utf-8") if isinstance(secret, str) else secret
    expected = hmac.new(key=key, msg=message, digestmod=hashlib.sha256).hexdigest()

    is_valid = hmac.compare_digest(expected, signature)

    if not is_valid:
        logger.warning("Webhook signature verification FAILED")
    else:
        logger.debug("Webhook signature verified OK")

    return is_valid


def parse_signature_header(
    header_value: str | None,
    header_name: str = SIGNATURE_HEADER,
) -> WebhookEnvelope:
    """Split a ``time=<digits>,sig1=<hex>`` header into its components.

    Raises:
        MissingSignature: If the header is absent.
        MalformedSignature: If the header does not match the required shape.
    """
    if header_value is None:
        raise MissingSignature(header_name)

    if not _HEADER_PATTERN.fullmatch(header_value):
        logger.warning("Rejected malformed %s header", header_name)
        raise MalformedSignature(header_name)

    time_part, sig_part = (segment.split("=")[1] for segment in header_value.split(","))
    return WebhookEnvelope(
        time=time_part,
        signature=sig_part,
        header=header_value,
    )


def build_signed_message(timestamp: int | str, body: bytes) -> bytes:
    """Reassemble the exact bytes the provider signed: ``<time>.<body>``.

    Pass the time text as it appeared in the header; leading zeros matter.
    """
    return f"{timestamp}.".encode("utf-8") + body


def authenticate(
    envelope: WebhookEnvelope,
    body: bytes,
    secret: str,
    tolerance_seconds: int = 0,
    now: float | None = None,
) -> None:
    """Check an envelope against the raw body and the route's secret.

    Raises:
        InvalidSignature: If the signature does not match, or the timestamp
            falls outside ``tolerance_seconds`` (when non-zero).
    """
    if tolerance_seconds:
        current = time.time() if now is None else now
        if abs(current - envelope.timestamp) > tolerance_seconds:
            logger.warning("Webhook timestamp outside tolerance: %s", envelope.timestamp)
            raise InvalidSignature("Signature timestamp outside tolerance")

    message = build_signed_message(envelope.time, body)
    if not verify_signature(message, envelope.signature, secret):
        raise InvalidSignature()


def parse_event(body: bytes, model: type[EventT]) -> EventT:
    """Parse a raw webhook body into the route's event model.

    Raises:
        MalformedPayload: If the body is not JSON or does not fit the model.
    """
    try:
        data: Any = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error("Failed to decode webhook payload: %s", e)
        raise MalformedPayload(str(e)) from e

    if not isinstance(data, dict):
        raise MalformedPayload("expected a JSON object")

    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error("Webhook payload does not match %s: %s", model.__name__, e)
        raise MalformedPayload(f"{e.error_count()} validation error(s) for {model.__name__}") from e
