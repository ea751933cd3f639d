#!/usr/bin/env python3
"""Send signed sample deliveries to a running videohook server.

Usage:
    PYTHONPATH=src python scripts/simulate_webhook.py [base_url]

Demonstrates the accept → replay → bad signature → malformed header
flow against POST /stream, then provisions one user via
POST /auth0/stream-worker. Secrets come from the same VIDEOHOOK_*
environment the server uses.
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import json
import sys
import time
from pathlib import Path

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from videohook.config import load_config
from videohook.ingress.webhook import build_signed_message


# ================================================================
# Sample Deliveries
# ================================================================

SAMPLE_VIDEO = {
    "uid": "ea95132c15732412d22c1476fa83f27a",
    "readyToStream": True,
    "status": {"state": "ready", "pctComplete": "100.000000"},
    "meta": {"name": "Spring launch featured reel"},
    "created": "2024-02-10T10:19:24.000000Z",
    "duration": 42.5,
}

SAMPLE_USER = {"uid": "auth0|65c7a9f0d1e2", "email": "new.user@example.com"}


def sign(body: bytes, secret: str, timestamp: int) -> str:
    digest = hmac.new(
        secret.encode("utf-8"),
        build_signed_message(timestamp, body),
        hashlib.sha256,
    ).hexdigest()
    return f"time={timestamp},sig1={digest}"


def print_result(label: str, expected: int, resp: httpx.Response) -> None:
    mark = "PASS" if resp.status_code == expected else "FAIL"
    print(f"  [{mark}] {label:<28} -> {resp.status_code} {resp.text[:60]!r}")


async def main() -> None:
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"
    config = load_config()
    header_name = config.signature_header

    print()
    print("=" * 70)
    print("  videohook — webhook delivery demo")
    print(f"  target: {base_url}")
    print("=" * 70)
    print()

    async with httpx.AsyncClient(base_url=base_url, timeout=15.0) as client:
        body = json.dumps(SAMPLE_VIDEO).encode("utf-8")
        header = sign(body, config.stream_webhook_secret, int(time.time()))

        resp = await client.post("/stream", content=body, headers={header_name: header})
        print_result("stream: signed delivery", 200, resp)

        resp = await client.post("/stream", content=body, headers={header_name: header})
        print_result("stream: exact replay", 409, resp)

        forged = sign(body, "not-the-secret", int(time.time()) + 1)
        resp = await client.post("/stream", content=body, headers={header_name: forged})
        print_result("stream: wrong secret", 406, resp)

        resp = await client.post("/stream", content=body, headers={header_name: "time=123,sig1=zz"})
        print_result("stream: malformed header", 422, resp)

        resp = await client.post("/stream", content=body)
        print_result("stream: missing header", 422, resp)

        body = json.dumps(SAMPLE_USER).encode("utf-8")
        header = sign(body, config.auth0_webhook_secret, int(time.time()))
        resp = await client.post("/auth0/stream-worker", content=body, headers={header_name: header})
        # The actor service decides the status; it is passed through unchanged
        print(f"  [INFO] {'auth0: first login':<28} -> {resp.status_code} {resp.text[:60]!r}")

    print()
    print("=" * 70)


if __name__ == "__main__":
    asyncio.run(main())
