"""Stream API client — lists hosted videos for cache rebuilds.

Endpoint: GET /accounts/{account_id}/stream?limit&status&search
Auth:     Authorization: Bearer <api token>

Failures are not retried here; they surface as UpstreamError and the
webhook provider's own redelivery takes care of retrying.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from videohook.errors import UpstreamError
from videohook.models import READY_STATE, StreamVideoResponse

logger = logging.getLogger(__name__)

_DEFAULT_API_BASE = "https://api.cloudflare.com/client/v4"

SERVICE_NAME = "stream-api"


class StreamAPIClient:
    """Async client for the Stream video listing API.

    Usage:
        api = StreamAPIClient(account_id="abc", api_token="...")
        videos = await api.list_videos(limit=10, status="ready")
    """

    def __init__(
        self,
        account_id: str,
        api_token: str,
        api_base: str = _DEFAULT_API_BASE,
        timeout: float = 10.0,
    ) -> None:
        self._url = f"{api_base.rstrip('/')}/accounts/{account_id}/stream"
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {api_token}",
                "Content-Type": "application/json",
            },
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def list_videos(
        self,
        *,
        limit: int | None = None,
        status: str | None = READY_STATE,
        search: str | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch videos, newest first, as opaque records.

        Args:
            limit: Maximum number of videos (provider default when None).
            status: Processing state filter, "ready" by default.
            search: Name substring filter.

        Raises:
            UpstreamError: On transport failure, non-2xx status, or a
                response with ``success: false``.
        """
        params: dict[str, str] = {}
        if limit is not None:
            params["limit"] = str(limit)
        if status:
            params["status"] = status
        if search:
            params["search"] = search

        try:
            resp = await self._client.get(self._url, params=params)
            resp.raise_for_status()
            body = StreamVideoResponse.model_validate(resp.json())
        except httpx.TimeoutException as e:
            logger.error("Stream API TIMEOUT (params=%s)", params)
            raise UpstreamError(SERVICE_NAME, "timeout") from e
        except httpx.HTTPStatusError as e:
            logger.error("Stream API error %d: %s", e.response.status_code, e.response.text)
            raise UpstreamError(SERVICE_NAME, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("Stream API request failed: %s", e)
            raise UpstreamError(SERVICE_NAME, str(e)) from e
        except (ValueError, ValidationError) as e:
            logger.error("Stream API returned an unreadable body: %s", e)
            raise UpstreamError(SERVICE_NAME, "invalid response body") from e

        if not body.success:
            logger.error("Stream API reported failure: %s", body.errors)
            raise UpstreamError(SERVICE_NAME, f"request unsuccessful: {body.errors}")

        logger.info("Stream API returned %d videos (params=%s)", len(body.result), params)
        return body.result
