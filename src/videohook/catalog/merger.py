"""Video catalog merger — keeps the cached video lists in step with Stream.

Two caches live in Redis:
  • latest   — most-recent-first list of ready videos. Each webhook video is
               prepended; when no list exists yet it is rebuilt from the top
               N ready videos on Stream (cold start).
  • featured — every ready video whose name contains the feature tag. Always
               replaced wholesale from a fresh Stream query, never merged.

Both updates run concurrently for each webhook. Policy on partial failure:
the catalog update is primary (its failure fails the request with 502); the
feature refresh is best-effort (its failure is logged and the request still
succeeds).

The catalog update is a plain read-then-write: two distinct videos arriving
at the same instant can race and one prepend may be lost. The next rebuild
or webhook corrects it.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from starlette.responses import PlainTextResponse, Response

from videohook.db.redis_client import RedisClient
from videohook.egress.stream_api import StreamAPIClient
from videohook.errors import UpstreamError, WebhookError
from videohook.models import READY_STATE, VideoRecord
from videohook.observability import MetricsCollector, metrics

logger = logging.getLogger(__name__)

_NAMESPACE = "videos"


class VideoCatalogMerger:
    """Merges Stream webhook videos into the cached catalog and feature lists."""

    def __init__(
        self,
        redis: RedisClient,
        stream_api: StreamAPIClient,
        *,
        feature_tag: str,
        catalog_key: str = "latest",
        feature_key: str = "featured",
        fetch_limit: int = 10,
        metrics_collector: MetricsCollector | None = None,
    ) -> None:
        self._redis = redis
        self._stream = stream_api
        self._feature_tag = feature_tag
        self._catalog_key = redis.key(_NAMESPACE, catalog_key)
        self._feature_key = redis.key(_NAMESPACE, feature_key)
        self._fetch_limit = fetch_limit
        self._metrics = metrics_collector or metrics

    # ----------------------------------------------------------------
    # Webhook entry point
    # ----------------------------------------------------------------

    async def handle(self, video: VideoRecord) -> Response:
        """Apply one Stream webhook video to both caches."""
        catalog_result, feature_result = await asyncio.gather(
            self.update_catalog(video),
            self.update_feature_cache(video),
            return_exceptions=True,
        )

        if isinstance(feature_result, BaseException):
            if not isinstance(feature_result, Exception):
                raise feature_result
            self._metrics.record_feature_refresh("error")
            logger.warning(
                "Feature cache refresh failed for video %s: %s", video.uid, feature_result
            )

        if isinstance(catalog_result, BaseException):
            if not isinstance(catalog_result, Exception):
                raise catalog_result
            self._metrics.record_catalog_update("error")
            logger.error("Catalog update failed for video %s: %s", video.uid, catalog_result)
            if isinstance(catalog_result, WebhookError):
                raise catalog_result
            raise UpstreamError("video-cache", str(catalog_result)) from catalog_result

        return PlainTextResponse("ok", status_code=200)

    # ----------------------------------------------------------------
    # Catalog ("latest")
    # ----------------------------------------------------------------

    async def update_catalog(self, video: VideoRecord) -> list[dict[str, Any]]:
        """Prepend ``video`` to the cached catalog, or rebuild it from Stream."""
        cached = await self._read_list(self._catalog_key)

        if cached is None:
            latest = await self._stream.list_videos(limit=self._fetch_limit, status=READY_STATE)
            mode = "rehydrate"
            logger.info("Catalog cache empty — rebuilt from Stream (%d videos)", len(latest))
        elif not video.is_ready:
            self._metrics.record_catalog_update("skipped")
            logger.info("Video %s not ready — catalog unchanged", video.uid)
            return cached
        else:
            latest = [video.to_cache()]
            latest.extend(
                item for item in cached
                if not (isinstance(item, dict) and item.get("uid") == video.uid)
            )
            mode = "prepend"
            logger.info("Prepended video %s to catalog (%d entries)", video.uid, len(latest))

        await self._redis.put_json(self._catalog_key, latest)
        self._metrics.record_catalog_update(mode)
        return latest

    # ----------------------------------------------------------------
    # Feature cache
    # ----------------------------------------------------------------

    async def update_feature_cache(self, video: VideoRecord) -> list[dict[str, Any]] | None:
        """Replace the feature cache if ``video`` carries the feature tag.

        Returns the new feature list, or None when the video is not tagged.
        """
        if not video.matches_tag(self._feature_tag):
            self._metrics.record_feature_refresh("skipped")
            return None

        featured = await self._stream.list_videos(status=READY_STATE, search=self._feature_tag)
        await self._redis.put_json(self._feature_key, featured)
        self._metrics.record_feature_refresh("refreshed")
        logger.info(
            "Feature cache '%s' refreshed (%d videos) after video %s",
            self._feature_tag, len(featured), video.uid,
        )
        return featured

    # ----------------------------------------------------------------
    # Reads
    # ----------------------------------------------------------------

    async def get_catalog(self) -> list[dict[str, Any]] | None:
        return await self._read_list(self._catalog_key)

    async def get_featured(self) -> list[dict[str, Any]] | None:
        return await self._read_list(self._feature_key)

    async def _read_list(self, key: str) -> list[dict[str, Any]] | None:
        """Cached list at ``key``; None if absent or unreadable."""
        try:
            value = await self._redis.get_json(key)
        except json.JSONDecodeError:
            logger.warning("Discarding corrupt cache entry at %s", key)
            return None
        if value is None:
            return None
        if not isinstance(value, list):
            logger.warning("Discarding non-list cache entry at %s", key)
            return None
        return value
