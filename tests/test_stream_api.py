"""Tests for the Stream API client (HTTP layer mocked)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from tests.conftest import make_video
from videohook.egress.stream_api import StreamAPIClient
from videohook.errors import UpstreamError

API_URL = "https://api.cloudflare.com/client/v4/accounts/acc_123/stream"


def make_client() -> StreamAPIClient:
    return StreamAPIClient(account_id="acc_123", api_token="tok_abc")


def mock_response(status_code: int = 200, json_data: object = None) -> httpx.Response:
    return httpx.Response(
        status_code,
        json=json_data,
        request=httpx.Request("GET", API_URL),
    )


@pytest.mark.asyncio
class TestListVideos:
    """Test GET /accounts/{id}/stream."""

    async def test_returns_result_records(self) -> None:
        client = make_client()
        client._client.get = AsyncMock(return_value=mock_response(200, {
            "success": True,
            "errors": [],
            "messages": [],
            "result": [make_video("vid_1"), make_video("vid_2")],
            "total": "2",
        }))

        videos = await client.list_videos(limit=10, status="ready")

        assert [v["uid"] for v in videos] == ["vid_1", "vid_2"]
        assert videos[0]["playback"]["hls"].endswith("/vid_1/manifest/video.m3u8")
        client._client.get.assert_awaited_once_with(
            API_URL, params={"limit": "10", "status": "ready"}
        )
        await client.close()

    async def test_search_query(self) -> None:
        client = make_client()
        client._client.get = AsyncMock(return_value=mock_response(200, {"success": True, "result": []}))

        await client.list_videos(search="featured")

        client._client.get.assert_awaited_once_with(
            API_URL, params={"status": "ready", "search": "featured"}
        )
        await client.close()

    async def test_bearer_auth_header(self) -> None:
        client = make_client()
        assert client._client.headers["Authorization"] == "Bearer tok_abc"
        await client.close()

    async def test_custom_api_base(self) -> None:
        client = StreamAPIClient(account_id="acc_9", api_token="t", api_base="http://stream.local/v4/")
        client._client.get = AsyncMock(return_value=mock_response(200, {"success": True, "result": []}))

        await client.list_videos(limit=1)

        url = client._client.get.await_args.args[0]
        assert url == "http://stream.local/v4/accounts/acc_9/stream"
        await client.close()

    async def test_http_error_status(self) -> None:
        client = make_client()
        client._client.get = AsyncMock(return_value=mock_response(500, {"success": False}))

        with pytest.raises(UpstreamError, match="HTTP 500"):
            await client.list_videos(limit=10)
        await client.close()

    async def test_unsuccessful_envelope(self) -> None:
        client = make_client()
        client._client.get = AsyncMock(return_value=mock_response(200, {
            "success": False,
            "errors": [{"code": 10000, "message": "Authentication error"}],
            "result": [],
        }))

        with pytest.raises(UpstreamError, match="unsuccessful"):
            await client.list_videos(limit=10)
        await client.close()

    async def test_timeout(self) -> None:
        client = make_client()
        client._client.get = AsyncMock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(UpstreamError, match="timeout") as exc_info:
            await client.list_videos(limit=10)
        assert exc_info.value.service == "stream-api"
        await client.close()

    async def test_connection_error(self) -> None:
        client = make_client()
        client._client.get = AsyncMock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(UpstreamError, match="refused"):
            await client.list_videos(limit=10)
        await client.close()

    async def test_non_json_body(self) -> None:
        client = make_client()
        bad = MagicMock()
        bad.raise_for_status = MagicMock()
        bad.json = MagicMock(side_effect=ValueError("no json"))
        client._client.get = AsyncMock(return_value=bad)

        with pytest.raises(UpstreamError, match="invalid response body"):
            await client.list_videos(limit=10)
        await client.close()

    async def test_result_with_wrong_shape(self) -> None:
        client = make_client()
        client._client.get = AsyncMock(return_value=mock_response(200, {"success": True, "result": "nope"}))

        with pytest.raises(UpstreamError, match="invalid response body"):
            await client.list_videos(limit=10)
        await client.close()
