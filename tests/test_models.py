"""Tests for Pydantic models and configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tests.conftest import make_video
from videohook.config import VideohookConfig
from videohook.models import FirstLoginEvent, StreamVideoResponse, VideoRecord


class TestVideoRecord:
    def test_parses_stream_payload(self) -> None:
        video = VideoRecord.model_validate(make_video("vid_1", name="Launch"))
        assert video.uid == "vid_1"
        assert video.name == "Launch"
        assert video.is_ready is True

    def test_extra_fields_preserved(self) -> None:
        video = VideoRecord.model_validate(make_video("vid_1"))
        cached = video.to_cache()
        assert cached == make_video("vid_1")

    def test_to_cache_does_not_invent_fields(self) -> None:
        assert VideoRecord(uid="vid_1").to_cache() == {"uid": "vid_1"}

    def test_missing_name(self) -> None:
        assert VideoRecord(uid="vid_1").name == ""
        assert VideoRecord(uid="vid_1", meta={"name": 42}).name == ""

    def test_readiness(self) -> None:
        assert VideoRecord(uid="a").is_ready is True
        assert VideoRecord(uid="a", readyToStream=False).is_ready is False
        assert VideoRecord.model_validate(make_video("a", state="inprogress")).is_ready is False
        assert VideoRecord.model_validate(make_video("a", state="error")).is_ready is False

    def test_matches_tag(self) -> None:
        video = VideoRecord(uid="a", meta={"name": "Big FEATURED drop"})
        assert video.matches_tag("featured") is True
        assert video.matches_tag("promo") is False
        assert video.matches_tag("") is False

    def test_uid_required(self) -> None:
        with pytest.raises(ValidationError):
            VideoRecord.model_validate({"meta": {"name": "x"}})


class TestStreamVideoResponse:
    def test_defaults(self) -> None:
        resp = StreamVideoResponse.model_validate({"result": [{"uid": "a"}]})
        assert resp.success is True
        assert resp.result == [{"uid": "a"}]


class TestFirstLoginEvent:
    def test_valid(self) -> None:
        event = FirstLoginEvent(uid="u1", email="e@x.com")
        assert event.model_dump() == {"uid": "u1", "email": "e@x.com"}

    def test_strict_types(self) -> None:
        with pytest.raises(ValidationError):
            FirstLoginEvent.model_validate({"uid": 123, "email": "e@x.com"})

    def test_missing_email(self) -> None:
        with pytest.raises(ValidationError):
            FirstLoginEvent.model_validate({"uid": "u1"})


class TestConfig:
    def test_defaults(self, config: VideohookConfig) -> None:
        assert config.signature_header == "Webhook-Signature"
        assert config.catalog_fetch_limit == 10
        assert config.idempotency_ttl_seconds == 0
        assert config.max_payload_bytes == 1024 * 1024

    def test_loads_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VIDEOHOOK_STREAM_WEBHOOK_SECRET", "s1")
        monkeypatch.setenv("VIDEOHOOK_AUTH0_WEBHOOK_SECRET", "s2")
        monkeypatch.setenv("VIDEOHOOK_STREAM_ACCOUNT_ID", "acc")
        monkeypatch.setenv("VIDEOHOOK_STREAM_API_TOKEN", "tok")
        monkeypatch.setenv("VIDEOHOOK_FEATURE_TAG", "promo")

        config = VideohookConfig()  # type: ignore[call-arg]

        assert config.stream_webhook_secret == "s1"
        assert config.auth0_webhook_secret == "s2"
        assert config.feature_tag == "promo"

    def test_missing_secret_fails(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "VIDEOHOOK_STREAM_WEBHOOK_SECRET",
            "VIDEOHOOK_AUTH0_WEBHOOK_SECRET",
            "VIDEOHOOK_STREAM_ACCOUNT_ID",
            "VIDEOHOOK_STREAM_API_TOKEN",
        ):
            monkeypatch.delenv(name, raising=False)
        with pytest.raises(ValidationError):
            VideohookConfig()  # type: ignore[call-arg]
