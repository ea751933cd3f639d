"""Quick connectivity check for all videohook dependencies."""

import asyncio
import sys

sys.path.insert(0, "src")

from videohook.config import load_config
from videohook.db.redis_client import RedisClient
from videohook.egress.stream_api import StreamAPIClient
from videohook.errors import UpstreamError


async def check() -> None:
    cfg = load_config()

    # Redis
    redis = RedisClient(url=cfg.redis_url)
    await redis.connect()
    redis_ok = await redis.ping()
    print("Redis:     ", "OK" if redis_ok else "FAIL")

    # Caches
    if redis_ok:
        latest = await redis.get_json(redis.key("videos", cfg.catalog_cache_key))
        featured = await redis.get_json(redis.key("videos", cfg.feature_cache_key))
        print("Catalog:   ", f"{len(latest)} videos" if isinstance(latest, list) else "empty")
        print("Featured:  ", f"{len(featured)} videos" if isinstance(featured, list) else "empty")
    await redis.disconnect()

    # Stream API
    stream = StreamAPIClient(
        account_id=cfg.stream_account_id,
        api_token=cfg.stream_api_token,
        api_base=cfg.stream_api_base,
        timeout=cfg.stream_api_timeout,
    )
    try:
        videos = await stream.list_videos(limit=1)
        stream_ok = True
        print("Stream API:", f"OK ({len(videos)} video sampled)")
    except UpstreamError as e:
        stream_ok = False
        print("Stream API:", f"FAIL ({e})")
    finally:
        await stream.close()

    # Config
    print("Feature tag:", repr(cfg.feature_tag))
    print("Actors:    ", f"{cfg.user_actor_url} (jurisdiction={cfg.user_jurisdiction})")
    print("Replay TTL:", cfg.idempotency_ttl_seconds or "none")

    all_ok = redis_ok and stream_ok
    print("\nResult:    ", "ALL SYSTEMS GO" if all_ok else "ISSUES FOUND")


asyncio.run(check())
