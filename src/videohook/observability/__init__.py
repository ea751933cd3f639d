"""Prometheus-compatible metrics for videohook.

Exposes webhook and cache metrics in Prometheus text format at /metrics.

Metrics exposed:
  videohook_webhooks_total{route,outcome} — Counter of webhook outcomes
  videohook_catalog_updates_total{mode} — Catalog cache updates (prepend/rehydrate/skipped/error)
  videohook_feature_refreshes_total{result} — Feature cache refreshes
  videohook_users_provisioned_total{result} — First-login forwards to storage actors
  videohook_webhook_latency_ms — Histogram of webhook handling time
  videohook_uptime_seconds — Server uptime gauge
"""

from __future__ import annotations

import threading
import time
from typing import Any

_LATENCY_BUCKETS = ["5", "10", "25", "50", "100", "250", "500", "1000"]


class MetricsCollector:
    """Thread-safe Prometheus metrics collector.

    Uses simple counters and gauges — no external dependency needed.
    Output format: Prometheus text exposition format (v0.0.4).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._start_time = time.time()

        # Counters
        self._webhooks: dict[tuple[str, str], int] = {}
        self._catalog_updates: dict[str, int] = {
            "prepend": 0, "rehydrate": 0, "skipped": 0, "error": 0,
        }
        self._feature_refreshes: dict[str, int] = {"refreshed": 0, "skipped": 0, "error": 0}
        self._users_provisioned: dict[str, int] = {"forwarded": 0, "failed": 0}

        # Histogram (simplified — sum, count, and per-bucket hits)
        self._latency_sum: float = 0.0
        self._latency_count: int = 0
        self._latency_buckets: dict[str, int] = {b: 0 for b in _LATENCY_BUCKETS}

    # ================================================================
    # Record Methods
    # ================================================================

    def record_webhook(self, route: str, outcome: str, elapsed_ms: float | None = None) -> None:
        """Record one webhook delivery and how it ended."""
        with self._lock:
            key = (route, outcome)
            self._webhooks[key] = self._webhooks.get(key, 0) + 1

            if elapsed_ms is not None:
                self._latency_sum += elapsed_ms
                self._latency_count += 1
                for bucket in _LATENCY_BUCKETS:
                    if elapsed_ms <= int(bucket):
                        self._latency_buckets[bucket] += 1
                        break

    def record_catalog_update(self, mode: str) -> None:
        with self._lock:
            self._catalog_updates[mode] = self._catalog_updates.get(mode, 0) + 1

    def record_feature_refresh(self, result: str) -> None:
        with self._lock:
            self._feature_refreshes[result] = self._feature_refreshes.get(result, 0) + 1

    def record_user_provisioned(self, success: bool) -> None:
        with self._lock:
            key = "forwarded" if success else "failed"
            self._users_provisioned[key] += 1

    # ================================================================
    # Prometheus Text Format Output
    # ================================================================

    def render(self) -> str:
        """Render all metrics in Prometheus text exposition format."""
        with self._lock:
            lines: list[str] = []

            lines.append("# HELP videohook_webhooks_total Webhook deliveries by route and outcome")
            lines.append("# TYPE videohook_webhooks_total counter")
            for (route, outcome), count in sorted(self._webhooks.items()):
                lines.append(
                    f'videohook_webhooks_total{{route="{route}",outcome="{outcome}"}} {count}'
                )

            lines.append("# HELP videohook_catalog_updates_total Catalog cache updates by mode")
            lines.append("# TYPE videohook_catalog_updates_total counter")
            for mode, count in sorted(self._catalog_updates.items()):
                lines.append(f'videohook_catalog_updates_total{{mode="{mode}"}} {count}')

            lines.append("# HELP videohook_feature_refreshes_total Feature cache refresh results")
            lines.append("# TYPE videohook_feature_refreshes_total counter")
            for result, count in sorted(self._feature_refreshes.items()):
                lines.append(f'videohook_feature_refreshes_total{{result="{result}"}} {count}')

            lines.append("# HELP videohook_users_provisioned_total First-login forwards to user actors")
            lines.append("# TYPE videohook_users_provisioned_total counter")
            for result, count in sorted(self._users_provisioned.items()):
                lines.append(f'videohook_users_provisioned_total{{result="{result}"}} {count}')

            lines.append("# HELP videohook_webhook_latency_ms Webhook handling latency in ms")
            lines.append("# TYPE videohook_webhook_latency_ms histogram")
            cumulative = 0
            for bucket in _LATENCY_BUCKETS:
                cumulative += self._latency_buckets[bucket]
                lines.append(f'videohook_webhook_latency_ms_bucket{{le="{bucket}"}} {cumulative}')
            lines.append(f'videohook_webhook_latency_ms_bucket{{le="+Inf"}} {self._latency_count}')
            lines.append(f"videohook_webhook_latency_ms_sum {self._latency_sum}")
            lines.append(f"videohook_webhook_latency_ms_count {self._latency_count}")

            lines.append("# HELP videohook_uptime_seconds Server uptime in seconds")
            lines.append("# TYPE videohook_uptime_seconds gauge")
            lines.append(f"videohook_uptime_seconds {int(time.time() - self._start_time)}")

            return "\n".join(lines) + "\n"

    def snapshot(self) -> dict[str, Any]:
        """Return metrics as a dict (for JSON API)."""
        with self._lock:
            return {
                "webhooks": {f"{route}|{outcome}": n for (route, outcome), n in self._webhooks.items()},
                "catalog_updates": dict(self._catalog_updates),
                "feature_refreshes": dict(self._feature_refreshes),
                "users_provisioned": dict(self._users_provisioned),
                "latency": {
                    "sum_ms": self._latency_sum,
                    "count": self._latency_count,
                    "avg_ms": round(self._latency_sum / self._latency_count, 1) if self._latency_count else 0,
                },
                "uptime_seconds": int(time.time() - self._start_time),
            }


# Global singleton
metrics = MetricsCollector()
