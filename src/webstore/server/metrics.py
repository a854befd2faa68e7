"""Prometheus metrics for the webstore server."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional


class _Counter:
    """Simple counter metric."""

    def __init__(self, name: str, help_text: str, labels: Optional[List[str]] = None):
        self.name = name
        self.help_text = help_text
        self.labels = labels or []
        self._values: Dict[tuple, float] = defaultdict(float)

    def inc(self, amount: float = 1.0, **kwargs: str) -> None:
        key = tuple(kwargs.get(l, "") for l in self.labels)
        self._values[key] += amount

    def value(self, **kwargs: str) -> float:
        return self._values.get(tuple(kwargs.get(l, "") for l in self.labels), 0.0)

    def collect(self) -> str:
        lines = [f"# HELP {self.name} {self.help_text}", f"# TYPE {self.name} counter"]
        for key, val in sorted(self._values.items()):
            lines.append(f"{self.name}{_label_str(self.labels, key)} {val}")
        return "\n".join(lines)


class _Histogram:
    """Simple histogram metric with cumulative buckets, sum and count."""

    DEFAULT_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf"))

    def __init__(self, name: str, help_text: str, labels: Optional[List[str]] = None,
                 buckets: Optional[tuple] = None):
        self.name = name
        self.help_text = help_text
        self.labels = labels or []
        self.buckets = buckets or self.DEFAULT_BUCKETS
        self._observations: Dict[tuple, List[float]] = defaultdict(list)

    def observe(self, value: float, **kwargs: str) -> None:
        key = tuple(kwargs.get(l, "") for l in self.labels)
        self._observations[key].append(value)

    def collect(self) -> str:
        lines = [f"# HELP {self.name} {self.help_text}", f"# TYPE {self.name} histogram"]
        for key, values in sorted(self._observations.items()):
            pairs = [f'{l}="{v}"' for l, v in zip(self.labels, key)]
            for b in self.buckets:
                count = sum(1 for v in values if v <= b)
                le = "+Inf" if b == float("inf") else str(b)
                label_str = ",".join(pairs + [f'le="{le}"'])
                lines.append(f"{self.name}_bucket{{{label_str}}} {count}")
            suffix = _label_str(self.labels, key)
            lines.append(f"{self.name}_sum{suffix} {sum(values)}")
            lines.append(f"{self.name}_count{suffix} {len(values)}")
        return "\n".join(lines)


def _label_str(labels: List[str], key: tuple) -> str:
    if not labels:
        return ""
    return "{" + ",".join(f'{l}="{v}"' for l, v in zip(labels, key)) + "}"


# ── Business Metrics ───────────────────────────────────────────────

lessons_created_total = _Counter("webstore_lessons_created_total", "Total lessons created")
orders_placed_total = _Counter("webstore_orders_placed_total", "Total orders placed")
orders_rejected_total = _Counter(
    "webstore_orders_rejected_total", "Orders rejected before storage", ["reason"]
)
storage_errors_total = _Counter(
    "webstore_storage_errors_total", "Storage calls that failed or timed out", ["operation"]
)

# ── HTTP RED Metrics ───────────────────────────────────────────────

http_requests_total = _Counter("http_requests_total", "Total HTTP requests", ["method", "path", "status"])
http_request_duration = _Histogram("http_request_duration_seconds", "HTTP request duration", ["method", "path"])

# ── Registry ───────────────────────────────────────────────────────

ALL_METRICS = [
    lessons_created_total,
    orders_placed_total,
    orders_rejected_total,
    storage_errors_total,
    http_requests_total,
    http_request_duration,
]


def collect_all() -> str:
    """Collect all metrics in Prometheus text format."""
    return "\n\n".join(m.collect() for m in ALL_METRICS) + "\n"
