# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Metrics & Observability
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Prometheus-style metrics for the activation pipeline.

Usage::

    from worldbook_ai.core.metrics import metrics

    metrics.inc("activations_total")
    metrics.observe("entries_triggered", 12)
    print(metrics.prometheus_format())
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

ENTRY_COUNT_BUCKETS = (0, 1, 5, 10, 25, 50, 100, 250, 500, 1000)
PASS_COUNT_BUCKETS = (0, 1, 2, 3, 5, 8, 10)
ACTIVATION_DURATION_BUCKETS = (0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0)
LORE_CHARS_BUCKETS = (0, 1000, 5000, 10_000, 20_000, 40_000, 60_000, 100_000)
HTTP_DURATION_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
HISTOGRAM_MAX_SAMPLES = 100_000


@dataclass
class _Counter:
    """Monotonically increasing counter."""

    value: float = 0.0
    labels: dict[str, float] = field(default_factory=dict)
    multi_labels: dict[str, float] = field(default_factory=dict)

    def inc(self, amount: float = 1.0, label: str = "") -> None:
        if label:
            self.labels[label] = self.labels.get(label, 0.0) + amount
        else:
            self.value += amount

    def inc_labeled(self, labels: dict[str, str], amount: float = 1.0) -> None:
        key = ",".join(f'{k}="{v}"' for k, v in sorted(labels.items()))
        self.multi_labels[key] = self.multi_labels.get(key, 0.0) + amount

    def total(self) -> float:
        return self.value + sum(self.labels.values()) + sum(self.multi_labels.values())


@dataclass
class _Histogram:
    """Histogram with configurable bucket boundaries."""

    buckets: tuple[float, ...] = (0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
    _values: list[float] = field(default_factory=list)
    max_samples: int = HISTOGRAM_MAX_SAMPLES

    def observe(self, value: float) -> None:
        self._values.append(value)
        if len(self._values) > self.max_samples:
            self._values = self._values[-(self.max_samples // 2) :]

    @property
    def count(self) -> int:
        return len(self._values)

    @property
    def total(self) -> float:
        return sum(self._values) if self._values else 0.0

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0

    def quantile(self, q: float) -> float:
        """Compute quantile (0.0-1.0). Returns 0 if empty."""
        if not self._values:
            return 0.0
        s = sorted(self._values)
        return s[int(q * (len(s) - 1))]

    def bucket_counts(self) -> dict[str, int]:
        """Return cumulative bucket counts."""
        result = {f"le_{b}": sum(1 for v in self._values if v <= b) for b in self.buckets}
        result["le_+Inf"] = len(self._values)
        return result


class MetricsCollector:
    """Thread-safe metrics collector with Prometheus-compatible output."""

    _METRIC_HELP: dict[str, str] = {
        "activations_total": "Lore assembly requests processed",
        "activations_empty": "Requests that produced no lore (by reason)",
        "recursion_cap_hits": "Activations stopped by the pass limit",
        "fetch_failures": "Worldbook fetches that raised",
        "lore_truncated": "Assemblies cut to the character limit",
        "http_requests_total": "HTTP requests by endpoint/status",
        "entries_triggered": "Triggered entries per activation",
        "recursion_passes": "Keyword passes per activation",
        "activation_duration_seconds": "End-to-end assembly latency",
        "lore_chars": "Assembled lore length in characters",
        "http_request_duration_seconds": "HTTP request duration",
        "active_requests": "In-flight assembly requests",
    }

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._lock = threading.Lock()
        self._counters: dict[str, _Counter] = {
            "activations_total": _Counter(),
            "activations_empty": _Counter(),
            "recursion_cap_hits": _Counter(),
            "fetch_failures": _Counter(),
            "lore_truncated": _Counter(),
        }
        self._histograms: dict[str, _Histogram] = {
            "entries_triggered": _Histogram(buckets=ENTRY_COUNT_BUCKETS),
            "recursion_passes": _Histogram(buckets=PASS_COUNT_BUCKETS),
            "activation_duration_seconds": _Histogram(
                buckets=ACTIVATION_DURATION_BUCKETS
            ),
            "lore_chars": _Histogram(buckets=LORE_CHARS_BUCKETS),
            "http_request_duration_seconds": _Histogram(buckets=HTTP_DURATION_BUCKETS),
        }
        self._gauges: dict[str, float] = {"active_requests": 0.0}

    def inc(self, name: str, amount: float = 1.0, label: str = "") -> None:
        """Increment a counter."""
        if not self.enabled:
            return
        with self._lock:
            self._counters.setdefault(name, _Counter()).inc(amount, label)

    def inc_labeled(
        self,
        name: str,
        labels: dict[str, str],
        amount: float = 1.0,
    ) -> None:
        """Increment a counter with an arbitrary label dict."""
        if not self.enabled:
            return
        with self._lock:
            self._counters.setdefault(name, _Counter()).inc_labeled(labels, amount)

    def observe(self, name: str, value: float) -> None:
        """Record a histogram observation."""
        if not self.enabled:
            return
        with self._lock:
            self._histograms.setdefault(name, _Histogram()).observe(value)

    def gauge_inc(self, name: str, amount: float = 1.0) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._gauges[name] = self._gauges.get(name, 0.0) + amount

    def gauge_dec(self, name: str, amount: float = 1.0) -> None:
        self.gauge_inc(name, -amount)

    def timer(self, histogram_name: str) -> _Timer:
        """Context manager that records elapsed time to a histogram."""
        return _Timer(self, histogram_name)

    def get_metrics(self) -> dict:
        """Return all metrics as a plain dict."""
        with self._lock:
            result: dict = {"counters": {}, "histograms": {}, "gauges": {}}
            for name, c in self._counters.items():
                result["counters"][name] = {
                    "total": c.total(),
                    "labels": dict(c.labels),
                    "multi_labels": dict(c.multi_labels),
                }
            for name, h in self._histograms.items():
                result["histograms"][name] = {
                    "count": h.count,
                    "total": h.total,
                    "mean": h.mean,
                    "p50": h.quantile(0.5),
                    "p90": h.quantile(0.9),
                    "p99": h.quantile(0.99),
                }
            result["gauges"] = dict(self._gauges)
            return result

    def prometheus_format(self) -> str:
        """Render metrics in Prometheus text exposition format."""
        lines: list[str] = []
        with self._lock:
            for name, c in self._counters.items():
                fqn = f"worldbook_ai_{name}"
                lines.append(f"# HELP {fqn} {self._METRIC_HELP.get(name, name)}")
                lines.append(f"# TYPE {fqn} counter")
                if c.labels:
                    for label, val in c.labels.items():
                        lines.append(f'{fqn}{{reason="{label}"}} {val}')
                if c.multi_labels:
                    for label_str, val in c.multi_labels.items():
                        lines.append(f"{fqn}{{{label_str}}} {val}")
                if not c.labels and not c.multi_labels:
                    lines.append(f"{fqn} {c.value}")
            for name, h in self._histograms.items():
                fqn = f"worldbook_ai_{name}"
                lines.append(f"# HELP {fqn} {self._METRIC_HELP.get(name, name)}")
                lines.append(f"# TYPE {fqn} histogram")
                for bucket_name, count in h.bucket_counts().items():
                    le = bucket_name.replace("le_", "")
                    lines.append(f'{fqn}_bucket{{le="{le}"}} {count}')
                lines.append(f"{fqn}_count {h.count}")
                lines.append(f"{fqn}_sum {h.total}")
            for name, value in self._gauges.items():
                fqn = f"worldbook_ai_{name}"
                lines.append(f"# HELP {fqn} {self._METRIC_HELP.get(name, name)}")
                lines.append(f"# TYPE {fqn} gauge")
                lines.append(f"{fqn} {value}")
        return "\n".join(lines) + "\n"

    def reset(self) -> None:
        """Reset all metrics (for testing)."""
        with self._lock:
            for c in self._counters.values():
                c.value = 0.0
                c.labels.clear()
                c.multi_labels.clear()
            for h in self._histograms.values():
                h._values.clear()
            for name in self._gauges:
                self._gauges[name] = 0.0


class _Timer:
    """Context manager for timing operations."""

    def __init__(self, collector: MetricsCollector, name: str) -> None:
        self._collector = collector
        self._name = name
        self._start = 0.0

    def __enter__(self) -> _Timer:
        self._start = time.monotonic()
        return self

    def __exit__(self, *args: object) -> None:
        self._collector.observe(self._name, time.monotonic() - self._start)


# Module-level singleton
metrics = MetricsCollector()
