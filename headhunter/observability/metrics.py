"""
In-process metrics for the snapshot service.

Every metric is a family of series keyed by label values, so one counter can
track builds by result and one summary can time each repository read. The
registry renders Prometheus text for GET /api/metrics. Summaries keep a
bounded window of recent observations and report p50/p95 over that window;
their _count and _sum are cumulative.
"""

import functools
import math
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

LabelKey = tuple[tuple[str, str], ...]

QUANTILES = (0.5, 0.95)
SUMMARY_WINDOW = 1024


def _label_key(labels: dict) -> LabelKey:
    return tuple(sorted((name, str(value)) for name, value in labels.items()))


def _render_labels(key: LabelKey) -> str:
    if not key:
        return ""
    body = ",".join(f'{name}="{value}"' for name, value in key)
    return "{" + body + "}"


def _nearest_rank(ordered: list[float], q: float) -> float:
    rank = max(1, math.ceil(q * len(ordered) - 1e-9))
    return ordered[rank - 1]


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


@dataclass
class Counter:
    """Monotonic counter; inc(result="ok") and inc() address different series."""

    name: str
    description: str = ""
    _series: dict[LabelKey, int] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    kind = "counter"

    def inc(self, amount: int = 1, **labels) -> None:
        if amount < 0:
            raise ValueError(f"{self.name}: counters only go up (got {amount})")
        key = _label_key(labels)
        with self._lock:
            self._series[key] = self._series.get(key, 0) + amount

    def get(self, **labels) -> int:
        with self._lock:
            return self._series.get(_label_key(labels), 0)

    @property
    def value(self) -> int:
        """Total over every label set."""
        with self._lock:
            return sum(self._series.values())

    def samples(self) -> list[tuple[str, LabelKey, float]]:
        with self._lock:
            series = sorted(self._series.items()) or [((), 0)]
        return [(self.name, key, value) for key, value in series]


@dataclass
class Gauge:
    """Point-in-time value per label set."""

    name: str
    description: str = ""
    _series: dict[LabelKey, float] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    kind = "gauge"

    def set(self, value: float, **labels) -> None:
        with self._lock:
            self._series[_label_key(labels)] = value

    def get(self, **labels) -> float:
        with self._lock:
            return self._series.get(_label_key(labels), 0)

    @property
    def value(self) -> float:
        """The unlabelled series."""
        return self.get()

    def samples(self) -> list[tuple[str, LabelKey, float]]:
        with self._lock:
            series = sorted(self._series.items()) or [((), 0)]
        return [(self.name, key, value) for key, value in series]


@dataclass
class _SummarySeries:
    window: deque = field(default_factory=lambda: deque(maxlen=SUMMARY_WINDOW))
    count: int = 0
    total: float = 0.0


@dataclass
class Summary:
    """Timing summary with windowed quantiles."""

    name: str
    description: str = ""
    _series: dict[LabelKey, _SummarySeries] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    kind = "summary"

    def observe(self, value: float, **labels) -> None:
        key = _label_key(labels)
        with self._lock:
            series = self._series.setdefault(key, _SummarySeries())
            series.window.append(value)
            series.count += 1
            series.total += value

    def quantile(self, q: float, **labels) -> float | None:
        """Nearest-rank quantile over the recent window, None when empty."""
        with self._lock:
            series = self._series.get(_label_key(labels))
            ordered = sorted(series.window) if series else []
        if not ordered:
            return None
        return _nearest_rank(ordered, q)

    @property
    def count(self) -> int:
        with self._lock:
            return sum(s.count for s in self._series.values())

    @property
    def sum(self) -> float:
        with self._lock:
            return sum(s.total for s in self._series.values())

    @property
    def avg(self) -> float:
        with self._lock:
            count = sum(s.count for s in self._series.values())
            total = sum(s.total for s in self._series.values())
        return total / count if count else 0.0

    def samples(self) -> list[tuple[str, LabelKey, float]]:
        with self._lock:
            snapshot = [
                (key, sorted(s.window), s.count, s.total) for key, s in sorted(self._series.items())
            ]
        if not snapshot:
            snapshot = [((), [], 0, 0.0)]

        rows: list[tuple[str, LabelKey, float]] = []
        for key, ordered, count, total in snapshot:
            for q in QUANTILES:
                if ordered:
                    quantile_key = tuple(sorted((*key, ("quantile", str(q)))))
                    rows.append((self.name, quantile_key, _nearest_rank(ordered, q)))
            rows.append((f"{self.name}_count", key, count))
            rows.append((f"{self.name}_sum", key, total))
        return rows


Metric = Counter | Gauge | Summary


class MetricsRegistry:
    """Named metric families; asking twice for a name returns the same object."""

    def __init__(self) -> None:
        self._metrics: dict[str, Metric] = {}
        self._lock = threading.Lock()

    def _get_or_create(self, cls: type, name: str, description: str) -> Metric:
        with self._lock:
            existing = self._metrics.get(name)
            if existing is None:
                existing = self._metrics[name] = cls(name, description)
            elif not isinstance(existing, cls):
                raise ValueError(f"metric {name!r} is already registered as a {existing.kind}")
            return existing

    def counter(self, name: str, description: str = "") -> Counter:
        return self._get_or_create(Counter, name, description)

    def gauge(self, name: str, description: str = "") -> Gauge:
        return self._get_or_create(Gauge, name, description)

    def summary(self, name: str, description: str = "") -> Summary:
        return self._get_or_create(Summary, name, description)

    def _families(self) -> list[Metric]:
        with self._lock:
            return [self._metrics[name] for name in sorted(self._metrics)]

    def to_prometheus(self) -> str:
        """Prometheus text exposition format (0.0.4)."""
        lines: list[str] = []
        for metric in self._families():
            if metric.description:
                lines.append(f"# HELP {metric.name} {metric.description}")
            lines.append(f"# TYPE {metric.name} {metric.kind}")
            for sample_name, key, value in metric.samples():
                lines.append(f"{sample_name}{_render_labels(key)} {_format_number(value)}")
        return "\n".join(lines) + "\n"

    def to_dict(self) -> dict[str, dict]:
        """JSON view: totals per family, plus p50/p95 of unlabelled summaries."""
        result: dict[str, dict] = {}
        for metric in self._families():
            if isinstance(metric, Summary):
                result[metric.name] = {
                    "type": "summary",
                    "count": metric.count,
                    "sum": metric.sum,
                    "avg": metric.avg,
                    "p50": metric.quantile(0.5),
                    "p95": metric.quantile(0.95),
                }
            else:
                result[metric.name] = {"type": metric.kind, "value": metric.value}
        return result


REGISTRY = MetricsRegistry()

snapshot_requests = REGISTRY.counter("snapshot_requests_total", "Dashboard snapshot requests")
snapshot_builds = REGISTRY.counter(
    "snapshot_builds_total", "Snapshot builds on cache miss, by result (ok|error)"
)
snapshot_build_seconds = REGISTRY.summary("snapshot_build_seconds", "Snapshot build duration")
snapshot_cache_entries = REGISTRY.gauge("snapshot_cache_entries", "Snapshots held in cache")
repository_queries = REGISTRY.counter("repository_queries_total", "Repository SQL queries")
repository_load_seconds = REGISTRY.summary(
    "repository_load_seconds", "Repository fan-out duration per snapshot build"
)
repository_read_seconds = REGISTRY.summary(
    "repository_read_seconds", "Duration of each fanned-out repository read, by read"
)
stages_seeded = REGISTRY.counter("pipeline_stages_seeded_total", "Default pipeline stages inserted")


def timed(summary: Summary, **labels) -> Callable:
    """Decorator observing the wrapped call's wall time, failures included."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                summary.observe(time.perf_counter() - start, **labels)

        return wrapper

    return decorator
