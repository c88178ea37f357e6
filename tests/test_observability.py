"""
Tests for logging formatters, request/workspace context and the metrics registry.
"""

import contextvars
import json
import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from headhunter.observability import (
    REGISTRY,
    HumanFormatter,
    JSONFormatter,
    MetricsRegistry,
    RequestContext,
    bind_workspace,
    context_fields,
    get_request_id,
    get_workspace_id,
    timed,
)


def make_record(message="Snapshot built", **extra):
    record = logging.LogRecord(
        name="headhunter.snapshot.generator",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestContext:
    """Tests for RequestContext and bind_workspace."""

    def test_scoped_request_id(self):
        assert get_request_id() is None
        with RequestContext(request_id="req-abc") as ctx:
            assert ctx.request_id == "req-abc"
            assert get_request_id() == "req-abc"
        assert get_request_id() is None

    def test_generated_id(self):
        with RequestContext() as ctx:
            assert ctx.request_id.startswith("req-")
            assert len(ctx.request_id) == 20

    def test_bind_workspace_resets_on_error(self):
        with pytest.raises(RuntimeError):
            with bind_workspace(7):
                assert get_workspace_id() == 7
                raise RuntimeError("build failed")
        assert get_workspace_id() is None

    def test_context_fields_omit_unset(self):
        assert context_fields() == {}
        with RequestContext(request_id="req-x"), bind_workspace(3):
            assert context_fields() == {"request_id": "req-x", "workspace_id": 3}

    def test_copied_context_reaches_worker_threads(self):
        with RequestContext(request_id="req-pool"), bind_workspace(5):
            with ThreadPoolExecutor(max_workers=2) as executor:
                seen = executor.submit(contextvars.copy_context().run, context_fields).result()
        assert seen == {"request_id": "req-pool", "workspace_id": 5}


class TestFormatters:
    """Tests for JSONFormatter and HumanFormatter."""

    def test_json_includes_extras_and_request_id(self):
        record = make_record(lookback_days=30, duration_ms=12.5)
        with RequestContext(request_id="req-json"), bind_workspace(3):
            payload = json.loads(JSONFormatter().format(record))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "headhunter.snapshot.generator"
        assert payload["message"] == "Snapshot built"
        assert payload["request_id"] == "req-json"
        assert payload["workspace_id"] == 3
        assert payload["lookback_days"] == 30
        assert payload["duration_ms"] == 12.5
        assert "lineno" not in payload

    def test_json_without_context(self):
        payload = json.loads(JSONFormatter().format(make_record()))
        assert "request_id" not in payload
        assert "workspace_id" not in payload

    def test_human_format(self):
        with RequestContext(request_id="req-human-123456"):
            line = HumanFormatter().format(make_record())
        assert "[INFO] headhunter.snapshot.generator: [req-human-12] Snapshot built" in line

    def test_human_format_with_workspace(self):
        with bind_workspace(9):
            line = HumanFormatter().format(make_record())
        assert "generator: (ws=9) Snapshot built" in line


class TestMetrics:
    """Tests for the metrics registry."""

    def test_counter_gauge_summary(self):
        registry = MetricsRegistry()
        registry.counter("builds_total", "Builds").inc(2)
        registry.gauge("entries", "Entries").set(4)
        summary = registry.summary("build_seconds", "Durations")
        summary.observe(1.0)
        summary.observe(3.0)

        exported = registry.to_dict()
        assert exported["builds_total"] == {"type": "counter", "value": 2}
        assert exported["entries"] == {"type": "gauge", "value": 4}
        assert exported["build_seconds"]["avg"] == 2.0
        assert exported["build_seconds"]["p50"] == 1.0
        assert exported["build_seconds"]["p95"] == 3.0

        text = registry.to_prometheus()
        assert "# TYPE builds_total counter" in text
        assert "builds_total 2" in text
        assert "# TYPE build_seconds summary" in text
        assert 'build_seconds{quantile="0.95"} 3' in text
        assert "build_seconds_count 2" in text
        assert "build_seconds_sum 4" in text

    def test_labelled_series(self):
        registry = MetricsRegistry()
        builds = registry.counter("builds_total")
        builds.inc(result="ok")
        builds.inc(result="ok")
        builds.inc(result="error")

        assert builds.get(result="ok") == 2
        assert builds.get(result="error") == 1
        assert builds.value == 3

        text = registry.to_prometheus()
        assert 'builds_total{result="error"} 1' in text
        assert 'builds_total{result="ok"} 2' in text

    def test_summary_quantiles_per_label(self):
        reads = MetricsRegistry().summary("read_seconds")
        for value in range(1, 101):
            reads.observe(float(value), read="applications")
        reads.observe(0.5, read="members")

        assert reads.quantile(0.5, read="applications") == 50.0
        assert reads.quantile(0.95, read="applications") == 95.0
        assert reads.quantile(0.5, read="members") == 0.5
        assert reads.quantile(0.5, read="threads") is None
        assert reads.count == 101

    def test_empty_families_still_export(self):
        registry = MetricsRegistry()
        registry.counter("idle_total")
        registry.summary("idle_seconds")
        text = registry.to_prometheus()
        assert "idle_total 0" in text
        assert "idle_seconds_count 0" in text
        assert "quantile" not in text

    def test_counter_rejects_negative(self):
        with pytest.raises(ValueError):
            MetricsRegistry().counter("x").inc(-1)

    def test_registry_returns_same_metric(self):
        registry = MetricsRegistry()
        assert registry.counter("x") is registry.counter("x")

    def test_name_bound_to_one_kind(self):
        registry = MetricsRegistry()
        registry.counter("x")
        with pytest.raises(ValueError):
            registry.gauge("x")

    def test_timed_records_even_on_error(self):
        summary = MetricsRegistry().summary("work_seconds")

        @timed(summary, step="score")
        def work(fail=False):
            if fail:
                raise ValueError("boom")
            return "done"

        assert work() == "done"
        with pytest.raises(ValueError):
            work(fail=True)
        assert summary.count == 2
        assert summary.quantile(0.5, step="score") is not None

    def test_global_snapshot_metrics_registered(self):
        names = set(REGISTRY.to_dict())
        assert {
            "snapshot_requests_total",
            "snapshot_builds_total",
            "snapshot_build_seconds",
            "snapshot_cache_entries",
            "repository_queries_total",
            "repository_load_seconds",
            "repository_read_seconds",
            "pipeline_stages_seeded_total",
        } <= names
