"""
End-to-end tests for HeadhunterSnapshotService over the fixture DB.

Covers:
- Section coverage and workspace scoping (no cross-workspace leakage)
- Default workspace resolution and the network-wide fallback
- Cache TTL, single build per key, invalidation
- NotFoundError for unknown or missing workspaces
"""

import pytest

from headhunter.cache import CacheManager
from headhunter.config import IntelligenceTargets
from headhunter.errors import NotFoundError
from headhunter.observability.metrics import snapshot_builds
from headhunter.snapshot import HeadhunterSnapshotService
from headhunter.snapshot.payload import DashboardSnapshot
from tests.fixtures import NOW, fixture_conn, seed_skyline_scenario, seed_untagged_scenario
from tests.fixtures.factories import FakeClock

SECTIONS = {
    "workspaceSummary",
    "pipelineSummary",
    "pipelineExecution",
    "candidateSpotlight",
    "mandatePortfolio",
    "outreachPerformance",
    "passOnNetwork",
    "clientPartnerships",
    "activityTimeline",
    "calendar",
    "insights",
    "calendarOrchestration",
    "knowledgeBase",
    "wellbeing",
    "prospectIntelligence",
    "meta",
}


@pytest.fixture
def cache_clock():
    return FakeClock()


@pytest.fixture
def service(repository, cache_clock):
    return HeadhunterSnapshotService(
        repository,
        cache=CacheManager(max_size=32, default_ttl=45, clock=cache_clock),
        clock=lambda: NOW,
        targets=IntelligenceTargets(),
        max_workers=4,
    )


@pytest.fixture
def skyline(db_path):
    with fixture_conn(db_path) as conn:
        return seed_skyline_scenario(conn)


class TestSkylineSnapshot:
    """Snapshot contents for the seeded Skyline workspace."""

    def test_all_sections_present(self, service, skyline):
        snapshot = service.get_dashboard_snapshot(skyline["skyline"], 30)
        assert isinstance(snapshot, DashboardSnapshot)
        assert set(snapshot.keys()) == SECTIONS

    def test_pipeline_is_workspace_scoped(self, service, skyline):
        """The Northwind application never reaches Skyline's pipeline."""
        payload = service.get_dashboard_snapshot(skyline["skyline"], 30).to_dict()
        summary = payload["pipelineSummary"]
        assert summary["totals"]["applications"] == 2
        assert summary["totals"]["pipelineValue"] == 120000.0
        stages = {s["stage"]: s["count"] for s in summary["stageBreakdown"]}
        assert stages["interviewing"] == 1
        assert stages["closed"] == 1
        assert sum(stages.values()) == summary["totals"]["applications"]

    def test_pass_on_network(self, service, skyline):
        pass_on = service.get_dashboard_snapshot(skyline["skyline"], 30)["passOnNetwork"]
        assert pass_on["totalCandidates"] == 1
        assert pass_on["openReferrals"] == 1
        assert pass_on["projectedRevenueShare"] == 4500.0
        assert pass_on["candidates"][0]["name"] == "Grace Hopper"

    def test_outreach_excludes_other_workspaces(self, service, skyline):
        outreach = service.get_dashboard_snapshot(skyline["skyline"], 30)["outreachPerformance"]
        assert outreach["campaignCount"] == 1
        assert outreach["totalMessages"] == 2
        assert outreach["averageResponseHours"] == 6.0
        assert [c["channel"] for c in outreach["channels"]] == ["email"]

    def test_client_partnerships(self, service, skyline):
        partnerships = service.get_dashboard_snapshot(skyline["skyline"], 30)["clientPartnerships"]
        assert partnerships["totalClients"] == 1
        invoices = partnerships["commercialOperations"]["invoices"]
        assert invoices["outstanding"] == 5000.0
        assert invoices["overdue"] == 5000.0
        assert invoices["paid"] == 2000.0
        assert partnerships["summary"]["renewalsDueSoon"] == 1

    def test_workspace_summary_and_meta(self, service, skyline):
        snapshot = service.get_dashboard_snapshot(skyline["skyline"], 30)
        summary = snapshot["workspaceSummary"]
        assert summary["name"] == "Skyline Search"
        assert summary["members"] == {"active": 2, "pending": 1, "total": 3}
        meta = snapshot["meta"]
        assert meta["workspaceId"] == skyline["skyline"]
        assert meta["lookbackDays"] == 30
        assert meta["hasWorkspaceScopedData"] is True
        assert meta["fallbackReason"] is None
        assert meta["generatedAt"] == "2024-06-12T15:00:00Z"
        assert [w["name"] for w in meta["selectableWorkspaces"]] == [
            "Northwind Partners",
            "Skyline Search",
        ]

    def test_default_stages_seeded_once(self, service, skyline):
        first = service.get_dashboard_snapshot(skyline["skyline"], 30)
        execution = first["pipelineExecution"]
        assert execution["seededDefaultStages"] is True
        assert execution["totals"]["stages"] == 6

        service.invalidate()
        second = service.get_dashboard_snapshot(skyline["skyline"], 30)
        assert second["pipelineExecution"]["seededDefaultStages"] is False

    def test_default_workspace(self, service, skyline):
        snapshot = service.get_dashboard_snapshot()
        assert snapshot.workspace_id == skyline["skyline"]
        assert snapshot.lookback_days == 30

    def test_lookback_is_clamped(self, service, skyline):
        assert service.get_dashboard_snapshot(skyline["skyline"], 1).lookback_days == 7
        assert service.get_dashboard_snapshot(skyline["skyline"], 365).lookback_days == 120


class TestFallback:
    """Workspaces with no tagged applications."""

    def test_network_wide_fallback(self, service, db_path):
        with fixture_conn(db_path) as conn:
            ids = seed_untagged_scenario(conn)
        snapshot = service.get_dashboard_snapshot(ids["workspace"], 30)
        meta = snapshot["meta"]
        assert meta["hasWorkspaceScopedData"] is False
        assert "network-wide" in meta["fallbackReason"]
        assert snapshot["pipelineSummary"]["totals"]["applications"] == 2


class TestCaching:
    """Cache behaviour of the service."""

    def test_same_snapshot_within_ttl(self, service, skyline, cache_clock):
        first = service.get_dashboard_snapshot(skyline["skyline"], 30)
        cache_clock.advance(44)
        assert service.get_dashboard_snapshot(skyline["skyline"], 30) is first

    def test_rebuilt_after_ttl(self, service, skyline, cache_clock):
        first = service.get_dashboard_snapshot(skyline["skyline"], 30)
        cache_clock.advance(46)
        assert service.get_dashboard_snapshot(skyline["skyline"], 30) is not first

    def test_keys_include_lookback(self, service, skyline):
        thirty = service.get_dashboard_snapshot(skyline["skyline"], 30)
        fourteen = service.get_dashboard_snapshot(skyline["skyline"], 14)
        assert thirty is not fourteen
        assert service.cache_key(skyline["skyline"], 14) != service.cache_key(skyline["skyline"], 30)

    def test_one_build_per_key(self, service, skyline):
        before = snapshot_builds.get(result="ok")
        for _ in range(3):
            service.get_dashboard_snapshot(skyline["skyline"], 30)
        assert snapshot_builds.get(result="ok") == before + 1

    def test_invalidate_workspace(self, service, skyline):
        first = service.get_dashboard_snapshot(skyline["skyline"], 30)
        service.get_dashboard_snapshot(skyline["northwind"], 30)
        assert service.invalidate(skyline["skyline"]) == 1
        assert service.get_dashboard_snapshot(skyline["skyline"], 30) is not first


class TestNotFound:
    """Unknown or missing workspaces."""

    def test_unknown_workspace(self, service, skyline):
        with pytest.raises(NotFoundError):
            service.get_dashboard_snapshot(99999, 30)

    def test_empty_database(self, service):
        with pytest.raises(NotFoundError):
            service.get_dashboard_snapshot()

    def test_not_found_is_not_cached(self, service, skyline):
        with pytest.raises(NotFoundError):
            service.get_dashboard_snapshot(99999, 30)
        assert service.cache.stats().size == 0
