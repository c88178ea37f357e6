"""
Headhunter Snapshot Generator - the dashboard snapshot orchestrator.

Single entry point the dashboard consumes:

    service = HeadhunterSnapshotService(SnapshotRepository())
    snapshot = service.get_dashboard_snapshot(workspace_id=3, lookback_days=30)

Build flow:
1. Clamp the lookback window and resolve the workspace (before the cache, so
   an unknown workspace is never cached).
2. Go through the cache: one build per (workspace, lookback) key per TTL,
   single-flight across concurrent callers.
3. Fan independent repository reads out across a thread pool, then the
   reads that depend on the loaded applications (reviews, projects,
   candidates).
4. Run the pure builders single-threaded over the fetched DTOs and freeze
   the result into a DashboardSnapshot.

Repository errors propagate; builders degrade bad records to neutral values.
"""

import contextvars
import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any

from headhunter import config
from headhunter.cache import CacheManager, build_cache_key
from headhunter.config import IntelligenceTargets, load_intelligence_targets
from headhunter.observability.context import bind_workspace
from headhunter.observability.metrics import (
    repository_load_seconds,
    repository_read_seconds,
    snapshot_build_seconds,
    snapshot_builds,
    snapshot_cache_entries,
    snapshot_requests,
    timed,
)
from headhunter.repositories import SnapshotRepository
from headhunter.repositories.models import Workspace

from .execution import PipelineExecutionEngine, build_pipeline_execution
from .intelligence import build_intelligence_hub
from .knowledge import build_knowledge_base
from .mandates import build_mandate_portfolio
from .orchestration import build_calendar, build_calendar_orchestration
from .outreach import build_outreach_performance
from .partnerships import build_client_partnerships
from .pass_on import build_pass_on_network
from .payload import DashboardSnapshot
from .pipeline import (
    build_activity_timeline,
    build_candidate_spotlight,
    build_pipeline_summary,
)
from .prospects import build_prospect_intelligence
from .wellbeing import build_wellbeing
from .workspace import (
    build_workspace_summary,
    clamp_lookback,
    resolve_workspace,
    scope_applications,
    selectable_workspaces,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HeadhunterSnapshotService:
    """
    Builds and caches dashboard snapshots.

    Args:
        repository: read accessors; defaults to the SQLite repository at paths.db_path().
        cache: shared CacheManager; defaults to a private one sized from config.
        clock: returns the aware "now" used by every derivation in a build.
        targets: intelligence hub coefficients; defaults to the YAML config.
        max_workers: repository fan-out width.
    """

    def __init__(
        self,
        repository: SnapshotRepository | None = None,
        cache: CacheManager | None = None,
        clock: Callable[[], datetime] | None = None,
        targets: IntelligenceTargets | None = None,
        max_workers: int | None = None,
    ):
        self.repository = repository or SnapshotRepository()
        self.cache = cache or CacheManager(
            max_size=config.CACHE_MAX_ENTRIES, default_ttl=config.SNAPSHOT_CACHE_TTL_SECONDS
        )
        self.clock = clock or _utcnow
        self.targets = targets or load_intelligence_targets()
        self.max_workers = max_workers or config.REPOSITORY_FANOUT_WORKERS
        self.ttl_seconds = config.SNAPSHOT_CACHE_TTL_SECONDS
        self.execution = PipelineExecutionEngine(self.repository)

    # ==================================================================
    # Public API
    # ==================================================================

    def get_dashboard_snapshot(self, workspace_id=None, lookback_days=None) -> DashboardSnapshot:
        """
        Cached dashboard snapshot for a workspace and lookback window.

        Raises:
            NotFoundError: the workspace (or an eligible default) does not exist.
        """
        snapshot_requests.inc()
        lookback = clamp_lookback(lookback_days)
        workspace = resolve_workspace(self.repository, workspace_id)
        key = self.cache_key(workspace.id, lookback)
        snapshot = self.cache.remember(
            key, self.ttl_seconds, lambda: self._build(workspace, lookback)
        )
        snapshot_cache_entries.set(self.cache.stats().size)
        return snapshot

    @staticmethod
    def cache_key(workspace_id: int, lookback_days: int) -> str:
        return build_cache_key(
            config.SNAPSHOT_CACHE_NAMESPACE, workspace=workspace_id, lookbackDays=lookback_days
        )

    def invalidate(self, workspace_id: int | None = None) -> int:
        """Drop cached snapshots for one workspace, or all of them."""
        if workspace_id is None:
            return self.cache.invalidate_pattern(f"{config.SNAPSHOT_CACHE_NAMESPACE}:*")
        return self.cache.invalidate_pattern(
            f"{config.SNAPSHOT_CACHE_NAMESPACE}:*:workspace={workspace_id}"
        )

    # ==================================================================
    # Build
    # ==================================================================

    def _fan_out(self, tasks: dict[str, Callable[[], Any]]) -> dict[str, Any]:
        """
        Run independent reads concurrently; the first failure is re-raised.

        Each read runs in its own copy of the caller's context so its log
        records keep the request and workspace ids.
        """
        with ThreadPoolExecutor(max_workers=max(1, min(self.max_workers, len(tasks)))) as executor:
            futures = {
                name: executor.submit(
                    contextvars.copy_context().run, timed(repository_read_seconds, read=name)(task)
                )
                for name, task in tasks.items()
            }
            return {name: future.result() for name, future in futures.items()}

    @timed(repository_load_seconds)
    def _load(self, workspace: Workspace, since: datetime) -> dict[str, Any]:
        repo = self.repository
        wid = workspace.id
        data = self._fan_out(
            {
                "applications": lambda: repo.list_applications(config.APPLICATION_QUERY_LIMIT),
                "threads": lambda: repo.list_message_threads(since),
                "members": lambda: repo.list_members(wid),
                "contact_notes": lambda: repo.list_contact_notes(wid),
                "pipeline": lambda: self.execution.load(wid),
                "windows": lambda: repo.list_availability_windows(wid),
                "wellbeing_logs": lambda: repo.list_wellbeing_logs(wid, since),
                "articles": lambda: repo.list_knowledge_articles(wid),
                "engagements": lambda: repo.list_client_engagements(wid),
                "issue_cases": lambda: repo.list_issue_cases(wid),
                "profiles": lambda: repo.list_prospect_profiles(wid),
                "searches": lambda: repo.list_prospect_searches(wid),
                "campaigns": lambda: repo.list_prospect_campaigns(wid),
                "research_notes": lambda: repo.list_research_notes(wid),
                "research_tasks": lambda: repo.list_research_tasks(wid),
                "selectable": repo.list_selectable_workspaces,
            }
        )

        applications, scoped, fallback_reason = scope_applications(data["applications"], workspace)
        project_ids = [
            a.target_id
            for a in applications
            if (a.target_type or "").lower() == "project" and a.target_id is not None
        ]
        dependent = self._fan_out(
            {
                "reviews": lambda: repo.list_reviews([a.id for a in applications]),
                "projects": lambda: repo.list_projects(project_ids),
                "candidates": lambda: repo.list_candidates([a.applicant_id for a in applications]),
            }
        )

        data.update(dependent)
        data["applications"] = applications
        data["has_scoped_data"] = scoped
        data["fallback_reason"] = fallback_reason
        return data

    def _build(self, workspace: Workspace, lookback_days: int) -> DashboardSnapshot:
        started = time.perf_counter()
        try:
            with bind_workspace(workspace.id):
                snapshot = self._compose(workspace, lookback_days)
        except Exception:
            snapshot_builds.inc(result="error")
            raise
        duration = time.perf_counter() - started
        snapshot_builds.inc(result="ok")
        snapshot_build_seconds.observe(duration)
        logger.info(
            "Snapshot built",
            extra={
                "workspace_id": workspace.id,
                "lookback_days": lookback_days,
                "duration_ms": round(duration * 1000, 1),
            },
        )
        return snapshot

    def _compose(self, workspace: Workspace, lookback_days: int) -> DashboardSnapshot:
        now = self.clock()
        since = now - timedelta(days=lookback_days)
        data = self._load(workspace, since)

        applications = data["applications"]
        candidates = {c.id: c for c in data["candidates"]}
        stages, items, seeded = data["pipeline"]
        stage_names = {s.id: s.name for s in stages}
        engagements = data["engagements"]

        pipeline_summary = build_pipeline_summary(applications, data["reviews"], now)
        mandate_portfolio = build_mandate_portfolio(applications, data["projects"], now)
        outreach = build_outreach_performance(data["threads"], workspace, since)
        pass_on = build_pass_on_network(applications, candidates)
        wellbeing = build_wellbeing(
            data["wellbeing_logs"], applications, data["members"], data["windows"], now
        )
        insights = build_intelligence_hub(
            pipeline_summary, mandate_portfolio, outreach, lookback_days, now, self.targets
        )

        sections = {
            "workspaceSummary": build_workspace_summary(
                workspace, data["members"], pipeline_summary, insights, outreach, pass_on, wellbeing
            ),
            "pipelineSummary": pipeline_summary,
            "pipelineExecution": build_pipeline_execution(stages, items, now, seeded),
            "candidateSpotlight": build_candidate_spotlight(applications, candidates),
            "mandatePortfolio": mandate_portfolio,
            "outreachPerformance": outreach,
            "passOnNetwork": pass_on,
            "clientPartnerships": build_client_partnerships(engagements, data["issue_cases"], now),
            "activityTimeline": build_activity_timeline(
                pipeline_summary["recentActivity"], data["contact_notes"], items
            ),
            "calendar": build_calendar(items, engagements, stage_names, now),
            "insights": insights,
            "calendarOrchestration": build_calendar_orchestration(
                workspace, data["windows"], items, engagements, data["members"], now
            ),
            "knowledgeBase": build_knowledge_base(data["articles"], now),
            "wellbeing": wellbeing,
            "prospectIntelligence": build_prospect_intelligence(
                data["profiles"],
                data["searches"],
                data["campaigns"],
                data["research_notes"],
                data["research_tasks"],
                now,
            ),
            "meta": {
                "generatedAt": now,
                "workspaceId": workspace.id,
                "lookbackDays": lookback_days,
                "hasWorkspaceScopedData": data["has_scoped_data"],
                "fallbackReason": data["fallback_reason"],
                "selectableWorkspaces": selectable_workspaces(data["selectable"]),
            },
        }
        return DashboardSnapshot(
            workspace_id=workspace.id,
            lookback_days=lookback_days,
            generated_at=now,
            sections=sections,
        )
