"""
Observability module: structured logging, request/workspace context, metrics.

Usage:
    from headhunter.observability import get_logger, RequestContext, bind_workspace

    logger = get_logger(__name__)
    with RequestContext(), bind_workspace(3):
        logger.info("Snapshot requested")  # carries request_id and workspace_id

Metrics:
    from headhunter.observability import snapshot_builds

    snapshot_builds.inc(result="ok")
"""

from .context import (
    RequestContext,
    bind_workspace,
    context_fields,
    generate_request_id,
    get_request_id,
    get_workspace_id,
    set_request_id,
)
from .logging import (
    CorrelationIdMiddleware,
    HumanFormatter,
    JSONFormatter,
    configure_logging,
    get_logger,
)
from .metrics import (
    REGISTRY,
    Counter,
    Gauge,
    MetricsRegistry,
    Summary,
    repository_load_seconds,
    repository_queries,
    repository_read_seconds,
    snapshot_build_seconds,
    snapshot_builds,
    snapshot_cache_entries,
    snapshot_requests,
    stages_seeded,
    timed,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    "CorrelationIdMiddleware",
    # Context
    "RequestContext",
    "bind_workspace",
    "context_fields",
    "get_request_id",
    "get_workspace_id",
    "set_request_id",
    "generate_request_id",
    # Metrics
    "REGISTRY",
    "MetricsRegistry",
    "Counter",
    "Gauge",
    "Summary",
    "timed",
    "snapshot_requests",
    "snapshot_builds",
    "snapshot_build_seconds",
    "snapshot_cache_entries",
    "repository_queries",
    "repository_load_seconds",
    "repository_read_seconds",
    "stages_seeded",
]
