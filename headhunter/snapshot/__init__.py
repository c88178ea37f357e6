"""
Dashboard snapshot builders and orchestrator.

Each module builds one section from already-loaded DTOs; generator.py
loads the DTOs, runs the builders and caches the frozen result.
"""

from .execution import DEFAULT_PIPELINE_STAGES, PipelineExecutionEngine
from .generator import HeadhunterSnapshotService
from .payload import DashboardSnapshot

__all__ = [
    "DEFAULT_PIPELINE_STAGES",
    "DashboardSnapshot",
    "HeadhunterSnapshotService",
    "PipelineExecutionEngine",
]
