"""
Repository layer: typed, read-only DTOs over the headhunter database.

Usage:
    from headhunter.repositories import SnapshotRepository

    repo = SnapshotRepository()
    workspace = repo.find_default_workspace()
"""

from .models import StageTemplate
from .schema import SCHEMA_SQL, apply_schema
from .scope import ScopeTag, parse_scope_tag
from .store import SnapshotRepository

__all__ = [
    "SnapshotRepository",
    "StageTemplate",
    "ScopeTag",
    "parse_scope_tag",
    "SCHEMA_SQL",
    "apply_schema",
]
