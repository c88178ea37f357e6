"""
DashboardSnapshot - the immutable computed payload.

Sections are deep-frozen on construction (mappings become MappingProxyType,
lists become tuples), so a cached snapshot shared between readers cannot be
mutated by any of them. to_dict() hands out a fresh, JSON-ready copy.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any

from headhunter.numbers import to_iso


def freeze(value: Any) -> Any:
    """Recursively convert dicts to read-only mappings and lists/sets to tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, datetime):
        return to_iso(value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of freeze: plain dicts and lists."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


@dataclass(frozen=True)
class DashboardSnapshot:
    workspace_id: int
    lookback_days: int
    generated_at: datetime
    sections: Mapping[str, Any]

    def __post_init__(self):
        object.__setattr__(self, "sections", freeze(self.sections))

    def __getitem__(self, key: str) -> Any:
        return self.sections[key]

    def __contains__(self, key: object) -> bool:
        return key in self.sections

    def keys(self):
        return self.sections.keys()

    def to_dict(self) -> dict:
        return thaw(self.sections)
