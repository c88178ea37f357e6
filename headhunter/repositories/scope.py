"""
Workspace soft tags carried in record metadata.

Applications and message threads are not foreign-keyed to a workspace; the
owning workspace rides along in their metadata bag under a handful of
historical key names. The tag is parsed once, at the repository boundary,
into a ScopeTag so the builders never re-derive it.
"""

from collections.abc import Mapping
from dataclasses import dataclass

from headhunter.numbers import parse_int

ID_KEYS = ("headhunterWorkspaceId", "workspaceId")
ID_LIST_KEYS = ("headhunterWorkspaceIds", "workspaceIds")
SLUG_KEYS = ("headhunterWorkspaceSlug", "workspaceSlug")

GLOBAL_SCOPE = "global"
WORKSPACE_SCOPE = "workspace"


@dataclass(frozen=True)
class ScopeTag:
    workspace_ids: tuple[int, ...] = ()
    workspace_slug: str | None = None
    scope: str = GLOBAL_SCOPE

    @property
    def is_global(self) -> bool:
        """No workspace id or slug was tagged."""
        return not self.workspace_ids and not self.workspace_slug

    def matches(self, workspace_id: int, workspace_slug: str | None = None) -> bool:
        if workspace_id in self.workspace_ids:
            return True
        return bool(
            self.workspace_slug
            and workspace_slug
            and self.workspace_slug.lower() == workspace_slug.lower()
        )


def parse_scope_tag(metadata: Mapping | None) -> ScopeTag:
    """Read workspace ids, slug and scope from a metadata bag."""
    if not isinstance(metadata, Mapping):
        return ScopeTag()

    ids: list[int] = []
    for key in ID_KEYS:
        value = parse_int(metadata.get(key))
        if value is not None and value not in ids:
            ids.append(value)
    for key in ID_LIST_KEYS:
        raw = metadata.get(key)
        if isinstance(raw, (list, tuple)):
            for item in raw:
                value = parse_int(item)
                if value is not None and value not in ids:
                    ids.append(value)

    slug = None
    for key in SLUG_KEYS:
        raw = metadata.get(key)
        if isinstance(raw, str) and raw.strip():
            slug = raw.strip()
            break

    raw_scope = metadata.get("scope")
    if isinstance(raw_scope, str) and raw_scope.strip():
        scope = raw_scope.strip().lower()
    else:
        scope = WORKSPACE_SCOPE if ids or slug else GLOBAL_SCOPE

    return ScopeTag(workspace_ids=tuple(ids), workspace_slug=slug, scope=scope)
