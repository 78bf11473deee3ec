"""Knowledge Scoper: bucket free-text design rules per container and globally."""

from __future__ import annotations

import re

from pydantic import BaseModel, Field

GLOBAL_SCOPE = "GLOBAL CONTEXT"

# "[HERO] keep the logo top-left" -> scope "HERO"
SCOPE_TAG_PATTERN = re.compile(r"^\s*\[([^\]]+)\]\s*(.*)$")


class KnowledgeScopes(BaseModel):
    """Rules keyed by scope; the global bucket is always present."""

    scopes: dict[str, list[str]] = Field(default_factory=lambda: {GLOBAL_SCOPE: []})
    available_scopes: list[str] = Field(default_factory=lambda: [GLOBAL_SCOPE])

    def rules_for(self, scope: str) -> list[str]:
        return self.scopes.get(scope, [])


def scope_rules(rules: list[str] | str | None, container_names: list[str] | None = None) -> KnowledgeScopes:
    """
    Partition design rules into per-container and global buckets.

    A rule tagged "[NAME] ..." goes to the NAME bucket; when `container_names` is
    given the tag is matched case-insensitively and the container's own spelling is
    used as the key. Untagged rules, and tags naming no known container, go global.
    """
    if rules is None:
        rules = []
    if isinstance(rules, str):
        rules = rules.splitlines()

    known = {name.casefold(): name for name in (container_names or [])}
    scopes: dict[str, list[str]] = {GLOBAL_SCOPE: []}

    for raw in rules:
        line = str(raw).strip()
        if not line:
            continue
        match = SCOPE_TAG_PATTERN.match(line)
        if not match:
            scopes[GLOBAL_SCOPE].append(line)
            continue
        tag, body = match.group(1).strip(), match.group(2).strip()
        if known:
            key = known.get(tag.casefold())
            if key is None:
                scopes[GLOBAL_SCOPE].append(line)
                continue
        else:
            key = tag
        if body:
            scopes.setdefault(key, []).append(body)

    container_scopes = sorted(k for k in scopes if k != GLOBAL_SCOPE)
    return KnowledgeScopes(scopes=scopes, available_scopes=[GLOBAL_SCOPE, *container_scopes])


def format_scope(scope: str, rules: list[str]) -> str:
    """Copy-ready protocol block for one scope; empty string when it has no rules."""
    if not rules:
        return ""
    return f"[{scope} PROTOCOL]\n" + "\n".join(rules)
