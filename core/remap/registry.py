"""Shared results registry: node id -> slot handle -> TransformedPayload."""

from __future__ import annotations

import logging
from typing import Any

from core.remap.schemas import TransformedPayload

log = logging.getLogger(__name__)


def result_handle(index: int) -> str:
    return f"result-out-{index}"


class PayloadRegistry:
    """Holds the latest payload snapshot per slot. Entries are replaced, never patched in place."""

    def __init__(self) -> None:
        self._payloads: dict[str, dict[str, TransformedPayload]] = {}

    def register(self, node_id: str, handle: str, payload: TransformedPayload) -> None:
        self._payloads.setdefault(node_id, {})[handle] = payload

    def get(self, node_id: str, handle: str) -> TransformedPayload | None:
        return self._payloads.get(node_id, {}).get(handle)

    def update(self, node_id: str, handle: str, **fields: Any) -> TransformedPayload | None:
        """Replace the slot's payload with a copy carrying `fields`; None when the slot is empty."""
        current = self.get(node_id, handle)
        if current is None:
            log.debug("Registry update skipped: %s/%s has no payload", node_id, handle)
            return None
        updated = current.model_copy(update=fields)
        self._payloads[node_id][handle] = updated
        return updated

    def node_payloads(self, node_id: str) -> dict[str, TransformedPayload]:
        return dict(self._payloads.get(node_id, {}))

    def unregister_node(self, node_id: str) -> None:
        self._payloads.pop(node_id, None)
