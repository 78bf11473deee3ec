"""Remapper node: many remapping instances sharing generation switches and a results registry."""

from __future__ import annotations

import logging
import time

from pydantic import BaseModel

from core.remap.confirmation import ConfirmationMachine
from core.remap.geometry import GeometryError
from core.remap.payload import InstanceInput, build_payload
from core.remap.registry import PayloadRegistry, result_handle
from core.remap.schemas import TransformedPayload
from core.remap.settings import RemapSettings, load_remap_settings
from core.strategy.merger import overrides_fingerprint

log = logging.getLogger(__name__)


class InstanceResult(BaseModel):
    """Outcome of one instance; an error never blocks the other instances."""

    index: int
    payload: TransformedPayload | None = None
    strategy_used: bool = False
    error: str | None = None


class RemapperNode:
    """
    Owns the per-instance state that survives recomputation:

    - the master and per-instance generation switches,
    - one ConfirmationMachine per instance,
    - the last seen feedback fingerprint and live prompt per instance,
    - transient display previews delivered by the image generator.

    Everything else is recomputed from the inputs by compute().
    """

    def __init__(
        self,
        node_id: str,
        *,
        instance_count: int | None = None,
        settings: RemapSettings | None = None,
        registry: PayloadRegistry | None = None,
    ) -> None:
        self.node_id = node_id
        self.settings = settings or load_remap_settings()
        self.instance_count = instance_count or self.settings.instance_count
        self.registry = registry if registry is not None else PayloadRegistry()
        self.generation_allowed = True
        self.instance_settings: dict[int, bool] = {}
        self.display_previews: dict[int, str] = {}
        self._machines: dict[int, ConfirmationMachine] = {}
        self._feedback_fingerprints: dict[int, str] = {}
        self._live_prompts: dict[int, str | None] = {}

    def add_instance(self) -> int:
        self.instance_count += 1
        return self.instance_count - 1

    def machine(self, index: int) -> ConfirmationMachine:
        if index not in self._machines:
            self._machines[index] = ConfirmationMachine(
                distortion_threshold=self.settings.distortion_threshold,
                mandatory_directive=self.settings.mandatory_directive,
            )
        return self._machines[index]

    def instance_generation_allowed(self, index: int) -> bool:
        return self.generation_allowed and self.instance_settings.get(index, True)

    def toggle_master_generation(self) -> bool:
        """Flip the master switch and copy it onto every instance; off clears every confirmation."""
        self.generation_allowed = not self.generation_allowed
        for index in range(self.instance_count):
            self.instance_settings[index] = self.generation_allowed
        if not self.generation_allowed:
            self.clear_confirmations()
        log.info("Remapper %s: generation %s", self.node_id, "enabled" if self.generation_allowed else "muted")
        return self.generation_allowed

    def toggle_instance_generation(self, index: int) -> bool:
        allowed = not self.instance_settings.get(index, True)
        self.instance_settings[index] = allowed
        return allowed

    def clear_confirmations(self) -> None:
        for machine in self._machines.values():
            machine.clear()
        self.display_previews.clear()
        for handle, payload in self.registry.node_payloads(self.node_id).items():
            self.registry.update(
                self.node_id, handle, is_confirmed=False, is_transient=bool(payload.preview_url)
            )

    def confirm_generation(self, index: int, prompt: str, result_reference: str | None) -> bool:
        """
        Record a user confirmation of `result_reference` for `prompt` and publish it.

        Only the live prompt can be confirmed; a confirmation sent for an older prompt
        is dropped and leaves the current record untouched.
        """
        if not prompt or prompt != self._live_prompts.get(index):
            log.warning(
                "Remapper %s: ignoring confirmation for instance %s (prompt is no longer live)",
                self.node_id,
                index,
            )
            return False
        if not self.machine(index).confirm(prompt, result_reference):
            return False
        self.registry.update(
            self.node_id,
            result_handle(index),
            preview_url=result_reference,
            is_confirmed=True,
            is_transient=False,
            source_reference=result_reference,
            generation_id=time.time_ns() // 1_000_000,
        )
        log.info("Remapper %s: instance %s confirmed", self.node_id, index)
        return True

    def receive_generation_result(self, index: int, prompt: str, result_reference: str) -> bool:
        """
        Accept an asynchronous generation result as a transient preview.

        Results produced for a prompt other than the live one are stale and dropped;
        a result never confirms anything by itself.
        """
        live = self._live_prompts.get(index)
        if not prompt or prompt != live:
            log.warning(
                "Remapper %s: dropping stale generation result for instance %s (prompt changed)",
                self.node_id,
                index,
            )
            return False
        self.display_previews[index] = result_reference
        return True

    def _invalidate_on_feedback_change(self, index: int, item: InstanceInput) -> None:
        overrides = item.feedback.overrides if item.feedback is not None else []
        fingerprint = overrides_fingerprint(overrides)
        previous = self._feedback_fingerprints.get(index)
        self._feedback_fingerprints[index] = fingerprint
        if previous is None or previous == fingerprint:
            return
        handle = result_handle(index)
        current = self.registry.get(self.node_id, handle)
        if current is not None and current.preview_url:
            log.info("Remapper %s: feedback changed for %s; invalidating stale preview", self.node_id, handle)
            self.registry.update(self.node_id, handle, preview_url=None, is_confirmed=False, is_transient=False)
        self.display_previews.pop(index, None)

    def compute(self, instances: list[InstanceInput | None]) -> list[InstanceResult]:
        """Recompute every instance from scratch and register successful payloads."""
        if len(instances) > self.instance_count:
            self.instance_count = len(instances)

        results: list[InstanceResult] = []
        for index, item in enumerate(instances):
            if item is None:
                results.append(InstanceResult(index=index))
                continue

            self._invalidate_on_feedback_change(index, item)
            source = item.source
            self._live_prompts[index] = (
                source.strategy.generative_prompt if source is not None and source.strategy is not None else None
            )
            if source is None or item.target is None:
                results.append(InstanceResult(index=index))
                continue

            handle = result_handle(index)
            try:
                payload = build_payload(
                    source,
                    item.target,
                    machine=self.machine(index),
                    feedback=item.feedback,
                    generation_allowed=self.instance_generation_allowed(index),
                    stored=self.registry.get(self.node_id, handle),
                    display_preview=self.display_previews.get(index),
                    default_scale=self.settings.default_scale,
                )
            except GeometryError as e:
                log.error("Remapper %s: instance %s failed: %s", self.node_id, index, e)
                results.append(InstanceResult(index=index, error=str(e)))
                continue

            self.registry.register(self.node_id, handle, payload)
            results.append(InstanceResult(index=index, payload=payload, strategy_used=payload.strategy_used))
        return results

    def dispose(self) -> None:
        self.registry.unregister_node(self.node_id)
