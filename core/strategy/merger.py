"""Override Merger: layer user feedback over AI-suggested overrides."""

from __future__ import annotations

import hashlib
import json
import logging

from core.strategy.schemas import Feedback, LayoutStrategy, Override

log = logging.getLogger(__name__)


def merge_overrides(ai_overrides: list[Override] | None, feedback: list[Override] | None) -> list[Override]:
    """
    Merge AI overrides with feedback overrides into one effective list.

    - AI overrides keep their order; one that has a feedback entry for the same layer
      id takes the feedback offsets and scale (scale falls back to the AI value when the
      feedback omits it). Display fields (cited rule, anchor, layout role) stay AI's.
    - Feedback entries with no AI counterpart are appended in their original order.
    - One entry per layer id: the first AI entry wins among AI duplicates, the last
      feedback entry wins among feedback duplicates.

    Pure and idempotent: merge_overrides(merge_overrides(a, b), b) == merge_overrides(a, b).
    """
    feedback_by_id: dict[str, Override] = {}
    feedback_order: list[str] = []
    for manual in feedback or []:
        if manual.layer_id not in feedback_by_id:
            feedback_order.append(manual.layer_id)
        feedback_by_id[manual.layer_id] = manual

    merged: list[Override] = []
    seen: set[str] = set()
    for original in ai_overrides or []:
        if original.layer_id in seen:
            log.debug("Dropping duplicate AI override for layer %s", original.layer_id)
            continue
        seen.add(original.layer_id)
        manual = feedback_by_id.get(original.layer_id)
        if manual is None:
            merged.append(original)
            continue
        merged.append(
            original.model_copy(
                update={
                    "x_offset": manual.x_offset,
                    "y_offset": manual.y_offset,
                    "individual_scale": (
                        manual.individual_scale
                        if manual.individual_scale is not None
                        else original.individual_scale
                    ),
                }
            )
        )

    for layer_id in feedback_order:
        if layer_id not in seen:
            seen.add(layer_id)
            merged.append(feedback_by_id[layer_id])
    return merged


def build_effective_strategy(
    strategy: LayoutStrategy | None,
    feedback: Feedback | None,
) -> LayoutStrategy | None:
    """
    Strategy with feedback merged into its overrides. Inputs are never mutated.

    Without feedback overrides the AI strategy is returned as is; feedback without an
    AI strategy yields a bare strategy that only carries the feedback overrides.
    """
    if feedback is None or not feedback.overrides:
        return strategy
    if strategy is None:
        return LayoutStrategy(overrides=merge_overrides([], feedback.overrides))
    return strategy.model_copy(update={"overrides": merge_overrides(strategy.overrides, feedback.overrides)})


def overrides_fingerprint(overrides: list[Override] | None) -> str:
    """Stable content hash of an override list; detects feedback changes between recomputations."""
    payload = [o.model_dump() for o in overrides or []]
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
