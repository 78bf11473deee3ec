"""Confirmation State Machine: decide whether generative fill may replace a layer.

States, per remapping instance:

- NO_PROMPT: the strategy carries no generative prompt; nothing to confirm.
- SUPPRESSED: a prompt exists but generation is switched off for the instance.
- MANDATORY: the strategy carries the mandatory-fill directive; generation proceeds
  without user action.
- CONFIRMED: the user confirmed a result for exactly the live prompt.
- PENDING: a prompt exists and is not confirmed. The instance awaits confirmation when
  the prompt is explicit-intent or the uniform scale exceeds the distortion threshold,
  otherwise it proceeds silently with status "success" and no generation.

The only state kept is the (prompt, result reference) pair of the last confirmation.
A prompt change after confirmation puts the instance back in PENDING with
refinement_pending set; the old result stays around as a non-authoritative preview.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel

from core.remap.schemas import ConfirmationState, PayloadStatus
from core.strategy.schemas import LayoutStrategy

log = logging.getLogger(__name__)


class ConfirmationRecord(BaseModel):
    prompt: str
    result_reference: str


class ConfirmationDecision(BaseModel):
    state: ConfirmationState
    status: PayloadStatus = "success"
    requires_generation: bool = False
    is_confirmed: bool = False
    is_mandatory: bool = False
    awaiting_confirmation: bool = False
    refinement_pending: bool = False


class ConfirmationMachine:
    """Confirmation state of one remapping instance."""

    def __init__(self, *, distortion_threshold: float = 2.0, mandatory_directive: str = "MANDATORY_GEN_FILL") -> None:
        self.distortion_threshold = distortion_threshold
        self.mandatory_directive = mandatory_directive
        self._record: ConfirmationRecord | None = None

    @property
    def record(self) -> ConfirmationRecord | None:
        return self._record

    def confirm(self, prompt: str, result_reference: str | None) -> bool:
        """Record a confirmation gesture. Ignored (returns False) without a result reference."""
        if not result_reference:
            log.debug("Ignoring confirmation without a result reference")
            return False
        self._record = ConfirmationRecord(prompt=prompt or "", result_reference=result_reference)
        return True

    def clear(self) -> None:
        self._record = None

    def is_mandatory(self, strategy: LayoutStrategy | None) -> bool:
        return strategy is not None and self.mandatory_directive in strategy.directives

    def evaluate(
        self,
        strategy: LayoutStrategy | None,
        *,
        scale: float,
        generation_allowed: bool,
    ) -> ConfirmationDecision:
        """Decide the instance state for the live strategy. Pure with respect to the record."""
        prompt = strategy.generative_prompt if strategy is not None else None
        mandatory = self.is_mandatory(strategy)
        confirmed_prompt = self._record.prompt if self._record is not None else None
        refinement_pending = bool(confirmed_prompt and prompt and confirmed_prompt != prompt)

        if not prompt:
            return ConfirmationDecision(state="NO_PROMPT", is_confirmed=mandatory, is_mandatory=mandatory)

        if not generation_allowed:
            return ConfirmationDecision(
                state="SUPPRESSED",
                is_mandatory=mandatory,
                refinement_pending=refinement_pending,
            )

        if mandatory:
            return ConfirmationDecision(
                state="MANDATORY",
                requires_generation=True,
                is_confirmed=True,
                is_mandatory=True,
            )

        if confirmed_prompt is not None and confirmed_prompt == prompt:
            return ConfirmationDecision(state="CONFIRMED", requires_generation=True, is_confirmed=True)

        awaiting = strategy.is_explicit_intent or scale > self.distortion_threshold
        return ConfirmationDecision(
            state="PENDING",
            status="awaiting_confirmation" if awaiting else "success",
            awaiting_confirmation=awaiting,
            refinement_pending=refinement_pending,
        )
