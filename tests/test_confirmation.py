from __future__ import annotations

import unittest

from core.remap.confirmation import ConfirmationMachine
from core.strategy.schemas import LayoutStrategy


def _strategy(prompt: str | None = "extend the sky", **kwargs) -> LayoutStrategy:
    return LayoutStrategy(generative_prompt=prompt, replace_layer_id="bg", **kwargs)


class ConfirmationMachineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.machine = ConfirmationMachine()

    def test_no_prompt(self) -> None:
        decision = self.machine.evaluate(_strategy(None), scale=1.0, generation_allowed=True)
        self.assertEqual(decision.state, "NO_PROMPT")
        self.assertEqual(decision.status, "success")
        self.assertFalse(decision.requires_generation)
        self.assertEqual(self.machine.evaluate(None, scale=1.0, generation_allowed=True).state, "NO_PROMPT")

    def test_explicit_intent_awaits_confirmation(self) -> None:
        decision = self.machine.evaluate(_strategy(is_explicit_intent=True), scale=1.0, generation_allowed=True)
        self.assertEqual(decision.state, "PENDING")
        self.assertEqual(decision.status, "awaiting_confirmation")
        self.assertTrue(decision.awaiting_confirmation)
        self.assertFalse(decision.requires_generation)

    def test_large_scale_awaits_confirmation(self) -> None:
        self.assertEqual(
            self.machine.evaluate(_strategy(), scale=2.5, generation_allowed=True).status,
            "awaiting_confirmation",
        )
        self.assertEqual(self.machine.evaluate(_strategy(), scale=2.0, generation_allowed=True).status, "success")

    def test_plain_prompt_proceeds_silently(self) -> None:
        decision = self.machine.evaluate(_strategy(), scale=1.0, generation_allowed=True)
        self.assertEqual(decision.state, "PENDING")
        self.assertEqual(decision.status, "success")
        self.assertFalse(decision.requires_generation)

    def test_confirming_current_prompt_requires_generation(self) -> None:
        strategy = _strategy(is_explicit_intent=True)
        self.assertTrue(self.machine.confirm("extend the sky", "img://1"))
        decision = self.machine.evaluate(strategy, scale=1.0, generation_allowed=True)
        self.assertEqual(decision.state, "CONFIRMED")
        self.assertEqual(decision.status, "success")
        self.assertTrue(decision.requires_generation)
        self.assertTrue(decision.is_confirmed)

    def test_prompt_change_reverts_to_refinement_pending(self) -> None:
        self.machine.confirm("extend the sky", "img://1")
        decision = self.machine.evaluate(
            _strategy("extend the sea", is_explicit_intent=True), scale=1.0, generation_allowed=True
        )
        self.assertEqual(decision.state, "PENDING")
        self.assertTrue(decision.refinement_pending)
        self.assertEqual(decision.status, "awaiting_confirmation")
        self.assertFalse(decision.requires_generation)
        self.assertEqual(self.machine.record.result_reference, "img://1")

    def test_confirmation_without_reference_is_ignored(self) -> None:
        self.assertFalse(self.machine.confirm("extend the sky", None))
        self.assertFalse(self.machine.confirm("extend the sky", ""))
        self.assertIsNone(self.machine.record)

    def test_mandatory_directive_needs_no_confirmation(self) -> None:
        decision = self.machine.evaluate(
            _strategy(directives=["MANDATORY_GEN_FILL"]), scale=3.0, generation_allowed=True
        )
        self.assertEqual(decision.state, "MANDATORY")
        self.assertTrue(decision.requires_generation)
        self.assertTrue(decision.is_confirmed)
        self.assertEqual(decision.status, "success")

    def test_generation_not_allowed_suppresses(self) -> None:
        self.machine.confirm("extend the sky", "img://1")
        for strategy in (_strategy(), _strategy(directives=["MANDATORY_GEN_FILL"])):
            decision = self.machine.evaluate(strategy, scale=1.0, generation_allowed=False)
            self.assertEqual(decision.state, "SUPPRESSED")
            self.assertFalse(decision.requires_generation)
            self.assertFalse(decision.is_confirmed)

    def test_clear_forgets_confirmation(self) -> None:
        self.machine.confirm("extend the sky", "img://1")
        self.machine.clear()
        decision = self.machine.evaluate(_strategy(is_explicit_intent=True), scale=1.0, generation_allowed=True)
        self.assertEqual(decision.status, "awaiting_confirmation")
        self.assertFalse(decision.refinement_pending)

    def test_custom_threshold(self) -> None:
        machine = ConfirmationMachine(distortion_threshold=1.2)
        self.assertEqual(machine.evaluate(_strategy(), scale=1.3, generation_allowed=True).status, "awaiting_confirmation")


if __name__ == "__main__":
    unittest.main()
