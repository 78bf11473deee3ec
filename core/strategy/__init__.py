"""Layout strategies, user feedback and the Override Merger."""

from core.strategy.canonical import load_feedback, load_strategy, parse_feedback, parse_strategy
from core.strategy.merger import build_effective_strategy, merge_overrides, overrides_fingerprint
from core.strategy.schemas import Feedback, LayoutStrategy, Override, Triangulation

__all__ = [
    "Feedback",
    "LayoutStrategy",
    "Override",
    "Triangulation",
    "build_effective_strategy",
    "load_feedback",
    "load_strategy",
    "merge_overrides",
    "overrides_fingerprint",
    "parse_feedback",
    "parse_strategy",
]
