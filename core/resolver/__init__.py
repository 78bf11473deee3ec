"""Container Resolver."""

from core.resolver.resolver import classify_resolution, resolve, resolve_channels
from core.resolver.schemas import ChannelState, ResolutionResult, ResolvedContext

__all__ = [
    "ChannelState",
    "ResolutionResult",
    "ResolvedContext",
    "classify_resolution",
    "resolve",
    "resolve_channels",
]
