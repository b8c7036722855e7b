"""Provider federation: weights, routing and consensus."""
from cr0n.federation.consensus import ConsensusEngine
from cr0n.federation.model_weights import ModelWeightStore
from cr0n.federation.registry import ProviderRegistry
from cr0n.federation.router import Router
from cr0n.federation.types import (
    BusinessContext,
    ConsensusResult,
    ContentScore,
    GeneratedContent,
    ModelAnalysis,
    ProviderAdapter,
    ProviderContribution,
    RouteDecision,
)

__all__ = [
    "BusinessContext",
    "ConsensusEngine",
    "ConsensusResult",
    "ContentScore",
    "GeneratedContent",
    "ModelAnalysis",
    "ModelWeightStore",
    "ProviderAdapter",
    "ProviderContribution",
    "ProviderRegistry",
    "RouteDecision",
    "Router",
]
