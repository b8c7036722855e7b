"""Provider capability contract and federation result types."""
from __future__ import annotations

import abc
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from cr0n.types import ContentBrief, PageData


@dataclass
class BusinessContext:
    """Optional enrichment passed through to provider prompts."""
    industry: Optional[str] = None
    target_audience: Optional[str] = None
    competitors: List[str] = field(default_factory=list)
    brand_voice: Optional[str] = None
    location: Optional[str] = None
    custom_instructions: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["BusinessContext"]:
        if not data:
            return None
        return cls(
            industry=data.get("industry"),
            target_audience=data.get("target_audience"),
            competitors=list(data.get("competitors") or []),
            brand_voice=data.get("brand_voice"),
            location=data.get("location"),
            custom_instructions=data.get("custom_instructions"),
        )

    def to_prompt(self) -> str:
        lines = []
        if self.industry:
            lines.append(f"Industry: {self.industry}")
        if self.target_audience:
            lines.append(f"Target audience: {self.target_audience}")
        if self.competitors:
            lines.append(f"Competitors: {', '.join(self.competitors)}")
        if self.brand_voice:
            lines.append(f"Brand voice: {self.brand_voice}")
        if self.location:
            lines.append(f"Location: {self.location}")
        if self.custom_instructions:
            lines.append(f"Instructions: {self.custom_instructions}")
        return "\n".join(lines)


@dataclass
class ModelAnalysis:
    provider_id: str
    bucket: str
    confidence: float
    priority_score: float
    recommendations: List[str] = field(default_factory=list)
    key_insights: List[str] = field(default_factory=list)
    suggested_actions: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ContentScore:
    provider_id: str
    overall: float
    relevance: float
    readability: float
    seo_alignment: float
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class GeneratedContent:
    provider_id: str
    content: str
    word_count: int
    title: str
    meta_description: str
    h2_sections: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ProviderAdapter(abc.ABC):
    """One generative-AI vendor exposed as four uniform async operations.

    Any operation may raise ``ProviderError``; callers treat that as the
    provider abstaining for the round.
    """

    id: str = ""
    name: str = ""
    provider: str = ""

    @property
    @abc.abstractmethod
    def available(self) -> bool:
        ...

    @abc.abstractmethod
    async def analyze_opportunity(self, page: PageData, bucket: str) -> ModelAnalysis:
        ...

    @abc.abstractmethod
    async def generate_brief(
        self,
        page: PageData,
        bucket: str,
        context: Optional[BusinessContext] = None,
    ) -> ContentBrief:
        ...

    @abc.abstractmethod
    async def score_content(self, content: str, brief: ContentBrief) -> ContentScore:
        ...

    @abc.abstractmethod
    async def generate_content(self, brief: ContentBrief) -> GeneratedContent:
        ...


@dataclass
class ProviderContribution:
    provider_id: str
    weight: float
    brief_hash: str = ""
    brief: Optional[ContentBrief] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.brief is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider_id": self.provider_id,
            "weight": self.weight,
            "brief_hash": self.brief_hash,
            "ok": self.ok,
            "error": self.error,
        }


@dataclass
class ConsensusResult:
    brief: ContentBrief
    confidence: float
    contributions: List[ProviderContribution]
    primary_model: str
    strategy: str  # single, consensus, primary
    model_outputs: Dict[str, ContentBrief] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "brief": self.brief.to_dict(),
            "confidence": self.confidence,
            "contributions": [item.to_dict() for item in self.contributions],
            "primary_model": self.primary_model,
            "strategy": self.strategy,
            "failures": dict(self.failures),
        }


@dataclass
class RouteDecision:
    models: List[str]
    primary: str
    strategy: str  # all, top2, primary_only
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
