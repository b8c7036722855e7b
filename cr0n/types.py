"""Core data types for the cr0n engine."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Optional


def _pick(data: Dict[str, Any], key: str, alias: str | None = None, default: Any = None) -> Any:
    if key in data and data[key] is not None:
        return data[key]
    if alias and alias in data and data[alias] is not None:
        return data[alias]
    return default


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


@dataclass(frozen=True)
class PageData:
    """Snapshot of one page's search and analytics metrics."""
    url: str
    primary_keyword: str = ""
    clicks: int = 0
    impressions: int = 0
    ctr: float = 0.0
    position: float = 0.0
    conversions: int = 0
    sessions: int = 0
    bounce_rate: float = 0.0
    avg_session_duration: float = 0.0
    intent: str = "mixed"  # local, transactional, informational, mixed
    is_local_page: bool = False
    local_keywords: tuple[str, ...] = ()
    freshness_score: float = 0.0
    last_content_update: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PageData":
        return cls(
            url=str(data.get("url", "")),
            primary_keyword=str(_pick(data, "primary_keyword", "primaryKeyword", "")),
            clicks=int(data.get("clicks", 0) or 0),
            impressions=int(data.get("impressions", 0) or 0),
            ctr=float(data.get("ctr", 0.0) or 0.0),
            position=float(data.get("position", 0.0) or 0.0),
            conversions=int(data.get("conversions", 0) or 0),
            sessions=int(data.get("sessions", 0) or 0),
            bounce_rate=float(_pick(data, "bounce_rate", "bounceRate", 0.0)),
            avg_session_duration=float(_pick(data, "avg_session_duration", "avgSessionDuration", 0.0)),
            intent=str(data.get("intent") or "mixed"),
            is_local_page=bool(_pick(data, "is_local_page", "isLocalPage", False)),
            local_keywords=tuple(_pick(data, "local_keywords", "localKeywords", ()) or ()),
            freshness_score=float(_pick(data, "freshness_score", "freshnessScore", 0.0)),
            last_content_update=_pick(data, "last_content_update", "lastContentUpdate"),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["local_keywords"] = list(self.local_keywords)
        return payload

    def metrics_snapshot(self) -> Dict[str, Any]:
        return {
            "clicks": self.clicks,
            "impressions": self.impressions,
            "ctr": self.ctr,
            "position": self.position,
            "conversions": self.conversions,
        }


@dataclass
class NormalizedScores:
    impressions: float
    position: float
    ctr_gap: float
    conversions: float
    freshness: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class InternalLink:
    url: str
    anchor: str


@dataclass
class ContentBrief:
    """Structured content brief for one page and bucket."""
    url: str
    target_keyword: str
    bucket: str
    title_recommendations: List[str] = field(default_factory=list)
    h1_recommendation: str = ""
    meta_description: str = ""
    target_word_count: int = 0
    h2_additions: List[str] = field(default_factory=list)
    internal_links: List[InternalLink] = field(default_factory=list)
    priority_tasks: List[str] = field(default_factory=list)
    schema_stack: List[str] = field(default_factory=list)
    keyword_density_target: str = ""
    mandatory_placements: List[str] = field(default_factory=list)
    metrics_snapshot: Dict[str, Any] = field(default_factory=dict)
    status: str = "draft"
    generated_by: Optional[str] = None
    contributing_models: List[str] = field(default_factory=list)
    consensus_confidence: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentBrief":
        links = []
        for item in data.get("internal_links") or []:
            if isinstance(item, InternalLink):
                links.append(item)
            elif isinstance(item, dict):
                links.append(InternalLink(url=str(item.get("url", "")), anchor=str(item.get("anchor", ""))))
        return cls(
            url=str(data.get("url", "")),
            target_keyword=str(data.get("target_keyword", "")),
            bucket=str(data.get("bucket", "")),
            title_recommendations=list(data.get("title_recommendations") or []),
            h1_recommendation=str(data.get("h1_recommendation", "")),
            meta_description=str(data.get("meta_description", "")),
            target_word_count=int(data.get("target_word_count", 0) or 0),
            h2_additions=list(data.get("h2_additions") or []),
            internal_links=links,
            priority_tasks=list(data.get("priority_tasks") or []),
            schema_stack=list(data.get("schema_stack") or []),
            keyword_density_target=str(data.get("keyword_density_target", "")),
            mandatory_placements=list(data.get("mandatory_placements") or []),
            metrics_snapshot=dict(data.get("metrics_snapshot") or {}),
            status=str(data.get("status", "draft")),
            generated_by=data.get("generated_by"),
            contributing_models=list(data.get("contributing_models") or []),
            consensus_confidence=_optional_float(data.get("consensus_confidence")),
        )


@dataclass
class ActionRecord:
    """An applied action, its baseline metrics and (later) observed metrics."""
    url: str
    action_type: str
    action_date: str
    action_status: str = "completed"  # pending, in_progress, completed, failed
    id: Optional[str] = None
    site_id: str = "default"
    original_clicks: int = 0
    original_impressions: int = 0
    original_ctr: float = 0.0
    original_position: float = 0.0
    original_conversions: int = 0
    result_clicks: Optional[int] = None
    result_impressions: Optional[int] = None
    result_ctr: Optional[float] = None
    result_position: Optional[float] = None
    result_conversions: Optional[int] = None
    weights_snapshot: Dict[str, float] = field(default_factory=dict)
    learning_applied: bool = False
    success_score: Optional[float] = None
    model_used: Optional[str] = None
    contributing_models: List[str] = field(default_factory=list)
    consensus_confidence: Optional[float] = None
    evaluated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ActionRecord":
        def _opt_int(key: str, alias: str) -> int | None:
            value = _pick(data, key, alias)
            return None if value is None else int(value)

        return cls(
            url=str(data.get("url", "")),
            action_type=str(_pick(data, "action_type", "actionType", "")),
            action_date=str(_pick(data, "action_date", "actionDate", "")),
            action_status=str(_pick(data, "action_status", "actionStatus", "completed")),
            id=data.get("id"),
            site_id=str(_pick(data, "site_id", "siteId", "default")),
            original_clicks=int(_pick(data, "original_clicks", "originalClicks", 0)),
            original_impressions=int(_pick(data, "original_impressions", "originalImpressions", 0)),
            original_ctr=float(_pick(data, "original_ctr", "originalCtr", 0.0)),
            original_position=float(_pick(data, "original_position", "originalPosition", 0.0)),
            original_conversions=int(_pick(data, "original_conversions", "originalConversions", 0)),
            result_clicks=_opt_int("result_clicks", "resultClicks"),
            result_impressions=_opt_int("result_impressions", "resultImpressions"),
            result_ctr=_optional_float(_pick(data, "result_ctr", "resultCtr")),
            result_position=_optional_float(_pick(data, "result_position", "resultPosition")),
            result_conversions=_opt_int("result_conversions", "resultConversions"),
            weights_snapshot=dict(_pick(data, "weights_snapshot", "weightsSnapshot", {}) or {}),
            learning_applied=bool(_pick(data, "learning_applied", "learningApplied", False)),
            success_score=_optional_float(_pick(data, "success_score", "successScore")),
            model_used=_pick(data, "model_used", "modelUsed"),
            contributing_models=list(_pick(data, "contributing_models", "contributingModels", []) or []),
            consensus_confidence=_optional_float(_pick(data, "consensus_confidence", "consensusConfidence")),
            evaluated_at=_pick(data, "evaluated_at", "evaluatedAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def with_observed(self, page: PageData) -> "ActionRecord":
        """Copy of this action carrying the page's current metrics as results."""
        return replace(
            self,
            result_clicks=page.clicks,
            result_impressions=page.impressions,
            result_ctr=page.ctr,
            result_position=page.position,
            result_conversions=page.conversions,
        )


@dataclass
class LearningLog:
    date: str
    action: str
    result: str
    weight_adj: str
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class WeightAdjustment:
    weight: str
    old_value: float
    new_value: float
    reason: str


@dataclass
class SEOTask:
    url: str
    score: float
    bucket: str
    metrics: PageData
    brief: ContentBrief

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "score": self.score,
            "bucket": self.bucket,
            "metrics": self.metrics.to_dict(),
            "brief": self.brief.to_dict(),
        }


@dataclass
class DailyPlan:
    date: str
    site_id: str
    active_weights: Dict[str, float]
    tasks: List[SEOTask]
    learning_log: List[LearningLog]
    stats: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "site_id": self.site_id,
            "active_weights": dict(self.active_weights),
            "tasks": [task.to_dict() for task in self.tasks],
            "learning_log": [entry.to_dict() for entry in self.learning_log],
            "stats": self.stats,
        }


@dataclass
class EvaluationResult:
    action: ActionRecord
    success: bool
    success_score: float
    criteria: str
    delta_traffic: float
    delta_position: float
    delta_ctr: float
    delta_impressions: float
    learning_log: LearningLog

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BatchEvaluation:
    evaluated: List[EvaluationResult]
    skipped: List[ActionRecord]
    stats: Dict[str, Any]
    learning_logs: List[LearningLog]
    # input index of each evaluated action
    positions: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "evaluated": [item.to_dict() for item in self.evaluated],
            "skipped": [item.to_dict() for item in self.skipped],
            "stats": self.stats,
            "learning_logs": [item.to_dict() for item in self.learning_logs],
        }


@dataclass
class ModelStats:
    provider_id: str
    total_tasks: int
    successful_tasks: int
    failed_tasks: int
    success_rate: float
    avg_confidence: float
    weights_by_bucket: Dict[str, float]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CycleResult:
    plan: DailyPlan
    evaluations: Optional[BatchEvaluation]
    weights: Dict[str, float]
    model_weights: Dict[str, Dict[str, float]]
    model_stats: List[ModelStats]
    learning_log: List[LearningLog]
    actions: List[ActionRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan": self.plan.to_dict(),
            "evaluations": self.evaluations.to_dict() if self.evaluations else None,
            "weights": dict(self.weights),
            "model_weights": {bucket: dict(row) for bucket, row in self.model_weights.items()},
            "model_stats": [stats.to_dict() for stats in self.model_stats],
            "learning_log": [entry.to_dict() for entry in self.learning_log],
            "actions": [action.to_dict() for action in self.actions],
        }
