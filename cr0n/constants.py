"""Default weights, thresholds and lookup tables for the cr0n engine."""
from __future__ import annotations

import copy
import math
import re
from typing import Any, Dict

# --- Buckets ---

CTR_FIX = "CTR_FIX"
STRIKING_DISTANCE = "STRIKING_DISTANCE"
RELEVANCE_REBUILD = "RELEVANCE_REBUILD"
LOCAL_BOOST = "LOCAL_BOOST"
MONITOR = "MONITOR"

ACTION_BUCKETS = (CTR_FIX, STRIKING_DISTANCE, RELEVANCE_REBUILD, LOCAL_BOOST, MONITOR)

# --- Providers ---

PROVIDER_IDS = ("claude", "openai", "gemini", "grok")

MODEL_DEFAULTS: Dict[str, Dict[str, str]] = {
    "claude": {"model": "claude-sonnet-4-20250514", "provider": "anthropic", "env": "ANTHROPIC_API_KEY"},
    "openai": {"model": "gpt-4o", "provider": "openai", "env": "OPENAI_API_KEY"},
    "gemini": {"model": "gemini-2.0-flash", "provider": "google", "env": "GEMINI_API_KEY"},
    "grok": {"model": "grok-3", "provider": "xai", "env": "XAI_API_KEY"},
}

# --- Content weights ---

WEIGHT_KEYS = ("impressions", "position", "ctr_gap", "conversions", "freshness")

DEFAULT_WEIGHTS: Dict[str, float] = {
    "impressions": 0.20,
    "position": 0.20,
    "ctr_gap": 0.20,
    "conversions": 0.20,
    "freshness": 0.20,
}

DEFAULT_LEARNING_CONFIG: Dict[str, float] = {
    "learning_rate": 0.015,
    "min_weight": 0.05,
    "max_weight": 0.50,
}

# Each bucket reinforces exactly one scoring dimension.
BUCKET_TO_WEIGHT: Dict[str, str] = {
    CTR_FIX: "ctr_gap",
    STRIKING_DISTANCE: "position",
    RELEVANCE_REBUILD: "impressions",
    LOCAL_BOOST: "conversions",
    MONITOR: "freshness",
}

# --- Provider weights ---

DEFAULT_MODEL_LEARNING_RATE = 0.02
DEFAULT_MODEL_MIN_WEIGHT = 0.05
DEFAULT_MODEL_MAX_WEIGHT = 0.60
DEFAULT_CONSENSUS_THRESHOLD = 0.7


def default_model_weights() -> Dict[str, Dict[str, float]]:
    """Uniform provider weights for every bucket (fresh copy)."""
    share = round(1.0 / len(PROVIDER_IDS), 4)
    return {bucket: {provider: share for provider in PROVIDER_IDS} for bucket in ACTION_BUCKETS}


# --- Expected CTR by position (industry averages) ---

DEFAULT_CTR_CURVE: Dict[str, Any] = {
    "position1": 0.32,
    "position2": 0.20,
    "position3": 0.13,
    "position4": 0.09,
    "position5": 0.07,
    "position6": 0.05,
    "position7": 0.04,
    "position8": 0.03,
    "position9": 0.025,
    "position10": 0.02,
    "position11_20": 0.01,
    "position21_plus": 0.005,
    "industry": "general",
    "data_source": "industry_average",
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def get_expected_ctr(position: float, curve: Dict[str, Any] | None = None) -> float:
    curve = curve or DEFAULT_CTR_CURVE
    pos = round_half_up(position)
    if pos <= 1:
        return float(curve["position1"])
    if pos <= 10:
        return float(curve[f"position{pos}"])
    if pos <= 20:
        return float(curve["position11_20"])
    return float(curve["position21_plus"])


# --- Bucket criteria ---

BUCKET_CRITERIA: Dict[str, Dict[str, Any]] = {
    CTR_FIX: {"min_impressions": 500, "ctr_gap_threshold": 0.05},
    STRIKING_DISTANCE: {"min_position": 4, "max_position": 10, "min_impressions": 100},
    RELEVANCE_REBUILD: {"min_position": 11, "max_position": 50, "min_impressions": 50},
    LOCAL_BOOST: {"requires_local_intent": True, "position_above": 3},
    MONITOR: {"max_position": 3},
}


def merge_criteria(overrides: Dict[str, Dict[str, Any]] | None) -> Dict[str, Dict[str, Any]]:
    merged = copy.deepcopy(BUCKET_CRITERIA)
    for bucket, values in (overrides or {}).items():
        if bucket in merged and isinstance(values, dict):
            merged[bucket].update(values)
    return merged


# --- Local intent detection ---

LOCAL_KEYWORDS = ("near me", "nearby", "local", "in my area", "close to me")

CITY_PATTERNS = (
    re.compile(r"\b(pittsburgh|chicago|new york|los angeles|houston|phoenix)\b", re.IGNORECASE),
    re.compile(r"\b[A-Z][a-z]+,\s*[A-Z]{2}\b"),
)

SERVICE_AREA_PATTERNS = (
    re.compile(r"serving\s+", re.IGNORECASE),
    re.compile(r"service\s+area", re.IGNORECASE),
    re.compile(r"located\s+in", re.IGNORECASE),
)

# --- Outcome evaluation ---

SUCCESS_CRITERIA: Dict[str, Dict[str, Any]] = {
    CTR_FIX: {"metric": "ctr", "improvement": 0.20, "description": "CTR improved by 20% or more"},
    STRIKING_DISTANCE: {"metric": "position", "improvement": 2, "description": "Position improved by 2+ spots"},
    RELEVANCE_REBUILD: {"metric": "impressions", "improvement": 0.50, "description": "Impressions grew by 50% or more"},
    LOCAL_BOOST: {"metric": "clicks", "improvement": 0.30, "description": "Clicks improved by 30% or more"},
    MONITOR: {"metric": "position", "improvement": 0, "description": "Position maintained or improved"},
}

EVALUATION_CONFIG: Dict[str, int] = {
    "evaluation_delay_days": 14,
    "min_data_days": 7,
    "max_action_age_days": 60,
}

# --- Content rules for local briefs ---

CONTENT_RULES: Dict[str, Any] = {
    "word_count": {
        "pillar": {"min": 2200, "max": 3200},
        "cluster": {"min": 1000, "max": 1600},
        "service": {"min": 900, "max": 1400},
        "news": {"min": 600, "max": 1000},
    },
    "keyword_density": {"min": 0.006, "max": 0.012, "target": "0.6% - 1.2%"},
    "mandatory_placements": ["First 100 words", "One H2 exact match", "Last 120 words"],
}

SCHEMA_STACKS: Dict[str, list[str]] = {
    "base": ["Organization", "WebSite", "BreadcrumbList"],
    "local": ["LocalBusiness", "Service", "AreaServed", "Review"],
    "transactional": ["Service", "FAQPage", "Product", "Offer"],
    "informational": ["Article", "FAQPage", "Person", "HowTo"],
    "mixed": ["Article", "FAQPage", "Service"],
}

DEFAULT_MAX_TASKS_PER_RUN = 50
