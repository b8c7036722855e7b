"""Configuration loader for cr0n."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import copy
import logging
import os
import yaml

from cr0n.constants import (
    DEFAULT_CTR_CURVE,
    DEFAULT_LEARNING_CONFIG,
    DEFAULT_MAX_TASKS_PER_RUN,
    DEFAULT_WEIGHTS,
    EVALUATION_CONFIG,
    MODEL_DEFAULTS,
    WEIGHT_KEYS,
    default_model_weights,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "default.yaml"
USER_CONFIG_PATH = Path.home() / ".config" / "cr0n" / "config.yaml"

# Callers sometimes persist weights with camelCase keys.
WEIGHT_ALIASES = {"ctrGap": "ctr_gap"}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: Path | None = None) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    if DEFAULT_CONFIG_PATH.exists():
        data = yaml.safe_load(DEFAULT_CONFIG_PATH.read_text()) or {}
    user_path = path or USER_CONFIG_PATH
    if user_path.exists():
        override = yaml.safe_load(user_path.read_text()) or {}
        data = _deep_merge(data, override)

    # Environment overrides - Server
    host = os.getenv("CR0N_HOST")
    port = os.getenv("CR0N_PORT")
    if host:
        data.setdefault("server", {})["host"] = host
    if port:
        try:
            data.setdefault("server", {})["port"] = int(port)
        except ValueError:
            logger.warning("Ignoring non-integer CR0N_PORT=%r", port)

    # Environment overrides - Provider credentials
    models = data.setdefault("models", {})
    for provider_id, defaults in MODEL_DEFAULTS.items():
        api_key = os.getenv(defaults["env"])
        if api_key:
            entry = dict(models.get(provider_id) or {})
            entry["api_key"] = api_key
            models[provider_id] = entry

    # Environment overrides - Federation and analysis
    threshold = os.getenv("CR0N_CONSENSUS_THRESHOLD")
    if threshold:
        try:
            data.setdefault("federation", {})["consensus_threshold"] = float(threshold)
        except ValueError:
            logger.warning("Ignoring non-numeric CR0N_CONSENSUS_THRESHOLD=%r", threshold)

    max_tasks = os.getenv("CR0N_MAX_TASKS")
    if max_tasks:
        try:
            data.setdefault("analysis", {})["max_tasks_per_run"] = int(max_tasks)
        except ValueError:
            logger.warning("Ignoring non-integer CR0N_MAX_TASKS=%r", max_tasks)

    return data


@dataclass
class Config:
    raw: Dict[str, Any]

    @property
    def server(self) -> Dict[str, Any]:
        return self.raw.get("server", {})

    @property
    def site_id(self) -> str:
        return str(self.raw.get("site_id", "default"))

    @property
    def models(self) -> Dict[str, Dict[str, Any]]:
        return self.raw.get("models", {})

    @property
    def federation(self) -> Dict[str, Any]:
        return self.raw.get("federation", {})

    @property
    def learning(self) -> Dict[str, Any]:
        return self.raw.get("learning", {})

    @property
    def model_learning(self) -> Dict[str, Any]:
        return self.raw.get("model_learning", {})

    @property
    def evaluation(self) -> Dict[str, Any]:
        return self.raw.get("evaluation", {})

    @property
    def analysis(self) -> Dict[str, Any]:
        return self.raw.get("analysis", {})

    @property
    def bucket_criteria(self) -> Dict[str, Dict[str, Any]]:
        return self.raw.get("bucket_criteria") or {}

    @property
    def ctr_curve(self) -> Dict[str, Any]:
        return self.raw.get("ctr_curve") or {}

    @property
    def consensus_threshold(self) -> float:
        return float(self.federation.get("consensus_threshold", 0.7))

    @property
    def credentialed_providers(self) -> list[str]:
        return [pid for pid, entry in self.models.items() if (entry or {}).get("api_key")]


def get_config(path: Path | None = None) -> Config:
    return Config(load_config(path))


def normalize_weights(weights: Optional[Dict[str, Any]]) -> Dict[str, float]:
    """Map caller weights onto the five content keys, filling gaps from defaults."""
    result = dict(DEFAULT_WEIGHTS)
    for key, value in (weights or {}).items():
        key = WEIGHT_ALIASES.get(key, key)
        if key in WEIGHT_KEYS and value is not None:
            result[key] = float(value)
    return result


@dataclass
class EngineSettings:
    """Fully resolved engine configuration with every default filled in."""
    site_id: str = "default"
    weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    model_weights: Dict[str, Dict[str, float]] = field(default_factory=default_model_weights)
    learning_cycles: int = 0
    learning_rate: float = DEFAULT_LEARNING_CONFIG["learning_rate"]
    min_weight: float = DEFAULT_LEARNING_CONFIG["min_weight"]
    max_weight: float = DEFAULT_LEARNING_CONFIG["max_weight"]
    model_learning_rate: float = 0.02
    model_min_weight: float = 0.05
    model_max_weight: float = 0.60
    consensus_threshold: float = 0.7
    evaluation_delay_days: int = EVALUATION_CONFIG["evaluation_delay_days"]
    max_action_age_days: int = EVALUATION_CONFIG["max_action_age_days"]
    max_tasks_per_run: int = DEFAULT_MAX_TASKS_PER_RUN
    include_monitor_bucket: bool = False
    ctr_curve: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_CTR_CURVE))
    bucket_criteria: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    models: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def learning_config(self) -> Dict[str, float]:
        return {
            "learning_rate": self.learning_rate,
            "min_weight": self.min_weight,
            "max_weight": self.max_weight,
        }


def resolve_settings(
    config: Config | None = None,
    weights: Optional[Dict[str, Any]] = None,
    model_weights: Optional[Dict[str, Dict[str, float]]] = None,
    learning_cycles: int = 0,
) -> EngineSettings:
    """Combine file/env configuration with the caller's persisted weight state."""
    config = config or Config({})
    learning = config.learning
    model_learning = config.model_learning
    evaluation = config.evaluation
    analysis = config.analysis

    table = default_model_weights()
    for bucket, row in (model_weights or {}).items():
        table.setdefault(bucket, {}).update(row or {})

    return EngineSettings(
        site_id=config.site_id,
        weights=normalize_weights(weights),
        model_weights=table,
        learning_cycles=learning_cycles,
        learning_rate=float(learning.get("learning_rate", DEFAULT_LEARNING_CONFIG["learning_rate"])),
        min_weight=float(learning.get("min_weight", DEFAULT_LEARNING_CONFIG["min_weight"])),
        max_weight=float(learning.get("max_weight", DEFAULT_LEARNING_CONFIG["max_weight"])),
        model_learning_rate=float(model_learning.get("learning_rate", 0.02)),
        model_min_weight=float(model_learning.get("min_weight", 0.05)),
        model_max_weight=float(model_learning.get("max_weight", 0.60)),
        consensus_threshold=config.consensus_threshold,
        evaluation_delay_days=int(evaluation.get("evaluation_delay_days", EVALUATION_CONFIG["evaluation_delay_days"])),
        max_action_age_days=int(evaluation.get("max_action_age_days", EVALUATION_CONFIG["max_action_age_days"])),
        max_tasks_per_run=int(analysis.get("max_tasks_per_run", DEFAULT_MAX_TASKS_PER_RUN)),
        include_monitor_bucket=bool(analysis.get("include_monitor_bucket", False)),
        ctr_curve={**DEFAULT_CTR_CURVE, **config.ctr_curve},
        bucket_criteria=copy.deepcopy(config.bucket_criteria),
        models=copy.deepcopy(config.models),
    )
