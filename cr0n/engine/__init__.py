"""Deterministic scoring, bucketing and plan building."""
from cr0n.engine.analyzer import Analyzer
from cr0n.engine.bucketer import Bucketer
from cr0n.engine.scorer import Scorer

__all__ = ["Analyzer", "Bucketer", "Scorer"]
