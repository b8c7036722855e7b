"""Outcome evaluation and the two weight learners."""
from cr0n.learning.model_adjuster import ModelAdjuster
from cr0n.learning.outcome_evaluator import OutcomeEvaluator, measure_outcome
from cr0n.learning.weight_adjuster import WeightAdjuster

__all__ = ["ModelAdjuster", "OutcomeEvaluator", "WeightAdjuster", "measure_outcome"]
