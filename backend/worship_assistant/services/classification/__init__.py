"""
Rule-based query classification.

Deterministic keyword/pattern scoring (no learned model): extraction of
@mentions and /commands, weighted category scoring, and the classifier that
turns both into a ClassifiedQuery.
"""
from .classifier import classify, describe_query_type
from .extraction import extract, extract_mentions

__all__ = ["classify", "describe_query_type", "extract", "extract_mentions"]
