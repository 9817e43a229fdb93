"""Candidate scoring and ranking."""

from .engine import RankingEngine, aggregate_score, extract_target_classes
from .matcher import ApproximateStringMatcher, Match, RapidFuzzMatcher
from .metadata import MetadataScorer
from .overlap import OverlapScorer

__all__ = [
    "RankingEngine",
    "aggregate_score",
    "extract_target_classes",
    "ApproximateStringMatcher",
    "Match",
    "RapidFuzzMatcher",
    "MetadataScorer",
    "OverlapScorer",
]
