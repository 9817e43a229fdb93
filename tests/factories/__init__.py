"""Test factories for ModelFinder domain models."""

from .candidates import (
    ClassCountFactory,
    DrawnBoxFactory,
    InferenceResultFactory,
    ModelCandidateFactory,
    PredictedBoxFactory,
)

__all__ = [
    "ClassCountFactory",
    "DrawnBoxFactory",
    "InferenceResultFactory",
    "ModelCandidateFactory",
    "PredictedBoxFactory",
]
