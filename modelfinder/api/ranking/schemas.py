"""Ranking API schemas."""

from pydantic import BaseModel, Field

from modelfinder.modules.inference.models import (
    DrawnBox,
    ImageFrame,
    InferenceResult,
    ModelCandidate,
    RankedCandidate,
)
from modelfinder.api.core.messages import APIResponse
from modelfinder.utils.settings.inference import ranking_settings


class RankingRequest(BaseModel):
    candidates: list[ModelCandidate]
    results: list[InferenceResult]
    drawn_boxes: list[DrawnBox] = Field(default_factory=list)
    frame: ImageFrame
    confidence_threshold: float = Field(
        default_factory=lambda: ranking_settings.CONFIDENCE_THRESHOLD, ge=0, le=1
    )
    # Omitted: use the drawn-box labels
    target_classes: list[str] | None = None


RankingResponse = APIResponse[list[RankedCandidate]]
