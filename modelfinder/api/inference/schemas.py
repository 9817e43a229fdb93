"""Inference streaming API schemas."""

from typing import Any

from pydantic import BaseModel, Field

from modelfinder.modules.candidates.provider import SearchCriteria
from modelfinder.modules.inference.models import ModelCandidate


class InferenceStreamRequest(BaseModel):
    image: str = Field(min_length=1, description="Base64 image or data URL")
    candidates: list[ModelCandidate] = Field(default_factory=list)
    # Raw hits from the model search, appended after `candidates`
    search_hits: list[dict[str, Any]] = Field(default_factory=list)
    search: SearchCriteria = Field(default_factory=SearchCriteria)
