"""Fuses per-signal scores into one ranking of candidate models."""

from collections import Counter
from collections.abc import Mapping, Sequence

from modelfinder.modules.inference.errors import ensure_unique_ids
from modelfinder.modules.inference.models import (
    DrawnBox,
    ImageFrame,
    InferenceResult,
    ModelCandidate,
    RankedCandidate,
    ScoreComponents,
)
from modelfinder.modules.ranking.metadata import MetadataScorer
from modelfinder.modules.ranking.overlap import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    OverlapScorer,
)

SIGNAL_WEIGHTS: dict[str, float] = {
    "predictions_score": 0.5,
    "semantic_score": 0.2,
    "image_similarity_score": 0.2,
    "metadata_score": 0.1,
}

# Denominator-only weights for signals a candidate does not have
MISSING_SIGNAL_WEIGHTS: dict[str, float] = {
    "predictions_score": 0.5,
    "semantic_score": 0.02,
    "image_similarity_score": 0.02,
    "metadata_score": 0.05,
}


def extract_target_classes(drawn_boxes: Sequence[DrawnBox]) -> list[str]:
    """Distinct drawn-box labels, most drawn first, ties in drawing order."""
    counts = Counter(
        box.label.strip() for box in drawn_boxes if box.label and box.label.strip()
    )
    # Counter preserves first-seen order and sorted() is stable
    return [label for label, _ in sorted(counts.items(), key=lambda kv: -kv[1])]


def aggregate_score(components: ScoreComponents) -> float:
    """Weighted mean of the available signals, penalized for missing ones."""
    numerator = 0.0
    denominator = 0.0
    for name, weight in SIGNAL_WEIGHTS.items():
        value = getattr(components, name)
        if value is None:
            denominator += MISSING_SIGNAL_WEIGHTS[name]
            continue
        numerator += weight * value
        denominator += weight

    if denominator <= 0:
        return 0.0
    return min(100.0, max(0.0, numerator / denominator))


class RankingEngine:
    """Ranks candidates that produced a successful inference result."""

    def __init__(
        self,
        overlap_scorer: OverlapScorer | None = None,
        metadata_scorer: MetadataScorer | None = None,
    ):
        self.overlap_scorer = overlap_scorer or OverlapScorer()
        self.metadata_scorer = metadata_scorer or MetadataScorer()

    def score_components(
        self,
        candidate: ModelCandidate,
        result: InferenceResult,
        drawn_boxes: Sequence[DrawnBox],
        frame: ImageFrame,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        target_classes: Sequence[str] = (),
    ) -> ScoreComponents:
        predictions_score = self.overlap_scorer.score(
            drawn_boxes,
            result.predictions,
            frame.with_original_size(result.image_width, result.image_height),
            confidence_threshold,
        )

        # No target classes means no metadata signal, not a zero match
        metadata_score = (
            self.metadata_scorer.score(candidate, target_classes)
            if target_classes
            else None
        )

        return ScoreComponents(
            predictions_score=predictions_score,
            metadata_score=metadata_score,
            semantic_score=candidate.semantic_score,
            image_similarity_score=candidate.image_similarity_score,
        )

    def rank(
        self,
        candidates: Sequence[ModelCandidate],
        results: Mapping[str, InferenceResult] | Sequence[InferenceResult],
        drawn_boxes: Sequence[DrawnBox],
        frame: ImageFrame,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        target_classes: Sequence[str] | None = None,
    ) -> list[RankedCandidate]:
        """
        Rank candidates best first.

        Candidates without a successful result are left out. Ties keep the
        order of `candidates`. When `target_classes` is None the drawn-box
        labels are used instead.
        """
        ensure_unique_ids([candidate.id for candidate in candidates])
        if not isinstance(results, Mapping):
            results = {result.model_id: result for result in results}
        if target_classes is None:
            target_classes = extract_target_classes(drawn_boxes)

        scored: list[tuple[ModelCandidate, ScoreComponents, float]] = []
        for candidate in candidates:
            result = results.get(candidate.id)
            if result is None or not result.succeeded:
                continue
            components = self.score_components(
                candidate,
                result,
                drawn_boxes,
                frame,
                confidence_threshold,
                target_classes,
            )
            scored.append((candidate, components, aggregate_score(components)))

        scored.sort(key=lambda item: item[2], reverse=True)

        return [
            RankedCandidate(
                model_id=candidate.id,
                final_score=final_score,
                rank=rank,
                is_best_match=rank == 0,
                components=components,
            )
            for rank, (candidate, components, final_score) in enumerate(scored)
        ]
