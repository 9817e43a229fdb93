"""Geometric agreement between user-drawn boxes and a model's predictions."""

import math
from collections.abc import Sequence

from modelfinder.modules.inference.models import DrawnBox, ImageFrame, PredictedBox

DEFAULT_CONFIDENCE_THRESHOLD = 0.5


class OverlapScorer:
    def score(
        self,
        drawn_boxes: Sequence[DrawnBox],
        predictions: Sequence[PredictedBox],
        frame: ImageFrame,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> int | None:
        """
        Percentage of the drawn area covered by the best single prediction per box.

        Args:
            drawn_boxes: Boxes drawn on the rendered image
            predictions: Model predictions in original-image pixels
            frame: Rendered-to-original mapping for the drawn boxes
            confidence_threshold: Predictions below this confidence are ignored

        Returns:
            Score in [0, 100], or None when nothing was drawn
        """
        if not drawn_boxes:
            return None

        predicted = [
            prediction.to_box()
            for prediction in predictions
            if prediction.confidence >= confidence_threshold
        ]

        covered = 0.0
        total_area = 0.0
        for drawn in drawn_boxes:
            box = frame.to_original(drawn.to_box())
            area = box.area
            if area <= 0:
                continue
            total_area += area
            covered += max(
                (box.intersection_area(other) for other in predicted), default=0.0
            )

        if total_area <= 0:
            return 0
        # Half-up, so 12.5 scores 13
        return math.floor(100 * covered / total_area + 0.5)
