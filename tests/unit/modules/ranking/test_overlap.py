"""Tests for drawn-box / predicted-box overlap scoring."""

from modelfinder.modules.inference.models import DrawnBox, ImageFrame, Point
from modelfinder.modules.ranking.overlap import OverlapScorer
from tests.factories import DrawnBoxFactory, PredictedBoxFactory

IDENTITY_FRAME = ImageFrame(rendered_width=1000, rendered_height=1000)


def drawn(x: float, y: float, width: float, height: float, label=None) -> DrawnBox:
    return DrawnBox(
        start=Point(x=x, y=y), end=Point(x=x + width, y=y + height), label=label
    )


class TestOverlapSignalPresence:
    def test_no_drawn_boxes_is_unavailable(self):
        predictions = [PredictedBoxFactory()]
        assert OverlapScorer().score([], predictions, IDENTITY_FRAME) is None

    def test_drawn_boxes_without_predictions_score_zero(self):
        assert OverlapScorer().score([DrawnBoxFactory()], [], IDENTITY_FRAME) == 0

    def test_only_degenerate_drawn_boxes_score_zero(self):
        boxes = [drawn(10, 10, 0, 50), drawn(20, 20, 30, 0)]
        predictions = [PredictedBoxFactory(x=0, y=0, width=500, height=500)]
        assert OverlapScorer().score(boxes, predictions, IDENTITY_FRAME) == 0


class TestOverlapScore:
    def test_quarter_overlap(self):
        frame = ImageFrame(
            rendered_width=640,
            rendered_height=480,
            original_width=640,
            original_height=480,
        )
        prediction = PredictedBoxFactory(x=50, y=50, width=100, height=100, confidence=0.9)

        score = OverlapScorer().score([drawn(0, 0, 100, 100)], [prediction], frame, 0.5)

        assert score == 25

    def test_low_confidence_predictions_are_ignored(self):
        prediction = PredictedBoxFactory(x=0, y=0, width=100, height=100, confidence=0.4)
        scorer = OverlapScorer()

        assert scorer.score([drawn(0, 0, 100, 100)], [prediction], IDENTITY_FRAME) == 0
        assert (
            scorer.score(
                [drawn(0, 0, 100, 100)], [prediction], IDENTITY_FRAME, 0.4
            )
            == 100
        )

    def test_best_single_prediction_counts_not_the_union(self):
        left_half = PredictedBoxFactory(x=0, y=0, width=50, height=100)
        right_half = PredictedBoxFactory(x=50, y=0, width=50, height=100)

        score = OverlapScorer().score(
            [drawn(0, 0, 100, 100)], [left_half, right_half], IDENTITY_FRAME
        )

        assert score == 50

    def test_unmatched_extra_predictions_do_not_penalize(self):
        exact = PredictedBoxFactory(x=0, y=0, width=100, height=100)
        elsewhere = PredictedBoxFactory(x=600, y=600, width=100, height=100)

        score = OverlapScorer().score(
            [drawn(0, 0, 100, 100)], [exact, elsewhere], IDENTITY_FRAME
        )

        assert score == 100

    def test_score_is_area_weighted_across_drawn_boxes(self):
        # 100x100 fully covered, 100x300 not covered at all
        covered = drawn(0, 0, 100, 100)
        missed = drawn(500, 500, 100, 300)
        prediction = PredictedBoxFactory(x=0, y=0, width=100, height=100)

        score = OverlapScorer().score([covered, missed], [prediction], IDENTITY_FRAME)

        assert score == 25

    def test_zero_area_box_is_left_out_of_the_denominator(self):
        prediction = PredictedBoxFactory(x=0, y=0, width=100, height=100)

        score = OverlapScorer().score(
            [drawn(0, 0, 100, 100), drawn(300, 300, 0, 0)], [prediction], IDENTITY_FRAME
        )

        assert score == 100

    def test_drag_direction_does_not_matter(self):
        backwards = DrawnBox(start=Point(x=100, y=100), end=Point(x=0, y=0))
        prediction = PredictedBoxFactory(x=50, y=50, width=100, height=100)

        assert OverlapScorer().score([backwards], [prediction], IDENTITY_FRAME) == 25


class TestCoordinateSpaces:
    def test_drawn_boxes_are_mapped_to_original_pixels(self):
        # Image shown at half size, 10px from the canvas origin
        frame = ImageFrame(
            rendered_width=50,
            rendered_height=50,
            offset_x=10,
            offset_y=10,
            original_width=100,
            original_height=100,
        )
        prediction = PredictedBoxFactory(x=0, y=0, width=100, height=100)

        score = OverlapScorer().score([drawn(10, 10, 50, 50)], [prediction], frame)

        assert score == 100

    def test_score_is_invariant_under_shared_scale_and_offset(self):
        boxes = [drawn(10, 20, 80, 60), drawn(200, 150, 40, 90)]
        predictions = [
            PredictedBoxFactory(x=30, y=40, width=70, height=50),
            PredictedBoxFactory(x=190, y=170, width=60, height=30),
        ]
        baseline = OverlapScorer().score(boxes, predictions, IDENTITY_FRAME)

        factor, dx, dy = 2.5, 30.0, -7.0
        moved_boxes = [
            DrawnBox(
                start=Point(x=b.start.x * factor + dx, y=b.start.y * factor + dy),
                end=Point(x=b.end.x * factor + dx, y=b.end.y * factor + dy),
            )
            for b in boxes
        ]
        moved_predictions = [
            PredictedBoxFactory(
                x=p.x * factor + dx,
                y=p.y * factor + dy,
                width=p.width * factor,
                height=p.height * factor,
            )
            for p in predictions
        ]

        assert baseline > 0
        assert (
            OverlapScorer().score(moved_boxes, moved_predictions, IDENTITY_FRAME)
            == baseline
        )

    def test_frame_mapping_matches_pre_converted_boxes(self):
        frame = ImageFrame(
            rendered_width=320,
            rendered_height=240,
            offset_x=16,
            offset_y=8,
            original_width=1280,
            original_height=960,
        )
        predictions = [PredictedBoxFactory(x=100, y=100, width=400, height=300)]
        rendered = drawn(56, 38, 100, 75)
        # (56 - 16) * 4 = 160, (38 - 8) * 4 = 120
        converted = drawn(160, 120, 400, 300)

        assert OverlapScorer().score([rendered], predictions, frame) == OverlapScorer().score(
            [converted], predictions, IDENTITY_FRAME
        )
