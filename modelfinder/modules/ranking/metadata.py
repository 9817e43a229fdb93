"""Fuzzy relevance of a candidate's metadata to the classes the user is after."""

from collections.abc import Sequence

from modelfinder.modules.inference.models import ModelCandidate
from modelfinder.modules.ranking.matcher import (
    ApproximateStringMatcher,
    MatchIndex,
    RapidFuzzMatcher,
)

CLASS_MATCH_WEIGHT = 0.7
NAME_MATCH_WEIGHT = 0.3
DESCRIPTION_MATCH_WEIGHT = 0.2

# Heavily annotated classes weigh up to twice as much
MAX_COUNT_WEIGHT = 2.0
COUNT_WEIGHT_SCALE = 10_000

CLASS_MAX_DISTANCE = 0.6
NAME_MAX_DISTANCE = 0.5
DESCRIPTION_MAX_DISTANCE = 0.6


def _normalized_score(distance: float) -> float:
    return max(0.0, 100.0 - distance * 100.0)


class MetadataScorer:
    """
    Scores how well a candidate's class histogram, name and description
    match a list of target classes.

    Match indexes are cached per candidate id, since a candidate's metadata
    never changes once it has been returned by the search.
    """

    def __init__(self, matcher: ApproximateStringMatcher | None = None):
        self.matcher = matcher or RapidFuzzMatcher()
        self._indexes: dict[tuple[str, str], MatchIndex] = {}

    def clear_cache(self) -> None:
        self._indexes.clear()

    def _index_for(
        self,
        candidate: ModelCandidate,
        corpus_key: str,
        corpus: Sequence[str],
        max_distance: float,
    ) -> MatchIndex:
        key = (candidate.id, corpus_key)
        index = self._indexes.get(key)
        if index is None:
            index = self.matcher.build_index(corpus, max_distance=max_distance)
            self._indexes[key] = index
        return index

    def score(self, candidate: ModelCandidate, target_classes: Sequence[str]) -> float:
        """Metadata score in [0, 100]; 0 when there are no target classes."""
        if not target_classes:
            return 0.0

        histogram = candidate.class_histogram
        class_index = self._index_for(
            candidate,
            "class_histogram",
            [entry.name for entry in histogram],
            CLASS_MAX_DISTANCE,
        )
        name_index = self._index_for(
            candidate,
            "name",
            [candidate.name] if candidate.name else [],
            NAME_MAX_DISTANCE,
        )
        description_index = self._index_for(
            candidate,
            "description",
            [candidate.description] if candidate.description else [],
            DESCRIPTION_MAX_DISTANCE,
        )

        total = 0.0
        for target in target_classes:
            class_match = class_index.best_match(target)
            if class_match is not None:
                count = histogram[class_match.index].count
                count_weight = min(MAX_COUNT_WEIGHT, 1.0 + count / COUNT_WEIGHT_SCALE)
                total += (
                    _normalized_score(class_match.distance)
                    * CLASS_MATCH_WEIGHT
                    * count_weight
                )

            name_match = name_index.best_match(target)
            if name_match is not None:
                total += _normalized_score(name_match.distance) * NAME_MATCH_WEIGHT

            description_match = description_index.best_match(target)
            if description_match is not None:
                total += (
                    _normalized_score(description_match.distance)
                    * DESCRIPTION_MATCH_WEIGHT
                )

        return min(100.0, max(0.0, total))
