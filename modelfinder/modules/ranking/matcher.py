"""Approximate string matching used by metadata scoring."""

from collections.abc import Callable, Sequence
from typing import NamedTuple, Protocol

from rapidfuzz import fuzz, process, utils


class Match(NamedTuple):
    index: int
    choice: str
    distance: float  # 0.0 is an exact match, 1.0 shares nothing


class MatchIndex(Protocol):
    def best_match(self, query: str) -> Match | None: ...


class ApproximateStringMatcher(Protocol):
    """Builds a searchable index over a fixed corpus of strings."""

    def build_index(
        self, corpus: Sequence[str], max_distance: float = 1.0
    ) -> MatchIndex: ...


class RapidFuzzIndex:
    def __init__(
        self,
        corpus: Sequence[str],
        max_distance: float,
        scorer: Callable[..., float],
    ):
        self.corpus = list(corpus)
        self.max_distance = max_distance
        self._scorer = scorer
        self._processed = [utils.default_process(choice) for choice in self.corpus]

    def best_match(self, query: str) -> Match | None:
        processed_query = utils.default_process(query)
        if not processed_query or not self.corpus:
            return None

        found = process.extractOne(
            processed_query,
            self._processed,
            scorer=self._scorer,
            processor=None,
            score_cutoff=(1.0 - self.max_distance) * 100,
        )
        if found is None:
            return None

        _, similarity, index = found
        return Match(index, self.corpus[index], 1.0 - similarity / 100)


class RapidFuzzMatcher:
    """Matcher backed by rapidfuzz's weighted ratio."""

    def __init__(self, scorer: Callable[..., float] = fuzz.WRatio):
        self.scorer = scorer

    def build_index(
        self, corpus: Sequence[str], max_distance: float = 1.0
    ) -> RapidFuzzIndex:
        return RapidFuzzIndex(corpus, max_distance, self.scorer)
