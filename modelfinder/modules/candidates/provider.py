"""Boundary to the external candidate search, plus parsers for its hit shapes."""

from collections.abc import Sequence
from typing import Any, Protocol

from pydantic import BaseModel, Field

from modelfinder.modules.inference.models import ClassCount, ModelCandidate
from modelfinder.utils.logger import get_logger

logger = get_logger(__name__)


class SearchCriteria(BaseModel):
    """Which slice of the search results to turn into candidates."""

    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=100, ge=1)


class CandidateProvider(Protocol):
    """Returns the candidate models for a search. Failures abort the request."""

    async def search(self, criteria: SearchCriteria) -> list[ModelCandidate]: ...


def _first(fields: dict[str, Any], key: str) -> Any:
    value = fields.get(key)
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _latest_version(models: list | None, fallback: Any) -> int | None:
    version = models[-1] if models else fallback
    return int(version) if version is not None else None


def _class_histogram(raw: list[dict] | None) -> list[ClassCount]:
    return [
        ClassCount(name=entry["name"], count=entry.get("count", 0))
        for entry in raw or []
        if entry.get("name")
    ]


def parse_search_hit(hit: dict[str, Any]) -> ModelCandidate:
    """Candidate from a semantic-search hit, whose fields are single-item lists."""
    fields = hit.get("fields", {})
    url = _first(fields, "url")
    version = _latest_version(fields.get("models"), _first(fields, "latestVersion"))

    return ModelCandidate(
        id=f"{url}/{version}",
        name=_first(fields, "name") or "Unknown Model",
        description=_first(fields, "description") or "",
        class_histogram=_class_histogram(fields.get("class_counts")),
        semantic_score=(
            min(100.0, float(hit["_score"])) if hit.get("_score") is not None else None
        ),
        url=url,
        version=version,
        dataset_id=_first(fields, "dataset_id"),
    )


def parse_dataset_source(source: dict[str, Any]) -> ModelCandidate:
    """Candidate from a dataset index document (`_source` of a keyword hit)."""
    url = source.get("url")
    version = _latest_version(source.get("models"), source.get("latestVersion"))

    return ModelCandidate(
        id=f"{url}/{version}",
        name=source.get("name") or "Unknown Model",
        description=source.get("description") or "",
        class_histogram=_class_histogram(source.get("class_counts")),
        url=url,
        version=version,
        dataset_id=source.get("dataset_id"),
    )


def parse_hit(hit: dict[str, Any]) -> ModelCandidate:
    if "fields" in hit:
        return parse_search_hit(hit)
    if "_source" in hit:
        return parse_dataset_source(hit["_source"])
    raise ValueError("Search hit has neither 'fields' nor '_source'")


class SearchHitCandidateProvider:
    """
    Candidates from search hits the caller has already fetched.

    Hits without a trained version are skipped, and a dataset that shows up
    more than once keeps its first (highest ranked) hit.
    """

    def __init__(self, hits: Sequence[dict[str, Any]]):
        self.hits = list(hits)

    async def search(self, criteria: SearchCriteria) -> list[ModelCandidate]:
        candidates: list[ModelCandidate] = []
        seen: set[str] = set()
        skipped = 0
        for hit in self.hits:
            candidate = parse_hit(hit)
            if candidate.url is None or candidate.version is None:
                skipped += 1
                continue
            if candidate.id in seen:
                continue
            seen.add(candidate.id)
            candidates.append(candidate)

        if skipped:
            logger.info("Skipped search hits without a trained model", skipped=skipped)
        return candidates[criteria.offset : criteria.offset + criteria.limit]
