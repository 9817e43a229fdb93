from collections.abc import Callable, Sequence
from typing import Annotated, Any

from fastapi import Depends

from modelfinder.modules.candidates.provider import (
    CandidateProvider,
    SearchHitCandidateProvider,
)
from modelfinder.modules.inference.infrastructure.inference_client import (
    InferenceClient,
    get_inference_client,
)
from modelfinder.modules.inference.orchestrator import InferenceOrchestrator
from modelfinder.modules.ranking.engine import RankingEngine

CandidateProviderFactory = Callable[[Sequence[dict[str, Any]]], CandidateProvider]


async def get_inference_orchestrator(
    client: Annotated[InferenceClient, Depends(get_inference_client)],
) -> InferenceOrchestrator:
    """Get inference orchestrator bound to a fresh client."""
    return InferenceOrchestrator(client)


async def get_ranking_engine() -> RankingEngine:
    """Get ranking engine; scorer caches live for one request."""
    return RankingEngine()


async def get_candidate_provider_factory() -> CandidateProviderFactory:
    """Builds the provider that turns a request's search hits into candidates."""
    return SearchHitCandidateProvider


InferenceOrchestratorDep = Annotated[
    InferenceOrchestrator, Depends(get_inference_orchestrator)
]
RankingEngineDep = Annotated[RankingEngine, Depends(get_ranking_engine)]
CandidateProviderFactoryDep = Annotated[
    CandidateProviderFactory, Depends(get_candidate_provider_factory)
]
