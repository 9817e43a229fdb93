from fastapi import APIRouter

from modelfinder.api.core.dependencies import RankingEngineDep
from modelfinder.api.core.messages import APIResponse
from modelfinder.api.ranking.schemas import RankingRequest, RankingResponse
from modelfinder.modules.inference.models import RankedCandidate

router = APIRouter(prefix="/ranking", tags=["ranking"])


@router.post("", response_model=RankingResponse)
async def rank_candidates(
    body: RankingRequest,
    engine: RankingEngineDep,
) -> APIResponse[list[RankedCandidate]]:
    ranked = engine.rank(
        body.candidates,
        body.results,
        body.drawn_boxes,
        body.frame,
        confidence_threshold=body.confidence_threshold,
        target_classes=body.target_classes,
    )
    return APIResponse.success(data=ranked)
