import base64
import binascii
from collections.abc import AsyncIterator

from fastapi import APIRouter, status
from fastapi.responses import StreamingResponse

from modelfinder.api.core.dependencies import (
    CandidateProviderFactory,
    CandidateProviderFactoryDep,
    InferenceOrchestratorDep,
)
from modelfinder.api.core.exceptions.base import ModelFinderException
from modelfinder.api.core.messages import MessageCode
from modelfinder.api.inference.schemas import InferenceStreamRequest
from modelfinder.modules.inference.models import ModelCandidate
from modelfinder.modules.inference.orchestrator import (
    InferenceStream,
    encode_image_payload,
)
from modelfinder.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/inference", tags=["inference"])

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
}


def _validate_image_payload(image: str) -> str:
    payload = encode_image_payload(image)
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ModelFinderException(
            MessageCode.IMAGE_PROCESSING_ERROR,
            status.HTTP_400_BAD_REQUEST,
            details={"description": "Image must be base64 encoded"},
        )
    return payload


async def _resolve_candidates(
    body: InferenceStreamRequest, provider_factory: CandidateProviderFactory
) -> list[ModelCandidate]:
    if not body.search_hits:
        return list(body.candidates)
    try:
        found = await provider_factory(body.search_hits).search(body.search)
    except ValueError as e:
        raise ModelFinderException(
            MessageCode.INVALID_INPUT,
            status.HTTP_400_BAD_REQUEST,
            details={"description": f"Unreadable search hit: {e}"},
        )
    return [*body.candidates, *found]


async def _sse_events(stream: InferenceStream) -> AsyncIterator[str]:
    # Leaving the context early (client gone) cancels in-flight calls
    async with stream:
        async for event in stream:
            yield event.to_sse()


@router.post("/stream")
async def stream_inference(
    body: InferenceStreamRequest,
    orchestrator: InferenceOrchestratorDep,
    provider_factory: CandidateProviderFactoryDep,
) -> StreamingResponse:
    """Run every candidate model on the image and stream results as they land."""
    payload = _validate_image_payload(body.image)
    candidates = await _resolve_candidates(body, provider_factory)
    stream = orchestrator.stream_inference(payload, candidates)

    logger.info(
        "Streaming inference",
        candidates=len(candidates),
        from_search=len(candidates) - len(body.candidates),
    )
    return StreamingResponse(
        _sse_events(stream),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
