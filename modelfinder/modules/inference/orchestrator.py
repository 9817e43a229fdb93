"""Fan-out of inference calls across candidate models as an ordered event stream."""

import asyncio
import base64
import time
from collections.abc import Sequence

from modelfinder.modules.inference.errors import InferenceError, ensure_unique_ids
from modelfinder.modules.inference.events import (
    CompleteEvent,
    ErrorEvent,
    InferenceEvent,
    ModelsEvent,
    StreamEvent,
)
from modelfinder.modules.inference.infrastructure.inference_client import (
    InferenceClient,
)
from modelfinder.modules.inference.models import InferenceResult, ModelCandidate
from modelfinder.utils.logger import get_logger
from modelfinder.utils.settings.inference import inference_settings

logger = get_logger(__name__)


def encode_image_payload(image: bytes | str) -> str:
    """Base64 body for the backend from raw bytes, base64 text or a data URL."""
    if isinstance(image, bytes):
        return base64.b64encode(image).decode("ascii")
    if image.startswith("data:") and "," in image:
        return image.split(",", 1)[1]
    return image


class InferenceStream:
    """
    Cancellable async iterator over one request's inference events.

    Yields a single ModelsEvent, then one InferenceEvent or ErrorEvent per
    candidate as its call settles, then a single CompleteEvent. Once
    `cancel()` has been called nothing else is yielded.
    """

    def __init__(
        self,
        client: InferenceClient,
        image_payload: str,
        candidates: Sequence[ModelCandidate],
        concurrency_limit: int | None = None,
    ):
        self._client = client
        self._image_payload = image_payload
        self._candidates = list(candidates)
        self._semaphore = (
            asyncio.Semaphore(concurrency_limit) if concurrency_limit else None
        )
        self._queue: asyncio.Queue[StreamEvent | None] = asyncio.Queue()
        self._tasks: list[asyncio.Task] = []
        self._supervisor: asyncio.Task | None = None
        self._started = False
        self._finished = False
        self._cancelled = False
        self._started_at = 0.0

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def finished(self) -> bool:
        return self._finished

    def __aiter__(self) -> "InferenceStream":
        return self

    async def __anext__(self) -> StreamEvent:
        if self._cancelled or self._finished:
            raise StopAsyncIteration
        if not self._started:
            self._start()

        event = await self._queue.get()
        if event is None or self._cancelled:
            raise StopAsyncIteration
        if isinstance(event, CompleteEvent):
            self._finished = True
        return event

    async def __aenter__(self) -> "InferenceStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if not self._finished:
            await self.cancel()

    async def cancel(self) -> None:
        """Stop the stream, abort in-flight calls and drop pending events."""
        if self._cancelled or self._finished:
            return
        self._cancelled = True

        pending = [task for task in self._tasks if not task.done()]
        if self._supervisor is not None and not self._supervisor.done():
            pending.append(self._supervisor)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        # Wake a consumer blocked on the queue
        self._queue.put_nowait(None)
        logger.info(
            "Inference stream cancelled",
            candidates=len(self._candidates),
            aborted=len(pending),
        )

    def _start(self) -> None:
        self._started = True
        self._started_at = time.perf_counter()
        logger.info("Inference stream started", candidates=len(self._candidates))

        self._queue.put_nowait(ModelsEvent(models=self._candidates))
        for candidate in self._candidates:
            self._tasks.append(asyncio.create_task(self._run_pipeline(candidate)))
        self._supervisor = asyncio.create_task(self._await_pipelines())

    def _emit(self, event: StreamEvent) -> None:
        if not self._cancelled:
            self._queue.put_nowait(event)

    async def _run_pipeline(self, candidate: ModelCandidate) -> None:
        if self._semaphore is None:
            await self._infer_candidate(candidate)
            return
        async with self._semaphore:
            await self._infer_candidate(candidate)

    async def _infer_candidate(self, candidate: ModelCandidate) -> None:
        if self._cancelled:
            return

        started = time.perf_counter()
        try:
            result = await self._client.infer(
                candidate.endpoint, self._image_payload, model_id=candidate.id
            )
        except InferenceError as e:
            logger.warning(
                "Model inference failed",
                model_id=candidate.id,
                duration=round(time.perf_counter() - started, 3),
                error=str(e),
            )
            self._emit(ErrorEvent(model_id=candidate.id, error=str(e)))
            return
        except Exception as e:
            # Failures stay with this candidate
            logger.exception(
                "Unexpected error during model inference", model_id=candidate.id
            )
            self._emit(
                ErrorEvent(
                    model_id=candidate.id, error=f"Failed to process inference: {e}"
                )
            )
            return

        logger.info(
            "Model inference completed",
            model_id=candidate.id,
            predictions=len(result.predictions),
            duration=round(time.perf_counter() - started, 3),
        )
        self._emit(InferenceEvent(model_id=candidate.id, result=result))

    async def _await_pipelines(self) -> None:
        await asyncio.gather(*self._tasks)
        if self._cancelled:
            return
        logger.info(
            "Inference stream complete",
            candidates=len(self._candidates),
            duration=round(time.perf_counter() - self._started_at, 3),
        )
        self._emit(CompleteEvent())


class InferenceOrchestrator:
    """Runs every candidate model against one image and streams the outcomes."""

    def __init__(
        self,
        client: InferenceClient,
        concurrency_limit: int | None = None,
    ):
        self.client = client
        self.concurrency_limit = (
            concurrency_limit
            if concurrency_limit is not None
            else inference_settings.INFERENCE_CONCURRENCY_LIMIT
        )
        if self.concurrency_limit is not None and self.concurrency_limit < 0:
            raise ValueError("concurrency_limit must not be negative")

    def stream_inference(
        self, image: bytes | str, candidates: Sequence[ModelCandidate]
    ) -> InferenceStream:
        ensure_unique_ids([candidate.id for candidate in candidates])
        return InferenceStream(
            self.client,
            encode_image_payload(image),
            candidates,
            concurrency_limit=self.concurrency_limit,
        )


async def collect_results(stream: InferenceStream) -> dict[str, InferenceResult]:
    """Drain a stream into one result slot per candidate, failures included."""
    results: dict[str, InferenceResult] = {}
    async for event in stream:
        if isinstance(event, InferenceEvent):
            results[event.model_id] = event.result
        elif isinstance(event, ErrorEvent):
            results[event.model_id] = event.as_result()
    return results
