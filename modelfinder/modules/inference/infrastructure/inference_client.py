"""Client for the remote detection-model inference backend."""

import asyncio
import random
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import aiohttp
from pydantic import BaseModel, Field, ValidationError

from modelfinder.modules.inference.errors import (
    ExhaustedRetriesError,
    InferenceConfigurationError,
    MalformedResponseError,
    TransientCallError,
)
from modelfinder.modules.inference.models import InferenceResult, PredictedBox
from modelfinder.utils.logger import get_logger
from modelfinder.utils.settings.inference import inference_settings

logger = get_logger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class _WirePrediction(BaseModel):
    class_name: str = Field(alias="class")
    x: float
    y: float
    width: float
    height: float
    confidence: float


class _WireImage(BaseModel):
    width: float
    height: float


class InferenceResponse(BaseModel):
    """Success body of the backend; boxes are centre-anchored."""

    inference_id: str | None = None
    time: float | None = None
    image: _WireImage
    predictions: list[_WirePrediction] = Field(default_factory=list)


class InferenceClient:
    """Runs one model's inference call against the backend, with retries."""

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        max_attempts: int | None = None,
        initial_backoff: float | None = None,
        jitter: float | None = None,
        timeout: float | None = None,
        session: aiohttp.ClientSession | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        self.api_url = api_url or inference_settings.INFERENCE_API_URL
        self.api_key = (
            api_key if api_key is not None else inference_settings.INFERENCE_API_KEY
        )
        self.max_attempts = (
            max_attempts
            if max_attempts is not None
            else inference_settings.INFERENCE_MAX_ATTEMPTS
        )
        self.initial_backoff = (
            initial_backoff
            if initial_backoff is not None
            else inference_settings.INFERENCE_INITIAL_BACKOFF_MS / 1000
        )
        self.jitter = (
            jitter
            if jitter is not None
            else inference_settings.INFERENCE_JITTER_MS / 1000
        )
        self.timeout = (
            timeout if timeout is not None else inference_settings.INFERENCE_TIMEOUT
        )
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self._session = session
        self._sleep = sleep
        self._rng = rng or random.Random()

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after the failed attempt with 0-based index `attempt`."""
        return self.initial_backoff * 2**attempt + self._rng.uniform(0, self.jitter)

    def url_for(self, endpoint: str) -> str:
        return f"{self.api_url.rstrip('/')}/{endpoint.lstrip('/')}"

    async def infer(
        self, endpoint: str, image_payload: str, model_id: str | None = None
    ) -> InferenceResult:
        """Run inference for one model, retrying transient failures."""
        if not self.api_key:
            raise InferenceConfigurationError("INFERENCE_API_KEY is not set")

        model_id = model_id or endpoint
        last_error: TransientCallError | None = None

        for attempt in range(self.max_attempts):
            try:
                return await self._request(endpoint, image_payload, model_id)
            except TransientCallError as e:
                last_error = e
                if attempt == self.max_attempts - 1:
                    break
                delay = self.backoff_delay(attempt)
                logger.warning(
                    "Inference attempt failed, retrying",
                    model_id=model_id,
                    attempt=attempt + 1,
                    max_attempts=self.max_attempts,
                    retry_in=round(delay, 3),
                    error=str(e),
                )
                await self._sleep(delay)

        assert last_error is not None
        logger.error(
            "Inference retries exhausted",
            model_id=model_id,
            attempts=self.max_attempts,
            error=str(last_error),
        )
        raise ExhaustedRetriesError(endpoint, self.max_attempts, last_error)

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[aiohttp.ClientSession]:
        if self._session is not None:
            yield self._session
            return
        async with aiohttp.ClientSession() as session:
            yield session

    async def _request(
        self, endpoint: str, image_payload: str, model_id: str
    ) -> InferenceResult:
        request_kwargs: dict = {}
        if self.timeout:
            request_kwargs["timeout"] = aiohttp.ClientTimeout(total=self.timeout)

        started = time.perf_counter()
        async with self._session_scope() as session:
            try:
                async with session.post(
                    self.url_for(endpoint),
                    params={"api_key": self.api_key},
                    data=image_payload,
                    headers={"Content-Type": FORM_CONTENT_TYPE},
                    **request_kwargs,
                ) as response:
                    if not 200 <= response.status < 300:
                        body = await response.text()
                        raise TransientCallError(
                            f"Inference backend returned {response.status}: {body[:200]}",
                            status=response.status,
                        )
                    try:
                        data = await response.json(content_type=None)
                    except ValueError as e:
                        raise MalformedResponseError(
                            f"Inference backend returned invalid JSON: {e}"
                        ) from e
            except aiohttp.ClientError as e:
                raise TransientCallError(f"Inference request failed: {e}") from e
            except asyncio.TimeoutError as e:
                raise TransientCallError("Inference request timed out") from e

        return self._parse_inference_result(
            model_id, data, time.perf_counter() - started
        )

    def _parse_inference_result(
        self, model_id: str, data: object, measured_seconds: float
    ) -> InferenceResult:
        """Parse a backend response into an InferenceResult with top-left boxes."""
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Expected a JSON object, got {type(data).__name__}"
            )
        try:
            response = InferenceResponse.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(f"Unexpected response shape: {e}") from e

        predictions = [
            PredictedBox(
                class_name=pred.class_name,
                x=pred.x - pred.width / 2,
                y=pred.y - pred.height / 2,
                width=pred.width,
                height=pred.height,
                confidence=min(1.0, max(0.0, pred.confidence)),
            )
            for pred in response.predictions
        ]

        return InferenceResult(
            model_id=model_id,
            predictions=predictions,
            image_width=response.image.width,
            image_height=response.image.height,
            elapsed_seconds=(
                response.time if response.time is not None else measured_seconds
            ),
            inference_id=response.inference_id,
        )


async def get_inference_client() -> InferenceClient:
    """Get inference client for dependency injection."""
    return InferenceClient()
