"""Tests for the inference backend client and its retry policy."""

import asyncio
import json
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, Mock

import aiohttp
import pytest

from modelfinder.modules.inference.errors import (
    ExhaustedRetriesError,
    InferenceConfigurationError,
    MalformedResponseError,
    TransientCallError,
)
from modelfinder.modules.inference.infrastructure.inference_client import (
    InferenceClient,
)

SUCCESS_BODY = {
    "inference_id": "abc-123",
    "time": 0.42,
    "image": {"width": 640, "height": 480},
    "predictions": [
        {
            "class": "car",
            "x": 100,
            "y": 80,
            "width": 40,
            "height": 20,
            "confidence": 0.93,
        }
    ],
}


class FakeResponse:
    def __init__(self, status: int = 200, body: object = None, text: str | None = None):
        self.status = status
        self._text = text if text is not None else json.dumps(body)

    async def text(self) -> str:
        return self._text

    async def json(self, content_type=None):
        return json.loads(self._text)


class FakeSession:
    """Replays queued responses or raises queued exceptions, one per post()."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests: list[dict] = []

    @asynccontextmanager
    async def post(self, url, **kwargs):
        self.requests.append({"url": url, **kwargs})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        yield outcome


def make_client(session, **overrides) -> InferenceClient:
    params = dict(
        api_url="https://backend.test/",
        api_key="secret",
        max_attempts=5,
        initial_backoff=1.0,
        jitter=1.0,
        session=session,
        sleep=AsyncMock(),
        rng=Mock(uniform=Mock(return_value=0.25)),
    )
    params.update(overrides)
    return InferenceClient(**params)


def slept(client: InferenceClient) -> list[float]:
    return [call.args[0] for call in client._sleep.await_args_list]


@pytest.mark.asyncio
class TestInferSuccess:
    async def test_parses_predictions_as_top_left_boxes(self):
        session = FakeSession(FakeResponse(body=SUCCESS_BODY))
        client = make_client(session)

        result = await client.infer("my-dataset/3", "aGVsbG8=", model_id="ws/my-dataset/3")

        assert result.model_id == "ws/my-dataset/3"
        assert result.succeeded
        assert result.inference_id == "abc-123"
        assert result.elapsed_seconds == 0.42
        assert (result.image_width, result.image_height) == (640, 480)
        (box,) = result.predictions
        assert box.class_name == "car"
        assert (box.x, box.y, box.width, box.height) == (80, 70, 40, 20)
        assert box.confidence == 0.93

    async def test_request_shape(self):
        session = FakeSession(FakeResponse(body=SUCCESS_BODY))
        client = make_client(session)

        await client.infer("my-dataset/3", "aGVsbG8=")

        (request,) = session.requests
        assert request["url"] == "https://backend.test/my-dataset/3"
        assert request["params"] == {"api_key": "secret"}
        assert request["data"] == "aGVsbG8="
        assert request["headers"] == {
            "Content-Type": "application/x-www-form-urlencoded"
        }
        assert "timeout" not in request

    async def test_timeout_is_forwarded_when_configured(self):
        session = FakeSession(FakeResponse(body=SUCCESS_BODY))
        client = make_client(session, timeout=12)

        await client.infer("my-dataset/3", "aGVsbG8=")

        assert session.requests[0]["timeout"].total == 12

    async def test_model_id_defaults_to_endpoint(self):
        client = make_client(FakeSession(FakeResponse(body=SUCCESS_BODY)))
        result = await client.infer("my-dataset/3", "aGVsbG8=")
        assert result.model_id == "my-dataset/3"

    async def test_measured_time_used_when_backend_omits_it(self):
        body = {**SUCCESS_BODY, "time": None, "predictions": []}
        client = make_client(FakeSession(FakeResponse(body=body)))

        result = await client.infer("m/1", "aGVsbG8=")

        assert result.predictions == []
        assert result.elapsed_seconds >= 0

    async def test_out_of_range_confidence_is_clamped(self):
        body = {
            **SUCCESS_BODY,
            "predictions": [{**SUCCESS_BODY["predictions"][0], "confidence": 1.2}],
        }
        client = make_client(FakeSession(FakeResponse(body=body)))

        result = await client.infer("m/1", "aGVsbG8=")

        assert result.predictions[0].confidence == 1.0


@pytest.mark.asyncio
class TestRetryPolicy:
    async def test_exhausts_after_five_attempts_with_exponential_backoff(self):
        session = FakeSession(*[FakeResponse(status=503, text="busy")] * 5)
        client = make_client(session)

        with pytest.raises(ExhaustedRetriesError) as exc_info:
            await client.infer("m/1", "aGVsbG8=")

        assert len(session.requests) == 5
        assert slept(client) == [1.25, 2.25, 4.25, 8.25]
        assert exc_info.value.attempts == 5
        assert isinstance(exc_info.value.last_error, TransientCallError)
        assert exc_info.value.last_error.status == 503

    async def test_network_error_then_success(self):
        session = FakeSession(
            aiohttp.ClientConnectionError("reset"),
            asyncio.TimeoutError(),
            FakeResponse(body=SUCCESS_BODY),
        )
        client = make_client(session)

        result = await client.infer("m/1", "aGVsbG8=")

        assert result.succeeded
        assert len(session.requests) == 3
        assert slept(client) == [1.25, 2.25]

    async def test_invalid_json_is_not_retried(self):
        session = FakeSession(FakeResponse(text="<html>oops</html>"))
        client = make_client(session)

        with pytest.raises(MalformedResponseError):
            await client.infer("m/1", "aGVsbG8=")

        assert len(session.requests) == 1
        assert slept(client) == []

    @pytest.mark.parametrize(
        "body",
        [
            [1, 2, 3],
            {"predictions": []},
            {**SUCCESS_BODY, "predictions": [{"class": "car", "x": "left"}]},
        ],
    )
    async def test_unexpected_shape_is_not_retried(self, body):
        session = FakeSession(FakeResponse(body=body))
        client = make_client(session)

        with pytest.raises(MalformedResponseError):
            await client.infer("m/1", "aGVsbG8=")

        assert len(session.requests) == 1

    async def test_missing_api_key_fails_without_calling(self):
        session = FakeSession()
        client = make_client(session, api_key="")

        with pytest.raises(InferenceConfigurationError):
            await client.infer("m/1", "aGVsbG8=")

        assert session.requests == []

    async def test_cancel_during_backoff(self):
        session = FakeSession(FakeResponse(status=500, text="error"))
        client = make_client(session, initial_backoff=60.0, sleep=asyncio.sleep)

        task = asyncio.create_task(client.infer("m/1", "aGVsbG8="))
        while not session.requests:
            await asyncio.sleep(0)
        await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(session.requests) == 1


class TestBackoffDelay:
    def test_delay_stays_within_jitter_bounds(self):
        client = InferenceClient(
            api_key="secret", initial_backoff=1.0, jitter=1.0, session=Mock()
        )
        for attempt in range(4):
            delay = client.backoff_delay(attempt)
            assert 2**attempt <= delay <= 2**attempt + 1.0

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            InferenceClient(api_key="secret", max_attempts=0)

    def test_url_join(self):
        client = InferenceClient(api_url="https://backend.test", api_key="k")
        assert client.url_for("/ds/2") == "https://backend.test/ds/2"
