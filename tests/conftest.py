"""Global test configuration and fixtures for the ModelFinder API."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from modelfinder.modules.inference.infrastructure.inference_client import (
    get_inference_client,
)

from tests.factories import (
    DrawnBoxFactory,
    InferenceResultFactory,
    ModelCandidateFactory,
    PredictedBoxFactory,
)
from tests.utils.fakes import FakeInferenceClient


@pytest.fixture
def candidate_factory():
    return ModelCandidateFactory


@pytest.fixture
def predicted_box_factory():
    return PredictedBoxFactory


@pytest.fixture
def drawn_box_factory():
    return DrawnBoxFactory


@pytest.fixture
def inference_result_factory():
    return InferenceResultFactory


@pytest.fixture
def fake_inference_client() -> FakeInferenceClient:
    return FakeInferenceClient()


@pytest_asyncio.fixture
async def app(fake_inference_client: FakeInferenceClient):
    """Create FastAPI application with lifespan manager for testing."""
    from modelfinder.main import app

    app.dependency_overrides[get_inference_client] = lambda: fake_inference_client
    async with LifespanManager(app):
        yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def public_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create HTTP client for testing public endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test-modelfinder",
    ) as ac:
        yield ac
