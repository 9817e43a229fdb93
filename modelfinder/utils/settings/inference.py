"""Inference backend settings configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class InferenceSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    INFERENCE_API_URL: str = "https://serverless.roboflow.com/"
    INFERENCE_API_KEY: str | None = None

    INFERENCE_MAX_ATTEMPTS: int = Field(default=5, ge=1)
    INFERENCE_INITIAL_BACKOFF_MS: int = Field(default=1000, ge=0)
    INFERENCE_JITTER_MS: int = Field(default=1000, ge=0)

    # None keeps every candidate call in flight at once
    INFERENCE_CONCURRENCY_LIMIT: int | None = Field(default=None, ge=0)

    # None leaves aiohttp's own default in place
    INFERENCE_TIMEOUT: int | None = None


class RankingSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    CONFIDENCE_THRESHOLD: float = 0.5


inference_settings = InferenceSettings()
ranking_settings = RankingSettings()
