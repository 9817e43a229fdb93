from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DEBUG: bool = False
    ENVIRONMENT: str = "DEV"
    LOG_LEVEL: str = "INFO"
    API_VERSION: str = "0.1.0"
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
    ]

    # Base64 images for a full-resolution photo easily exceed a few MB
    MAX_REQUEST_SIZE: int = 20 * 1024 * 1024  # 20MB

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.upper() == "PROD"

    def validate_prod(self) -> None:
        """Sanity checks for production environment."""
        if self.is_production and not self.CORS_ORIGINS:
            raise ValueError("CORS_ORIGINS must be set in production")
