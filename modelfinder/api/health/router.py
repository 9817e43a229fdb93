"""Health check endpoints for debugging and monitoring."""

from fastapi import APIRouter

from modelfinder.utils.settings.app import AppSettings
from modelfinder.utils.settings.inference import inference_settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/liveness")
async def liveness_check():
    """Simple liveness check - indicates if service is running."""
    return {"status": "alive", "service": "modelfinder"}


@router.get("/")
async def health_check():
    """Report whether inference calls can be issued at all."""
    inference_configured = bool(inference_settings.INFERENCE_API_KEY)
    return {
        "status": "healthy" if inference_configured else "degraded",
        "version": AppSettings().API_VERSION,
        "inference_api_key": "configured" if inference_configured else "missing",
    }
