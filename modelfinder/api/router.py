from fastapi import APIRouter

from modelfinder.api.health.router import router as health_router
from modelfinder.api.inference.router import router as inference_router
from modelfinder.api.ranking.router import router as ranking_router

# V1 API router
v1_router = APIRouter(prefix="/v1")

v1_router.include_router(inference_router)
v1_router.include_router(ranking_router)

# Main API router
api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(v1_router)
