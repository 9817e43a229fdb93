import uvicorn
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from modelfinder.api.core.exceptions.base import register_exception_handlers
from modelfinder.api.core.middleware.logging import logging_middleware
from modelfinder.api.core.middleware.security import PayloadSizeMiddleware
from modelfinder.api.router import api_router
from modelfinder.utils.settings.app import AppSettings
from modelfinder.utils.logger import setup_logging


app_settings = AppSettings()
is_production = app_settings.is_production


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger = setup_logging(is_production, app_settings.LOG_LEVEL)
    app_settings.validate_prod()
    logger.info("Starting ModelFinder API...")

    yield

    logger.info("Shutting down ModelFinder API...")


app = FastAPI(
    title="ModelFinder API",
    description="Rank candidate detection models against an image and drawn boxes",
    version=app_settings.API_VERSION,
    lifespan=lifespan,
    docs_url=None if is_production else "/docs",
    redoc_url=None if is_production else "/redoc",
    openapi_url=None if is_production else "/openapi.json",
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(
    PayloadSizeMiddleware, max_request_size=app_settings.MAX_REQUEST_SIZE
)
app.middleware("http")(logging_middleware)

app.include_router(api_router)


def run_dev_server():
    """Run development server with auto-reload."""
    uvicorn.run(
        "modelfinder.main:app",
        host="0.0.0.0",
        port=8010,
        reload=True,
        access_log=False,
    )


def run_prod_server():
    """Run production server."""
    uvicorn.run(
        "modelfinder.main:app",
        host="0.0.0.0",
        port=8010,
        reload=False,
        access_log=False,
    )
