"""Global exception handlers for the FastAPI application."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..messages import MessageCode, get_default_message, message_code_for_status
from modelfinder.modules.inference.errors import DuplicateCandidateError
from modelfinder.utils.logger import get_logger

logger = get_logger(__name__)


class ModelFinderException(Exception):
    """API error carrying a message code, an HTTP status and optional details."""

    def __init__(
        self,
        message_code: MessageCode,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict | None = None,
        headers: dict | None = None,
    ):
        self.message_code = message_code
        self.status_code = status_code
        self.message: str = get_default_message(message_code)
        self.details = details or {}
        self.headers = headers or {}
        super().__init__(self.message)

    def to_response_dict(self) -> dict:
        return error_body(self.message_code, self.details, self.message)


def error_body(
    message_code: MessageCode, details: dict, message: str | None = None
) -> dict:
    return {
        "message_code": message_code,
        "message": message or get_default_message(message_code),
        "details": details,
    }


def _serializable_errors(errors) -> list[dict]:
    serializable_errors = []
    for error in errors:
        error_dict = dict(error)
        # ctx can hold the raw exception instance
        error_dict.pop("ctx", None)
        if isinstance(error_dict.get("input"), (bytes, bytearray)):
            error_dict["input"] = "<bytes>"
        serializable_errors.append(error_dict)
    return serializable_errors


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""

    @app.exception_handler(ModelFinderException)
    async def modelfinder_exception_handler(
        request: Request, exc: ModelFinderException
    ) -> JSONResponse:
        logger.warning(
            "Request rejected",
            message_code=exc.message_code.value,
            status_code=exc.status_code,
            details=exc.details,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response_dict(),
            headers=exc.headers,
        )

    @app.exception_handler(DuplicateCandidateError)
    async def duplicate_candidate_handler(
        request: Request, exc: DuplicateCandidateError
    ) -> JSONResponse:
        logger.warning("Duplicate candidate ids", candidate_ids=exc.candidate_ids)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(
                MessageCode.DUPLICATE_CANDIDATE_ID,
                {"candidate_ids": exc.candidate_ids},
            ),
        )

    # Also catches fastapi.HTTPException, which subclasses it
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(
                message_code_for_status(exc.status_code),
                {"description": str(exc.detail)},
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning(
            "Validation error occurred",
            path=request.url.path,
            error_count=len(exc.errors()),
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body(
                MessageCode.INVALID_INPUT,
                {
                    "description": "Request validation failed",
                    "validation_errors": _serializable_errors(exc.errors()),
                },
            ),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            exception_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(
                MessageCode.INTERNAL_SERVER_ERROR,
                {"description": "An unexpected error occurred"},
            ),
        )
