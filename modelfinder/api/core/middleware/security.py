from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from modelfinder.api.core.exceptions.base import error_body
from modelfinder.api.core.messages import MessageCode
from modelfinder.utils.logger import get_logger
from modelfinder.utils.settings.app import AppSettings

logger = get_logger(__name__)


class PayloadSizeMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared body size exceeds the limit."""

    def __init__(self, app, max_request_size: int | None = None):
        super().__init__(app)
        self.max_request_size = max_request_size or AppSettings().MAX_REQUEST_SIZE

    async def dispatch(self, request: Request, call_next) -> Response:
        content_length = request.headers.get("Content-Length")
        if content_length and content_length.isdigit():
            size = int(content_length)
            if size > self.max_request_size:
                logger.warning(
                    "Request too large",
                    content_length=size,
                    max_request_size=self.max_request_size,
                    path=request.url.path,
                )
                return JSONResponse(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    content=error_body(
                        MessageCode.REQUEST_TOO_LARGE,
                        {
                            "description": (
                                f"Request size ({size} bytes) exceeds "
                                f"maximum allowed ({self.max_request_size} bytes)"
                            )
                        },
                    ),
                )

        return await call_next(request)
