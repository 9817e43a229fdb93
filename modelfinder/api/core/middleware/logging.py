import time
import uuid

import structlog
from fastapi import Request

from modelfinder.utils.logger import get_client_ip, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


async def logging_middleware(request: Request, call_next):
    if request.url.path.startswith("/health"):
        return await call_next(request)

    started = time.perf_counter()
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id

    # For event streams this is time to first byte, not stream duration
    logger.info(
        "request",
        ip_address=get_client_ip(request),
        status_code=response.status_code,
        duration_ms=int((time.perf_counter() - started) * 1000),
    )
    return response
