from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared Content-Length exceeds ``max_bytes``.

    Runs before the multipart body is parsed, so an oversized batch never
    reaches the blob store. Per-file limits are enforced again while
    streaming each file.
    """

    def __init__(self, app, max_bytes: int = 1_000_000):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request, call_next):
        length = request.headers.get("content-length")
        try:
            size = int(length) if length is not None else None
        except ValueError:
            size = None
        if size is not None and size > self.max_bytes:
            logger.warning(
                "Rejected %s %s: body of %d bytes exceeds %d",
                request.method,
                request.url.path,
                size,
                self.max_bytes,
            )
            return JSONResponse(
                status_code=413,
                content={
                    "error": "Request body exceeds allowed size.",
                    "code": "PAYLOAD_TOO_LARGE",
                },
            )
        return await call_next(request)
