# ErrorEnvelopeMiddleware
import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from fastapi import Request, Response
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

class ErrorEnvelopeMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        start = time.time()
        request_id = request.headers.get("x-request-id", str(uuid.uuid4())[:8])
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s [%s]", request.method, request.url.path, request_id)
            return JSONResponse(
                status_code=500,
                content={"detail": "internal server error", "request_id": request_id},
                headers={"x-request-id": request_id},
            )
        response.headers.setdefault("x-request-id", request_id)
        response.headers.setdefault("x-content-type-options", "nosniff")
        response.headers.setdefault("x-frame-options", "DENY")
        response.headers.setdefault("referrer-policy", "same-origin")
        response.headers["server-timing"] = f"total;dur={(time.time() - start) * 1000:.2f}"
        return response
