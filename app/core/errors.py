"""
Service error taxonomy.

Every error carries a short, stable message that is safe to show to clients
and the HTTP status the API layer answers with.
"""

from fastapi import Request
from fastapi.responses import JSONResponse


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Bad input shape or type, raised before any side effect."""
    status_code = 400


class PayloadTooLarge(ServiceError):
    status_code = 413


class UploadFailed(ServiceError):
    """The blob store rejected the object or could not be reached."""
    status_code = 502


class CodecError(ServiceError):
    """Malformed placeholder signature or unreadable raster."""
    status_code = 422


class NotFound(ServiceError):
    status_code = 404


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
