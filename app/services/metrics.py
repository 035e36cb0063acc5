"""
Prometheus metrics for the image service
"""

import os
import time
from fastapi import Request
from fastapi.responses import Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

REQUESTS_TOTAL = Counter(
    "imagefeed_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"]
)

REQUEST_DURATION = Histogram(
    "imagefeed_http_request_seconds",
    "Request duration in seconds",
    ["method", "path"]
)

UPLOADS_TOTAL = Counter(
    "imagefeed_uploads_total",
    "Image uploads by outcome",
    ["status"]
)

FEED_REQUESTS_TOTAL = Counter(
    "imagefeed_feed_requests_total",
    "Feed page requests by cache outcome",
    ["cache"]
)

ENABLED = os.getenv("METRICS_ENABLED", "1") == "1"

async def metrics_endpoint():
    """Prometheus metrics endpoint"""
    if not ENABLED:
        return Response(b"metrics disabled", media_type="text/plain")
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

def metrics_middleware(app):
    """Add metrics middleware to FastAPI app"""
    if not ENABLED:
        return

    @app.middleware("http")
    async def _metrics(request: Request, call_next):
        start = time.time()
        response = await call_next(request)

        # Route template keeps label cardinality bounded
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        REQUESTS_TOTAL.labels(
            method=request.method,
            path=path,
            status=str(response.status_code)
        ).inc()

        REQUEST_DURATION.labels(
            method=request.method,
            path=path
        ).observe(time.time() - start)

        return response

def record_upload(status: str):
    """Record image upload metric"""
    if ENABLED:
        UPLOADS_TOTAL.labels(status=status).inc()

def record_feed_request(cache: str):
    if ENABLED:
        FEED_REQUESTS_TOTAL.labels(cache=cache).inc()
