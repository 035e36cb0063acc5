# Top imports
import uvicorn
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles
import sentry_sdk
from app.config import settings
from app.db import init_db, close_db
from app.core.errors import ServiceError, service_error_handler
from app.core.middleware import ErrorEnvelopeMiddleware
from app.services.cache import get_query_cache
from app.services.metrics import metrics_middleware, metrics_endpoint

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Initialize Sentry if DSN is provided
if settings.SENTRY_DSN:
    sentry_sdk.init(dsn=settings.SENTRY_DSN, traces_sample_rate=0.1, environment=settings.APP_ENV)

# Method: lifespan()
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logging.info("Starting image feed service...")
    # Secret guard for production deployments
    env = (settings.APP_ENV or "").strip().lower()
    if env == "production":
        v = settings.JWT_SECRET
        if not v or v.startswith("dev-") or len(v) < 32:
            raise RuntimeError("Insecure JWT_SECRET; set a real secret in production")
    await init_db()

    yield

    # Shutdown
    logging.info("Shutting down image feed service...")
    await get_query_cache().close()
    await close_db()
    logging.info("Cache and database connections closed")

app = FastAPI(
    title="Image Feed API",
    description="Image uploads with blur-hash placeholders and a seeded, semi-random feed",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.add_exception_handler(ServiceError, service_error_handler)

from app.routers import router
app.include_router(router)

# Local blob store objects are served by the app itself
if settings.STORAGE_DRIVER.strip().lower() == "local":
    app.mount("/media", StaticFiles(directory=settings.STORAGE_DIR, check_dir=False), name="media")

# Middleware setup
app.add_middleware(GZipMiddleware, minimum_size=1024)
app.add_middleware(ErrorEnvelopeMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Prometheus request metrics unless METRICS_ENABLED=0
metrics_middleware(app)

@app.get("/metrics")
async def prometheus_metrics():
    return await metrics_endpoint()


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000)
