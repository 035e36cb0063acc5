import os
import asyncio
import logging
from typing import Optional
from tortoise import Tortoise
from app.config import settings

_logger = logging.getLogger("db")

MODELS = [
    "app.models.user",
    "app.models.image",
]

def _tortoise_url_from_env() -> str:
    """Normalize database URL for Tortoise ORM and force SQLite for tests."""
    if "PYTEST_CURRENT_TEST" in os.environ:
        return "sqlite://:memory:"

    url = settings.DATABASE_URL.strip().strip('"').strip("'")
    # Normalize to tortoise "postgres://" style
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgres://", 1)
    return url

def _build_tortoise_config(db_url: str) -> dict:
    return {
        "connections": {"default": db_url},
        "apps": {
            "models": {
                "models": MODELS,
                "default_connection": "default",
            }
        },
        "use_tz": False,
        "timezone": "UTC",
    }

async def init_db(db_url: Optional[str] = None, max_retries: int = 3, delay_seconds: float = 0.5) -> None:
    """Initialize database with retry logic in the current event loop.

    Schemas are generated in safe mode, so existing tables are left alone.
    The last connection error is re-raised once all attempts are used up.
    """
    config = _build_tortoise_config(db_url or _tortoise_url_from_env())
    for attempt in range(1, max_retries + 1):
        try:
            await Tortoise.init(config=config)
            await Tortoise.generate_schemas(safe=True)
            _logger.info("Database initialized successfully")
            return
        except (OSError, ConnectionError) as exc:
            if attempt == max_retries:
                _logger.error(
                    "Database unavailable after %s attempts. Error: %s",
                    attempt,
                    exc,
                )
                raise
            _logger.info(
                "DB init failed (attempt %s/%s): %s; retrying in %.1fs",
                attempt,
                max_retries,
                exc,
                delay_seconds,
            )
            await asyncio.sleep(delay_seconds)

async def close_db() -> None:
    """Close database connections in the current event loop."""
    await Tortoise.close_connections()
