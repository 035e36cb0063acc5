"""
Semi-random image feed.

Every image gets a score of its upload time plus up to three days of seeded
pseudo-random jitter, so recent uploads usually, but not always, come first.
The whole ranked list for a seed is cached, which keeps pagination stable for
the lifetime of the cache entry even while new images arrive.
"""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from app.config import settings
from app.core.errors import ValidationError
from app.models.image import Image
from app.schemas.image import FEED_COLUMNS, ImageSummary
from app.services.cache import QueryCache
from app.services.metrics import record_feed_request

logger = logging.getLogger(__name__)

FEED_JITTER_SECONDS = 3 * 24 * 60 * 60
RANKING_EXPRESSION = "UNIX_TIMESTAMP(created_at) + RAND({seed}) * %d DESC" % FEED_JITTER_SECONDS


class SeededRandom:
    """Reproduces the value sequence of MySQL's ``RAND(seed)``."""

    MAX_VALUE = 0x3FFFFFFF

    def __init__(self, seed: int):
        self.seed1 = ((seed * 0x10001 + 55555555) & 0xFFFFFFFF) % self.MAX_VALUE
        self.seed2 = ((seed * 0x10000001) & 0xFFFFFFFF) % self.MAX_VALUE

    def random(self) -> float:
        self.seed1 = (self.seed1 * 3 + self.seed2) % self.MAX_VALUE
        self.seed2 = (self.seed1 + self.seed2 + 33) % self.MAX_VALUE
        return self.seed1 / self.MAX_VALUE


def unix_timestamp(value: datetime) -> float:
    # Naive datetimes are stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def rank_images(rows: Iterable[Mapping[str, Any]], seed: int) -> List[ImageSummary]:
    """Order feed rows by descending time-decayed random score.

    One random draw is taken per row in primary key order, the way the
    database evaluates ``RAND(seed)`` during a table scan.
    """
    rand = SeededRandom(seed)
    scored = []
    for row in sorted(rows, key=lambda r: r["id"]):
        summary = ImageSummary.model_validate(row)
        score = unix_timestamp(summary.created_at) + rand.random() * FEED_JITTER_SECONDS
        scored.append((score, summary))
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [summary for _, summary in scored]


def feed_cache_key(seed: int) -> str:
    signature = "SELECT {} FROM images ORDER BY {}".format(
        ", ".join(FEED_COLUMNS), RANKING_EXPRESSION.format(seed=seed)
    )
    return "image_feed:" + hashlib.sha1(signature.encode("utf-8")).hexdigest()


async def load_ranked_feed(seed: int, *, cache: QueryCache, ttl_ms: Optional[int] = None) -> List[ImageSummary]:
    key = feed_cache_key(seed)
    cached = await cache.get(key)
    if cached is not None:
        try:
            ranked = [ImageSummary.model_validate(row) for row in cached]
        except (PydanticValidationError, TypeError) as e:
            logger.warning("Ignoring malformed cached feed %s: %s", key, e)
        else:
            record_feed_request("hit")
            return ranked

    record_feed_request("miss")
    rows = await Image.all().order_by("id").values(*FEED_COLUMNS)
    ranked = rank_images(rows, seed)
    logger.info("Ranked %s images for feed seed %s", len(ranked), seed)
    await cache.set(
        key,
        [summary.model_dump(mode="json") for summary in ranked],
        settings.FEED_CACHE_TTL_MS if ttl_ms is None else ttl_ms,
    )
    return ranked


async def fetch_feed(
    seed: int,
    page: int,
    *,
    cache: QueryCache,
    page_size: Optional[int] = None,
    ttl_ms: Optional[int] = None,
) -> List[ImageSummary]:
    """Return one 1-indexed page of the ranked feed for ``seed``.

    Pages past the end are empty. Page numbers below 1 are rejected.
    """
    if page < 1:
        raise ValidationError("page must be a positive integer")
    size = settings.FEED_PAGE_SIZE if page_size is None else page_size

    ranked = await load_ranked_feed(seed, cache=cache, ttl_ms=ttl_ms)
    start = (page - 1) * size
    return ranked[start:start + size]
