# app/routers/images.py

from typing import List

from fastapi import APIRouter, Depends, Query

from app.core.errors import NotFound
from app.models.image import Image
from app.schemas.image import ImageOut, ImageSummary
from app.services.cache import QueryCache, get_query_cache
from app.services.feed import fetch_feed

router = APIRouter(prefix="/images", tags=["images"])


@router.get("/feed", response_model=List[ImageSummary])
async def image_feed(
    seed: int = Query(..., description="Jitter seed; reuse it to page through a stable ordering"),
    page: int = Query(1, description="1-indexed page number"),
    cache: QueryCache = Depends(get_query_cache),
):
    return await fetch_feed(seed, page, cache=cache)


@router.get("/{image_id}", response_model=ImageOut)
async def get_image(image_id: int):
    img = await Image.filter(id=image_id).first()
    if not img:
        raise NotFound("image not found")
    return ImageOut.model_validate(img)
