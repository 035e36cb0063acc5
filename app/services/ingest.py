"""
Image ingestion: size gate, blob store upload, placeholder, metadata insert.

The metadata row is written last, so a failure at any earlier step leaves no
Image record behind. Each image is inserted in its own transaction.
"""

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import List, Optional, Sequence
from uuid import uuid4

from fastapi.concurrency import run_in_threadpool
from PIL import Image as PILImage
from tortoise.transactions import in_transaction

from app.config import settings
from app.core.errors import CodecError, PayloadTooLarge, UploadFailed, ValidationError
from app.models.image import Image
from app.services.metrics import record_upload
from app.services.placeholder import make_placeholder
from app.services.storage import BlobStore
from app.services.uploader import Uploader, ownership, storage_partition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawFile:
    data: bytes
    content_type: str
    filename: str


def open_image(data: bytes) -> PILImage.Image:
    """Decode image bytes fully, so truncated pixel data fails before any upload."""
    try:
        picture = PILImage.open(BytesIO(data))
        picture.load()
        return picture
    except (OSError, SyntaxError, PILImage.DecompressionBombError) as e:
        raise CodecError("unreadable image") from e


async def ingest(
    uploader: Uploader,
    upload: RawFile,
    *,
    blob_store: BlobStore,
    max_bytes: Optional[int] = None,
) -> Image:
    limit = settings.MAX_IMAGE_BYTES if max_bytes is None else max_bytes
    size = len(upload.data)
    if size > limit:
        record_upload("rejected")
        raise PayloadTooLarge("image too big")

    picture = await run_in_threadpool(open_image, upload.data)
    width, height = picture.size

    key = f"{storage_partition(uploader.role)}/{uuid4().hex}"
    try:
        url = await blob_store.put(upload.data, key, upload.content_type)
    except Exception as e:
        logger.exception("Blob store upload failed for %s (key=%s)", upload.filename, key)
        record_upload("failed")
        raise UploadFailed("image upload failed") from e

    placeholder = await run_in_threadpool(make_placeholder, picture)

    async with in_transaction() as conn:
        image = await Image.create(
            using_db=conn,
            name=upload.filename,
            size=size,
            width=width,
            height=height,
            url=url,
            placeholder=placeholder,
            **ownership(uploader),
        )

    record_upload("success")
    return image


async def ingest_batch(
    uploader: Uploader,
    uploads: Sequence[RawFile],
    *,
    blob_store: BlobStore,
) -> List[Image]:
    """Ingest several files one after another.

    Content types are checked for every file before anything is stored. A
    failure part-way through propagates and leaves earlier images committed.
    """
    if not uploads:
        raise ValidationError("no files")
    for i, upload in enumerate(uploads):
        if not (upload.content_type or "").startswith("image/"):
            raise ValidationError(f"{i}th file is not an image")

    images = []
    for i, upload in enumerate(uploads):
        logger.info("Uploading file %s/%s: %s", i + 1, len(uploads), upload.filename)
        images.append(await ingest(uploader, upload, blob_store=blob_store))
    return images
