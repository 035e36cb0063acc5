from typing import List

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from app.core.errors import ValidationError
from app.schemas.image import ImageOut
from app.services.ingest import RawFile, ingest, ingest_batch
from app.services.security import require_admin, require_user
from app.services.storage import BlobStore, get_blob_store
from app.services.uploader import Uploader

router = APIRouter(tags=["uploads"])


async def _read_upload(file: UploadFile) -> RawFile:
    return RawFile(
        data=await file.read(),
        content_type=file.content_type or "application/octet-stream",
        filename=file.filename or "image",
    )


async def _multipart_form(request: Request):
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" not in content_type:
        raise ValidationError("only multipart/form-data allowed")
    return await request.form()


@router.post("/user/image", response_model=ImageOut)
async def upload_user_image(
    request: Request,
    uploader: Uploader = Depends(require_user),
    blob_store: BlobStore = Depends(get_blob_store),
):
    form = await _multipart_form(request)
    file = form.get("file")
    if not isinstance(file, UploadFile):
        raise ValidationError("missing file")

    image = await ingest(uploader, await _read_upload(file), blob_store=blob_store)
    return ImageOut.model_validate(image)


@router.post("/admin/images", response_model=List[ImageOut])
async def upload_admin_images(
    request: Request,
    uploader: Uploader = Depends(require_admin),
    blob_store: BlobStore = Depends(get_blob_store),
):
    form = await _multipart_form(request)
    files = [f for f in form.getlist("files") if isinstance(f, UploadFile)]

    uploads = [await _read_upload(f) for f in files]
    images = await ingest_batch(uploader, uploads, blob_store=blob_store)
    return [ImageOut.model_validate(i) for i in images]
