from pydantic import BaseModel, ConfigDict
from datetime import datetime


class ImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    size: int
    width: int
    height: int
    url: str
    placeholder: str
    created_at: datetime
    user_id: int | None = None
    admin_id: int | None = None


class ImageSummary(BaseModel):
    """Feed projection of an image: no size, dimensions or owner."""
    id: int
    name: str
    url: str
    created_at: datetime
    placeholder: str


FEED_COLUMNS = tuple(ImageSummary.model_fields)
