# Import all models for Tortoise ORM registration
from .base import BaseModel
from .user import User, AdminUser
from .image import Image

__all__ = [
    "BaseModel",
    "User",
    "AdminUser",
    "Image",
]
