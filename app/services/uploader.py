from dataclasses import dataclass
from enum import Enum
from typing import Union, assert_never

from app.models.user import AdminUser, User


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Uploader:
    """The session an upload is made under and the account behind it."""
    role: Role
    account: Union[User, AdminUser]

    @classmethod
    def for_user(cls, user: User) -> "Uploader":
        return cls(Role.USER, user)

    @classmethod
    def for_admin(cls, admin: AdminUser) -> "Uploader":
        return cls(Role.ADMIN, admin)


def storage_partition(role: Role) -> str:
    """Blob store key prefix for uploads made under ``role``."""
    if role is Role.USER:
        return "user"
    elif role is Role.ADMIN:
        return "admin"
    else:
        assert_never(role)


def ownership(uploader: Uploader) -> dict:
    """Image ownership fields: exactly one of ``user`` / ``admin`` is set."""
    role = uploader.role
    if role is Role.USER:
        return {"user": uploader.account, "admin": None}
    elif role is Role.ADMIN:
        return {"user": None, "admin": uploader.account}
    else:
        assert_never(role)
