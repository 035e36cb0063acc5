import datetime as dt
from jose import jwt, JWTError
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config import settings
from app.models.user import AdminUser, User
from app.services.uploader import Role, Uploader


bearer = HTTPBearer()


def create_token(account_id: int, role: Role) -> str:
    now = dt.datetime.now(dt.timezone.utc)
    exp = now + dt.timedelta(minutes=settings.ACCESS_TOKEN_EXPIRES_MIN)
    payload = {
        "sub": str(account_id),
        "role": role.value,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


async def require_uploader(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> Uploader:
    try:
        payload = jwt.decode(
            creds.credentials,
            settings.JWT_SECRET,
            algorithms=["HS256"],
            options={"leeway": 30},  # 30s clock skew tolerance
        )
        role = Role(payload["role"])
        account_id = int(payload["sub"])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except (JWTError, KeyError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    if role is Role.ADMIN:
        admin = await AdminUser.filter(id=account_id).first()
        if admin:
            return Uploader.for_admin(admin)
    else:
        user = await User.filter(id=account_id).first()
        if user:
            return Uploader.for_user(user)
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account not found")


async def require_user(uploader: Uploader = Depends(require_uploader)) -> Uploader:
    if uploader.role is not Role.USER:
        raise HTTPException(status_code=403, detail="User session required")
    return uploader


async def require_admin(uploader: Uploader = Depends(require_uploader)) -> Uploader:
    if uploader.role is not Role.ADMIN:
        raise HTTPException(status_code=403, detail="Admin only")
    return uploader
