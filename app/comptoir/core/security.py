from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi.security import OAuth2PasswordBearer
from jose import jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from app.comptoir.core.config import settings

pin_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


class TokenData(BaseModel):
    sub: str
    tenant_id: str
    role: str
    username: str
    display_name: str
    is_active: bool


def verify_pin(plain_pin: str, hashed_pin: str) -> bool:
    return pin_context.verify(plain_pin, hashed_pin)


def get_pin_hash(pin: str) -> str:
    return pin_context.hash(pin)


def create_access_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def create_user_access_token(user, expires_delta: Optional[timedelta] = None) -> str:
    return create_access_token(
        {
            "sub": str(user.id),
            "tenant_id": str(user.tenant_id),
            "role": user.role,
            "username": user.username,
            "display_name": user.display_name,
            "is_active": user.is_active,
        },
        expires_delta=expires_delta,
    )
