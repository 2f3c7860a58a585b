from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from bootcamp_api.core.config import settings

JWT_ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def create_jwt(payload: dict, secret: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    data = payload.copy()
    data.update({"iat": int(now.timestamp()), "exp": int((now + expires_delta).timestamp())})
    return jwt.encode(data, secret, algorithm=JWT_ALGORITHM)


def decode_jwt(token: str, secret: str) -> dict:
    return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])


def create_user_token(user_id: str, role: str, expires_delta: timedelta | None = None) -> str:
    ttl = expires_delta if expires_delta is not None else timedelta(days=settings.JWT_EXPIRE_DAYS)
    return create_jwt({"sub": str(user_id), "role": role}, settings.JWT_SECRET, ttl)


def decode_user_token(token: str) -> dict:
    return decode_jwt(token, settings.JWT_SECRET)
