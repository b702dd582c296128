from datetime import datetime, timedelta, timezone
import uuid

from jose import jwt

from app.config import settings


def new_token_id() -> str:
    return uuid.uuid4().hex


def create_access_token(*, sub: str, role: str, jti: str | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": sub,                   # user_id (string)
        "role": role,                 # ADMIN/USER
        "jti": jti or new_token_id(), # id da sessão (usado no logout)
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.JWT_EXPIRES_MINUTES)).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
