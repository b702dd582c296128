from typing import Optional

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.infra.models import UserORM

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def _assert_bcrypt_limit(raw: str) -> None:
    if len(raw.encode("utf-8")) > 72:
        raise ValueError("Senha muito longa. Use uma senha menor.")

def hash_password(raw: str) -> str:
    _assert_bcrypt_limit(raw)
    return pwd_context.hash(raw)

def verify_password(raw: str, hashed: str) -> bool:
    if len(raw.encode("utf-8")) > 72:
        return False
    return pwd_context.verify(raw, hashed)

def authenticate(db: Session, email: str, password: str) -> Optional[UserORM]:
    """Usuário se email/senha conferem, senão None."""
    email = (email or "").strip().lower()
    user = db.execute(select(UserORM).where(UserORM.email == email)).scalars().first()
    if not user or not verify_password(password, user.password_hash):
        return None
    return user
