from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.infra.db import get_db
from app.infra.models import RevokedTokenORM, UserORM
from app.services.cart import Cart, cart_store
from app.services.jwt_service import decode_access_token
from app.services.permissions import Capability
from app.services.session import SessionContext

DBSession = Depends(get_db)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Token inválido ou expirado.",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_session(
    token: str = Depends(oauth2_scheme),
    db: Session = DBSession,
) -> SessionContext:
    """Sessão da request: usuário do token + jti (id da sessão)."""
    try:
        payload = decode_access_token(token)
        user_id = int(payload.get("sub") or "")
        jti = payload.get("jti")
        expires_at = datetime.fromtimestamp(int(payload["exp"]), timezone.utc)
    except (JWTError, KeyError, ValueError):
        raise _unauthorized()
    if not jti:
        raise _unauthorized()

    # sessão encerrada no logout
    if db.get(RevokedTokenORM, jti):
        raise _unauthorized()

    user = db.get(UserORM, user_id)
    if not user:
        raise _unauthorized()
    return SessionContext.from_user(user, token_id=jti, expires_at=expires_at)


CurrentSession = Depends(get_session)


def require_capability(capability: Capability) -> Callable:
    def dep(ctx: SessionContext = CurrentSession) -> SessionContext:
        ctx.require(capability)
        return ctx

    return dep


def current_cart(ctx: SessionContext = CurrentSession) -> Cart:
    expires_at = ctx.expires_at.timestamp() if ctx.expires_at else None
    return cart_store.get(ctx.token_id, expires_at=expires_at)
