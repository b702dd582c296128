from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import CurrentSession, DBSession
from app.config import settings
from app.infra.models import RevokedTokenORM, UserORM
from app.schemas.auth import LoginIn, TokenOut
from app.schemas.users import UserOut
from app.services.cart import cart_store
from app.services.security import authenticate
from app.services.jwt_service import create_access_token
from app.services.session import SessionContext

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = DBSession):
    user = authenticate(db, payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=401, detail="Credenciais inválidas.")

    token = create_access_token(sub=str(user.id), role=user.role.value)
    logger.info("login: user=%s", user.id)
    return TokenOut(
        access_token=token,
        expires_in=settings.JWT_EXPIRES_MINUTES * 60,
        role=user.role,
    )


@router.post("/logout", status_code=204)
def logout(db: Session = DBSession, ctx: SessionContext = CurrentSession):
    expires_at = ctx.expires_at or datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRES_MINUTES)
    db.add(RevokedTokenORM(jti=ctx.token_id, user_id=ctx.user_id, expires_at=expires_at))
    db.flush()
    cart_store.drop(ctx.token_id)
    logger.info("logout: user=%s", ctx.user_id)


@router.get("/me", response_model=UserOut)
def me(db: Session = DBSession, ctx: SessionContext = CurrentSession):
    return db.get(UserORM, ctx.user_id)
