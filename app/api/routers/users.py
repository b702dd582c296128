from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.api.deps import CurrentSession, DBSession, require_capability
from app.infra.models import UserORM
from app.schemas.users import UserCreate, UserOut
from app.services.catalog_service import LIKE_ESCAPE, like_pattern
from app.services.permissions import Capability
from app.services.security import hash_password
from app.services.session import SessionContext

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[CurrentSession])

manage_users = Depends(require_capability(Capability.MANAGE_USERS))


@router.post("", response_model=UserOut, status_code=201)
def create_user(payload: UserCreate, db: Session = DBSession, ctx: SessionContext = manage_users):
    email = payload.email.strip().lower()
    if db.scalar(select(UserORM.id).where(UserORM.email == email)):
        raise HTTPException(status_code=409, detail="Email já cadastrado.")

    try:
        password_hash = hash_password(payload.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    user = UserORM(name=payload.name.strip(), email=email, password_hash=password_hash, role=payload.role)
    db.add(user)
    db.flush()
    logger.info("usuário %s (%s) criado por %s", user.id, user.role.value, ctx.user_id)
    return user


@router.get("", response_model=list[UserOut], dependencies=[manage_users])
def list_users(
    db: Session = DBSession,
    q: Optional[str] = Query(default=None, description="Busca por nome ou email"),
):
    stmt = select(UserORM).order_by(UserORM.name.asc(), UserORM.id.asc())
    if q and q.strip():
        pattern = like_pattern(q)
        stmt = stmt.where(
            or_(UserORM.name.ilike(pattern, escape=LIKE_ESCAPE), UserORM.email.ilike(pattern, escape=LIKE_ESCAPE))
        )
    return db.execute(stmt).scalars().all()


@router.get("/{user_id}", response_model=UserOut)
def get_profile(user_id: int, db: Session = DBSession):
    user = db.get(UserORM, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="Usuário não encontrado.")
    return user
