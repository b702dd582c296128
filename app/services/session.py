from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.infra.models import RevokedTokenORM, UserORM, UserRole
from app.services.errors import PermissionDeniedError
from app.services.permissions import Capability, can

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """
    Usuário logado + token da sessão.
    Criado no login (a cada request, a partir do JWT) e invalidado no logout.
    """
    user_id: int
    name: str
    role: UserRole
    token_id: str
    expires_at: Optional[datetime] = None

    @classmethod
    def from_user(
        cls, user: UserORM, token_id: str, expires_at: Optional[datetime] = None
    ) -> "SessionContext":
        return cls(user_id=user.id, name=user.name, role=user.role, token_id=token_id, expires_at=expires_at)

    def can(self, capability: Capability) -> bool:
        return can(self.role, capability)

    def require(self, capability: Capability) -> None:
        if not self.can(capability):
            raise PermissionDeniedError("Sem permissão.")


def prune_revoked_tokens(db: Session, now: Optional[datetime] = None) -> int:
    """Apaga revogações de tokens já expirados (o JWT é recusado pelo exp de qualquer jeito)."""
    now = now or datetime.now(timezone.utc)
    result = db.execute(
        delete(RevokedTokenORM)
        .where(RevokedTokenORM.expires_at <= now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        logger.info("revogações expiradas apagadas: %s", result.rowcount)
    return result.rowcount
