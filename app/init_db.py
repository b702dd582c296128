from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.infra.db import engine, SessionLocal
from app.infra.models import Base, UserORM, UserRole
from app.services.security import hash_password

logger = logging.getLogger(__name__)


def ensure_admin(db: Session) -> None:
    """
    Cria um usuário admin caso não exista.
    Dados vêm de ADMIN_EMAIL, ADMIN_PASSWORD e ADMIN_NAME (settings).
    """
    email = settings.ADMIN_EMAIL.strip().lower()
    password = settings.ADMIN_PASSWORD.strip()
    name = settings.ADMIN_NAME.strip()

    if not email or not password:
        logger.warning("[startup] admin vars inválidas; pulando criação do admin")
        return

    existing = db.query(UserORM).filter(UserORM.email == email).first()
    if existing:
        return

    user = UserORM(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=UserRole.ADMIN,
    )
    db.add(user)
    try:
        db.commit()
        logger.info("Admin criado: %s", email)
    except IntegrityError:
        db.rollback()
        # Em caso de corrida (2 instâncias subindo), ignora
        logger.info("Admin já existe")


def main():
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    logger.info("Tabelas criadas!")

    db = SessionLocal()
    try:
        ensure_admin(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
