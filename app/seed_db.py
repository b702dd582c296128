from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import select

from app.infra.db import SessionLocal, engine
from app.infra.models import Base, ClientORM, ProductORM
from app.init_db import ensure_admin
from app.services import catalog_service

logger = logging.getLogger(__name__)

CLIENTS = [
    {"name": "Ana", "phone": "(85) 99999-0001", "email": "ana@example.com", "address": "Rua A, 10"},
    {"name": "Bruno", "phone": "(85) 99999-0002", "email": "bruno@example.com", "address": "Rua B, 20"},
]

PRODUCTS = [
    {"code": "001", "name": "Caneta", "price": Decimal("2.50"), "category": "Papelaria", "unit": "un", "stock": Decimal("100")},
    {"code": "002", "name": "Caderno", "price": Decimal("15.00"), "category": "Papelaria", "unit": "un", "stock": Decimal("40")},
    {"code": "003", "name": "Borracha", "price": Decimal("1.20"), "category": "Papelaria", "unit": "un", "stock": Decimal("60")},
]


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        ensure_admin(db)

        for data in CLIENTS:
            exists = db.scalar(select(ClientORM.id).where(ClientORM.name == data["name"]))
            if not exists:
                client = catalog_service.create_client(db, data)
                logger.info("cliente criado id=%s nome=%s", client.id, client.name)

        for data in PRODUCTS:
            exists = db.scalar(select(ProductORM.id).where(ProductORM.code == data["code"]))
            if not exists:
                product = catalog_service.create_product(db, data)
                logger.info("produto criado id=%s nome=%s", product.id, product.name)

        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
