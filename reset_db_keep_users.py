from sqlalchemy import delete

from app.infra.db import SessionLocal, engine
from app.infra.models import ClientORM, PaymentORM, ProductORM, SaleItemORM, SaleORM
from app.services.session import prune_revoked_tokens

# ordem: filhos antes dos pais
TABLES = [PaymentORM, SaleItemORM, SaleORM, ProductORM, ClientORM]

with engine.begin() as conn:
    for model in TABLES:
        conn.execute(delete(model))

db = SessionLocal()
try:
    pruned = prune_revoked_tokens(db)
    db.commit()
finally:
    db.close()

print(f"OK: limpo (mantive users, {pruned} revogações expiradas apagadas)")
