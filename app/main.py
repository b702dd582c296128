from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from dotenv import load_dotenv
load_dotenv()

from app.config import settings
from app.infra.db import engine, SessionLocal
from app.infra.models import Base
from app.init_db import ensure_admin
from app.services.session import prune_revoked_tokens
from app.services.errors import (
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    TransientIOError,
    ValidationError,
    classify_store_error,
)

from app.api.routers.auth import router as auth_router
from app.api.routers.cart import router as cart_router
from app.api.routers.clients import router as clients_router
from app.api.routers.health import router as health_router
from app.api.routers.payments import router as payments_router
from app.api.routers.products import router as products_router
from app.api.routers.sales import router as sales_router
from app.api.routers.users import router as users_router


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("app")


ALLOW_ORIGINS_LIST = settings.allowed_origins


app = FastAPI(title="Gestor de Vendas API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS_LIST,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

logger.info("[CORS] allow_origins = %s", ALLOW_ORIGINS_LIST)


# erros -> http
@app.exception_handler(ValidationError)
def _validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(PermissionDeniedError)
def _forbidden(request: Request, exc: PermissionDeniedError):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(StoreError)
def _store_error(request: Request, exc: StoreError):
    if isinstance(exc, TransientIOError):
        return JSONResponse(
            status_code=503,
            content={"detail": "Serviço temporariamente indisponível. Tente novamente."},
        )
    logger.error("erro permanente no banco em %s %s: %r", request.method, request.url.path, exc.cause)
    return JSONResponse(status_code=500, content={"detail": "Erro ao processar operação."})


@app.exception_handler(SQLAlchemyError)
def _sqlalchemy_error(request: Request, exc: SQLAlchemyError):
    return _store_error(request, classify_store_error(exc))


@app.on_event("startup")
def _startup() -> None:
    logger.info("[startup] creating tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("[startup] tables created/checked")

    db = SessionLocal()
    try:
        ensure_admin(db)
        prune_revoked_tokens(db)
        db.commit()
    finally:
        db.close()


app.include_router(health_router, tags=["health"])
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(users_router, prefix="/users", tags=["users"])
app.include_router(clients_router, prefix="/clients", tags=["clients"])
app.include_router(products_router, prefix="/products", tags=["products"])
app.include_router(cart_router, prefix="/cart", tags=["cart"])
app.include_router(sales_router, prefix="/sales", tags=["sales"])
app.include_router(payments_router, prefix="/payments", tags=["payments"])
