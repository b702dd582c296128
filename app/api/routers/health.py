from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import APIRouter, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.infra.db import engine
from app.services.errors import TransientIOError, classify_store_error

logger = logging.getLogger(__name__)

router = APIRouter()


def check_database() -> tuple[bool, str | None]:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True, None
    except SQLAlchemyError as e:
        err = classify_store_error(e)
        logger.warning("health: banco indisponível: %r", e)
        # só o tipo, nunca a mensagem do driver (pode ter url/credenciais)
        return False, "transient" if isinstance(err, TransientIOError) else "permanent"


@router.head("/health", include_in_schema=False)
def health_head(response: Response) -> None:
    ok, _ = check_database()
    response.status_code = 200 if ok else 503


@router.get("/health")
def health(response: Response) -> dict[str, Any]:
    started = time.perf_counter()
    db_ok, db_error = check_database()
    if not db_ok:
        response.status_code = 503

    return {
        "status": "ok" if db_ok else "degraded",
        "db": {"ok": db_ok, "error": db_error},
        "elapsed_ms": int((time.perf_counter() - started) * 1000),
    }
