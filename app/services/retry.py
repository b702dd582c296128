from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.services.errors import TransientIOError, classify_store_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


def compute_backoff_seconds(tries: int, base: Optional[float] = None) -> float:
    base = settings.STORE_RETRY_BASE_SECONDS if base is None else base
    if tries <= 1:
        return base
    if tries == 2:
        return base * 5
    return base * 15


def run_with_retry(
    db: Session,
    fn: Callable[[Session], T],
    *,
    attempts: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Executa `fn(db)` e faz commit. Erro transitório do banco -> rollback e
    tenta de novo (com espera), até `attempts` vezes.
    Erros de validação e permanentes sobem na primeira vez.
    """
    attempts = attempts or settings.STORE_RETRY_ATTEMPTS

    tries = 0
    while True:
        tries += 1
        try:
            result = fn(db)
            db.commit()
            return result
        except SQLAlchemyError as e:
            db.rollback()
            err = classify_store_error(e)
            if not isinstance(err, TransientIOError) or tries >= attempts:
                logger.error("falha no banco (tentativa %s/%s): %r", tries, attempts, e)
                raise err from e
            wait = compute_backoff_seconds(tries)
            logger.warning(
                "erro transitório no banco (tentativa %s/%s), nova tentativa em %.2fs: %r",
                tries, attempts, wait, e,
            )
            sleep(wait)
        except Exception:
            db.rollback()
            raise
