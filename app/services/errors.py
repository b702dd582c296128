from __future__ import annotations

from sqlalchemy.exc import (
    DisconnectionError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)


class ServiceError(Exception):
    pass


class ValidationError(ServiceError, ValueError):
    """Entrada inválida; barrada antes de qualquer escrita."""


class NotFoundError(ServiceError, LookupError):
    pass


class PermissionDeniedError(ServiceError):
    pass


class StoreError(ServiceError):
    """Falha do banco, já classificada."""

    def __init__(self, message: str, *, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class TransientIOError(StoreError):
    """Conexão caiu, timeout, lock... pode tentar de novo."""


class PermanentIOError(StoreError):
    """Constraint, permissão, SQL inválido. Não adianta repetir."""


TRANSIENT_DB_ERRORS = (OperationalError, DisconnectionError, PoolTimeoutError)


def classify_store_error(exc: BaseException) -> StoreError:
    if isinstance(exc, StoreError):
        return exc
    if isinstance(exc, TRANSIENT_DB_ERRORS):
        return TransientIOError("Banco de dados indisponível no momento.", cause=exc)
    if isinstance(exc, SQLAlchemyError):
        return PermanentIOError("Erro ao gravar no banco de dados.", cause=exc)
    raise TypeError(f"Não é um erro de banco: {exc!r}")
