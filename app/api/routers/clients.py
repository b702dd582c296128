from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.api.deps import CurrentSession, DBSession, require_capability
from app.schemas.clients import ClientCreate, ClientUpdate, ClientOut
from app.schemas.exports import ExportTableOut
from app.services import catalog_service
from app.services.exports import clients_table
from app.services.permissions import Capability
from app.services.retry import run_with_retry

router = APIRouter(dependencies=[CurrentSession])


@router.post("", response_model=ClientOut, status_code=201)
def create_client(payload: ClientCreate, db: Session = DBSession):
    data = payload.model_dump()
    return run_with_retry(db, lambda s: catalog_service.create_client(s, data))


@router.get("", response_model=list[ClientOut])
def list_clients(
    db: Session = DBSession,
    q: Optional[str] = Query(default=None, description="Busca por nome"),
):
    return catalog_service.list_clients(db, q)


@router.get("/export", response_model=ExportTableOut)
def export_clients(db: Session = DBSession, q: Optional[str] = Query(default=None)):
    return clients_table(catalog_service.list_clients(db, q))


@router.get("/{client_id}", response_model=ClientOut)
def get_client(client_id: int, db: Session = DBSession):
    return catalog_service.get_client(db, client_id)


@router.put("/{client_id}", response_model=ClientOut)
def update_client(client_id: int, payload: ClientUpdate, db: Session = DBSession):
    data = payload.model_dump(exclude_unset=True)
    return run_with_retry(db, lambda s: catalog_service.update_client(s, client_id, data))


@router.delete("/{client_id}", status_code=204)
def delete_client(
    client_id: int,
    db: Session = DBSession,
    _ctx=Depends(require_capability(Capability.DELETE_CLIENT)),
):
    run_with_retry(db, lambda s: catalog_service.delete_client(s, client_id))
