# avaliacoes/routes/admin_pastorais_fastapi.py
import json
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from avaliacoes import database
from avaliacoes.audit import log_event
from avaliacoes.auth import get_super_admin
from avaliacoes.csrf import csrf_protect
from avaliacoes.exceptions import ConflictError, ForbiddenError, NotFoundError
from avaliacoes.models.pastoral import DEFAULT_SUBDOMAIN, Pastoral
from avaliacoes.models.usuario import User
from avaliacoes.rate_limiter import admin_rate_limit
from avaliacoes.schemas import pastoral as schemas_pastoral

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin/pastorais",
    tags=["Admin - Pastorais"],
    dependencies=[Depends(get_super_admin), Depends(csrf_protect)]
)


def _get_pastoral(db: Session, pastoral_id: int) -> Pastoral:
    pastoral = db.get(Pastoral, pastoral_id)
    if pastoral is None:
        raise NotFoundError(f"Nenhuma pastoral encontrada com ID {pastoral_id}")
    return pastoral


def _check_subdomain(db: Session, subdomain: str, ignore_id: int = None) -> None:
    query = db.query(Pastoral.id).filter(Pastoral.subdomain == subdomain)
    if ignore_id is not None:
        query = query.filter(Pastoral.id != ignore_id)
    if query.first():
        raise ConflictError(f"O subdomínio \"{subdomain}\" já está em uso")


def _read(pastoral: Pastoral) -> dict:
    return schemas_pastoral.PastoralRead.model_validate(pastoral).model_dump()


@router.get("")
def read_pastorais(db: Session = Depends(database.get_db)):
    pastorais = db.query(Pastoral).order_by(Pastoral.name).all()
    return {"success": True, "total": len(pastorais), "data": [_read(p) for p in pastorais]}


@router.get("/{pastoral_id}")
def read_pastoral(pastoral_id: int, db: Session = Depends(database.get_db)):
    return {"success": True, "data": _read(_get_pastoral(db, pastoral_id))}


@router.post("", status_code=status.HTTP_201_CREATED)
@admin_rate_limit()
def create_pastoral(
    request: Request,
    pastoral: schemas_pastoral.PastoralCreate,
    current_user: User = Depends(get_super_admin),
    db: Session = Depends(database.get_db),
):
    _check_subdomain(db, pastoral.subdomain)

    dados = pastoral.model_dump()
    dados["config"] = json.dumps(dados["config"], ensure_ascii=False) if dados["config"] else None
    db_pastoral = Pastoral(**dados)
    db.add(db_pastoral)
    db.flush()

    log_event(
        db,
        request,
        "create_pastoral",
        user=current_user,
        pastoral_id=db_pastoral.id,
        resource_type="pastoral",
        resource_id=db_pastoral.id,
        details={"name": db_pastoral.name, "subdomain": db_pastoral.subdomain},
    )
    db.commit()

    logger.info(f"Pastoral criada: {db_pastoral.name} ({db_pastoral.subdomain}) por {current_user.email}")
    return {"success": True, "message": "Pastoral criada com sucesso", "id": db_pastoral.id}


@router.put("/{pastoral_id}")
@admin_rate_limit()
def update_pastoral(
    request: Request,
    pastoral_id: int,
    pastoral: schemas_pastoral.PastoralUpdate,
    current_user: User = Depends(get_super_admin),
    db: Session = Depends(database.get_db),
):
    db_pastoral = _get_pastoral(db, pastoral_id)

    update_data = pastoral.model_dump(exclude_unset=True)
    if "subdomain" in update_data and update_data["subdomain"] != db_pastoral.subdomain:
        if db_pastoral.subdomain == DEFAULT_SUBDOMAIN:
            raise ForbiddenError("Não é possível alterar o subdomínio da pastoral padrão")
        _check_subdomain(db, update_data["subdomain"], ignore_id=db_pastoral.id)
    if "config" in update_data:
        update_data["config"] = json.dumps(update_data["config"], ensure_ascii=False) if update_data["config"] else None

    for key, value in update_data.items():
        setattr(db_pastoral, key, value)

    log_event(
        db,
        request,
        "update_pastoral",
        user=current_user,
        pastoral_id=db_pastoral.id,
        resource_type="pastoral",
        resource_id=db_pastoral.id,
        details=pastoral.model_dump(exclude_unset=True, mode="json"),
    )
    db.commit()
    db.refresh(db_pastoral)

    return {"success": True, "message": "Pastoral atualizada com sucesso", "data": _read(db_pastoral)}


@router.put("/{pastoral_id}/config")
@admin_rate_limit()
def update_pastoral_config(
    request: Request,
    pastoral_id: int,
    payload: schemas_pastoral.PastoralConfigUpdate,
    current_user: User = Depends(get_super_admin),
    db: Session = Depends(database.get_db),
):
    db_pastoral = _get_pastoral(db, pastoral_id)
    db_pastoral.config = json.dumps(payload.config, ensure_ascii=False)

    log_event(
        db,
        request,
        "update_pastoral_config",
        user=current_user,
        pastoral_id=db_pastoral.id,
        resource_type="pastoral",
        resource_id=db_pastoral.id,
        details={"config": payload.config},
    )
    db.commit()
    return {"success": True, "message": "Configuração atualizada com sucesso", "config": payload.config}


@router.put("/{pastoral_id}/block")
@admin_rate_limit()
def block_pastoral(
    request: Request,
    pastoral_id: int,
    payload: schemas_pastoral.BlockRequest,
    current_user: User = Depends(get_super_admin),
    db: Session = Depends(database.get_db),
):
    """Bloqueia a pastoral: o painel e o formulário público deixam de funcionar."""
    db_pastoral = _get_pastoral(db, pastoral_id)
    if db_pastoral.subdomain == DEFAULT_SUBDOMAIN:
        raise ForbiddenError("Não é possível bloquear a pastoral padrão")

    db_pastoral.is_active = False
    db_pastoral.blocked_reason = payload.reason
    db_pastoral.blocked_at = datetime.utcnow()

    log_event(
        db,
        request,
        "block_pastoral",
        user=current_user,
        pastoral_id=db_pastoral.id,
        resource_type="pastoral",
        resource_id=db_pastoral.id,
        details={"reason": payload.reason},
    )
    db.commit()

    logger.warning(f"Pastoral {db_pastoral.name} bloqueada por {current_user.email}: {payload.reason}")
    return {"success": True, "message": "Pastoral bloqueada com sucesso"}


@router.put("/{pastoral_id}/unblock")
@admin_rate_limit()
def unblock_pastoral(
    request: Request,
    pastoral_id: int,
    current_user: User = Depends(get_super_admin),
    db: Session = Depends(database.get_db),
):
    db_pastoral = _get_pastoral(db, pastoral_id)
    db_pastoral.is_active = True
    db_pastoral.blocked_reason = None
    db_pastoral.blocked_at = None

    log_event(
        db,
        request,
        "unblock_pastoral",
        user=current_user,
        pastoral_id=db_pastoral.id,
        resource_type="pastoral",
        resource_id=db_pastoral.id,
    )
    db.commit()

    logger.info(f"Pastoral {db_pastoral.name} desbloqueada por {current_user.email}")
    return {"success": True, "message": "Pastoral desbloqueada com sucesso"}


@router.delete("/{pastoral_id}")
@admin_rate_limit()
def delete_pastoral(
    request: Request,
    pastoral_id: int,
    current_user: User = Depends(get_super_admin),
    db: Session = Depends(database.get_db),
):
    """Remove a pastoral com usuários, encontros e avaliações. O log de auditoria fica."""
    db_pastoral = _get_pastoral(db, pastoral_id)
    if db_pastoral.subdomain == DEFAULT_SUBDOMAIN:
        raise ForbiddenError("Não é possível excluir a pastoral padrão")

    # pastoral_id nulo: o registro precisa sobreviver à exclusão
    log_event(
        db,
        request,
        "delete_pastoral",
        user=current_user,
        resource_type="pastoral",
        resource_id=db_pastoral.id,
        details={"name": db_pastoral.name, "subdomain": db_pastoral.subdomain},
    )
    name = db_pastoral.name
    db.delete(db_pastoral)
    db.commit()

    logger.warning(f"Pastoral {name} excluída por {current_user.email}")
    return {"success": True, "message": "Pastoral excluída com sucesso"}
