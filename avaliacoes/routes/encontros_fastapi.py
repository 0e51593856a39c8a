# avaliacoes/routes/encontros_fastapi.py
import logging
import secrets

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from avaliacoes.audit import log_event
from avaliacoes.auth import check_pastoral_active, get_any_admin
from avaliacoes.csrf import csrf_protect
from avaliacoes.database import get_db
from avaliacoes.exceptions import ConflictError, NotFoundError, ValidationError
from avaliacoes.models.encontro import Encontro
from avaliacoes.models.pastoral import Pastoral
from avaliacoes.models.usuario import User
from avaliacoes.rate_limiter import write_rate_limit
from avaliacoes.schemas.avaliacao import AvaliacaoRead
from avaliacoes.schemas.encontro import (
    EncontroComStats,
    EncontroCreate,
    EncontroPublico,
    EncontroRead,
    EncontroUpdate,
)
from avaliacoes.services import avaliacoes as avaliacoes_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/encontros",
    tags=["Encontros"],
    dependencies=[Depends(csrf_protect)]
)


def _gerar_codigo(db: Session) -> str:
    while True:
        codigo = secrets.token_hex(4).upper()
        if not db.query(Encontro.id).filter(Encontro.codigo_acesso == codigo).first():
            return codigo


def _get_encontro(db: Session, encontro_id: int, pastoral: Pastoral) -> Encontro:
    encontro = (
        db.query(Encontro).filter(Encontro.id == encontro_id, Encontro.pastoral_id == pastoral.id).first()
    )
    if encontro is None:
        raise NotFoundError(f"Nenhum encontro encontrado com ID {encontro_id}")
    return encontro


@router.post("", status_code=status.HTTP_201_CREATED)
@write_rate_limit()
def create_encontro(
    request: Request,
    encontro: EncontroCreate,
    pastoral: Pastoral = Depends(check_pastoral_active),
    current_user: User = Depends(get_any_admin),
    db: Session = Depends(get_db),
):
    dados = encontro.model_dump()
    if dados["codigo_acesso"]:
        if db.query(Encontro.id).filter(Encontro.codigo_acesso == dados["codigo_acesso"]).first():
            raise ConflictError(f"O código de acesso \"{dados['codigo_acesso']}\" já está em uso")
    else:
        dados["codigo_acesso"] = _gerar_codigo(db)

    db_encontro = Encontro(pastoral_id=pastoral.id, **dados)
    db.add(db_encontro)
    db.flush()
    log_event(
        db,
        request,
        "create_encontro",
        user=current_user,
        pastoral_id=pastoral.id,
        resource_type="encontro",
        resource_id=db_encontro.id,
        details={"nome": db_encontro.nome},
    )
    db.commit()
    db.refresh(db_encontro)

    logger.info(f"Novo encontro criado com ID {db_encontro.id} ({pastoral.name}), código {db_encontro.codigo_acesso}")
    return {
        "success": True,
        "message": "Encontro criado com sucesso!",
        "data": EncontroRead.model_validate(db_encontro).model_dump(),
    }


@router.get("")
def read_encontros(
    stats: bool = False,
    pastoral: Pastoral = Depends(check_pastoral_active),
    db: Session = Depends(get_db),
):
    encontros = (
        db.query(Encontro)
        .filter(Encontro.pastoral_id == pastoral.id)
        .order_by(Encontro.data_inicio.desc(), Encontro.id.desc())
        .all()
    )
    if not stats:
        data = [EncontroRead.model_validate(e).model_dump() for e in encontros]
    else:
        totals = avaliacoes_service.encontro_stats(db, [e.id for e in encontros])
        data = []
        for e in encontros:
            total, media = totals.get(e.id, (0, None))
            item = EncontroComStats.model_validate(e)
            item.total_avaliacoes = total
            item.media_geral = media
            data.append(item.model_dump())
    return {"success": True, "total": len(data), "data": data}


@router.get("/codigo/{codigo}")
def read_encontro_por_codigo(codigo: str, db: Session = Depends(get_db)):
    """Rota pública: o formulário usa o código do link para achar o encontro."""
    encontro = db.query(Encontro).filter(Encontro.codigo_acesso == codigo).first()
    if encontro is None:
        raise NotFoundError(f"Nenhum encontro encontrado com o código {codigo}")
    return {"success": True, "data": EncontroPublico.model_validate(encontro).model_dump()}


@router.get("/{encontro_id}")
def read_encontro(
    encontro_id: int,
    pastoral: Pastoral = Depends(check_pastoral_active),
    db: Session = Depends(get_db),
):
    encontro = _get_encontro(db, encontro_id, pastoral)
    return {"success": True, "data": EncontroRead.model_validate(encontro).model_dump()}


@router.put("/{encontro_id}")
@write_rate_limit()
def update_encontro(
    request: Request,
    encontro_id: int,
    encontro: EncontroUpdate,
    pastoral: Pastoral = Depends(check_pastoral_active),
    current_user: User = Depends(get_any_admin),
    db: Session = Depends(get_db),
):
    db_encontro = _get_encontro(db, encontro_id, pastoral)

    update_data = encontro.model_dump(exclude_unset=True)
    data_inicio = update_data.get("data_inicio", db_encontro.data_inicio)
    data_fim = update_data.get("data_fim", db_encontro.data_fim)
    if data_inicio is None or data_fim is None or data_fim <= data_inicio:
        raise ValidationError("Data de fim deve ser posterior à data de início")

    for key, value in update_data.items():
        setattr(db_encontro, key, value)

    log_event(
        db,
        request,
        "update_encontro",
        user=current_user,
        pastoral_id=pastoral.id,
        resource_type="encontro",
        resource_id=db_encontro.id,
        details=encontro.model_dump(exclude_unset=True, mode="json"),
    )
    db.commit()
    db.refresh(db_encontro)

    logger.info(f"Encontro {encontro_id} atualizado com sucesso")
    return {
        "success": True,
        "message": "Encontro atualizado com sucesso!",
        "data": EncontroRead.model_validate(db_encontro).model_dump(),
    }


@router.delete("/{encontro_id}")
@write_rate_limit()
def delete_encontro(
    request: Request,
    encontro_id: int,
    pastoral: Pastoral = Depends(check_pastoral_active),
    current_user: User = Depends(get_any_admin),
    db: Session = Depends(get_db),
):
    """As avaliações do encontro continuam no banco, com encontro_id nulo."""
    db_encontro = _get_encontro(db, encontro_id, pastoral)
    log_event(
        db,
        request,
        "delete_encontro",
        user=current_user,
        pastoral_id=pastoral.id,
        resource_type="encontro",
        resource_id=db_encontro.id,
        details={"nome": db_encontro.nome},
    )
    db.delete(db_encontro)
    db.commit()

    logger.info(f"Encontro {encontro_id} deletado com sucesso")
    return {"success": True, "message": "Encontro deletado com sucesso!"}


@router.get("/{encontro_id}/estatisticas")
def read_estatisticas_encontro(
    encontro_id: int,
    pastoral: Pastoral = Depends(check_pastoral_active),
    db: Session = Depends(get_db),
):
    encontro = _get_encontro(db, encontro_id, pastoral)
    data = avaliacoes_service.get_estatisticas(db, pastoral.id, encontro.id)
    data["encontro"] = {"id": encontro.id, "nome": encontro.nome}
    return {"success": True, "data": data}


@router.get("/{encontro_id}/avaliacoes")
def read_avaliacoes_encontro(
    encontro_id: int,
    pastoral: Pastoral = Depends(check_pastoral_active),
    db: Session = Depends(get_db),
):
    encontro = _get_encontro(db, encontro_id, pastoral)
    avaliacoes = avaliacoes_service.list_avaliacoes(db, pastoral.id, encontro.id)
    return {
        "success": True,
        "total": len(avaliacoes),
        "data": [AvaliacaoRead.model_validate(a).model_dump() for a in avaliacoes],
    }
