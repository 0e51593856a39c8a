# avaliacoes/routes/avaliacoes_fastapi.py
import logging
from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.orm import Session

from avaliacoes.auth import check_pastoral_active
from avaliacoes.database import get_db
from avaliacoes.exceptions import ForbiddenError, NotFoundError, ValidationError
from avaliacoes.models.encontro import Encontro
from avaliacoes.models.pastoral import Pastoral
from avaliacoes.rate_limiter import avaliacao_rate_limit
from avaliacoes.schemas.avaliacao import AvaliacaoRead, EvaluationData
from avaliacoes.services import avaliacoes as service
from avaliacoes.services.email_service import email_service
from avaliacoes.tenancy import pastoral_from_request

logger = logging.getLogger(__name__)

PASTORAL_BLOQUEADA = "Esta pastoral está temporariamente desabilitada. Entre em contato com o suporte."

router = APIRouter(
    tags=["Avaliações"]
)


def _encontro_do_formulario(db: Session, data: EvaluationData):
    if data.encontro_id is not None:
        return db.query(Encontro).filter(Encontro.id == data.encontro_id).first()
    return db.query(Encontro).filter(Encontro.codigo_acesso == data.codigo_acesso).first()


@router.post("/api/avaliacoes", status_code=status.HTTP_201_CREATED)
@avaliacao_rate_limit()
def create_avaliacao(
    request: Request,
    data: EvaluationData,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """
    Recebe o formulário público. A pastoral vem do encontro (quando o link
    traz id ou código de acesso) ou, sem encontro, do subdomínio.
    """
    encontro = None
    if data.encontro_id is not None or data.codigo_acesso:
        encontro = _encontro_do_formulario(db, data)
        if encontro is None:
            raise NotFoundError("Encontro não encontrado")
        if encontro.status == "cancelado":
            raise ValidationError("Este encontro foi cancelado e não aceita novas avaliações")
        pastoral = encontro.pastoral
    else:
        pastoral = pastoral_from_request(db, request)

    if not pastoral.is_active:
        raise ForbiddenError(pastoral.blocked_reason or PASTORAL_BLOQUEADA)

    avaliacao = service.create_avaliacao(db, data, pastoral.id, encontro.id if encontro else None)

    logger.info(
        f"Nova avaliação criada com ID: {avaliacao.id} "
        f"(casal: {data.basic_info.couple_name or 'Anônimo'}, "
        f"nota geral: {data.pos_encontro.geral.overall_rating})"
    )

    if pastoral.contato_email:
        background_tasks.add_task(
            email_service.send_new_avaliacao_notification,
            pastoral.contato_email,
            data.basic_info.couple_name or "Anônimo",
            encontro.nome if encontro else (data.basic_info.encounter_date or "Não informado"),
        )

    return {
        "success": True,
        "message": "Avaliação salva com sucesso!",
        "id": avaliacao.id,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }


@router.get("/api/avaliacoes")
def read_avaliacoes(pastoral: Pastoral = Depends(check_pastoral_active), db: Session = Depends(get_db)):
    avaliacoes = service.list_avaliacoes(db, pastoral.id)
    return {
        "success": True,
        "total": len(avaliacoes),
        "data": [AvaliacaoRead.model_validate(a).model_dump() for a in avaliacoes],
        "pastoral": pastoral.name,
    }


# Precisa vir antes de /api/avaliacoes/{avaliacao_id}
@router.get("/api/avaliacoes/detalhadas")
def read_avaliacoes_detalhadas(pastoral: Pastoral = Depends(check_pastoral_active), db: Session = Depends(get_db)):
    avaliacoes = service.list_avaliacoes_detalhadas(db, pastoral.id)
    return {
        "success": True,
        "total": len(avaliacoes),
        "data": avaliacoes,
        "message": f"{len(avaliacoes)} avaliação(ões) encontrada(s)",
    }


@router.get("/api/avaliacoes/{avaliacao_id}")
def read_avaliacao(
    avaliacao_id: int,
    pastoral: Pastoral = Depends(check_pastoral_active),
    db: Session = Depends(get_db),
):
    avaliacao = service.get_avaliacao_completa(db, avaliacao_id, pastoral.id)
    if avaliacao is None:
        raise NotFoundError(f"Nenhuma avaliação encontrada com ID {avaliacao_id}")
    return {"success": True, "data": avaliacao}


@router.get("/api/estatisticas")
def read_estatisticas(pastoral: Pastoral = Depends(check_pastoral_active), db: Session = Depends(get_db)):
    return {
        "success": True,
        "data": service.get_estatisticas(db, pastoral.id),
        "pastoral": pastoral.name,
    }


@router.get("/api/pastoral/interessados")
def read_interessados(pastoral: Pastoral = Depends(check_pastoral_active), db: Session = Depends(get_db)):
    interessados = service.get_interessados(db, pastoral.id)
    logger.info(f"Buscando interessados na Pastoral: {len(interessados)} encontrado(s)")
    return {
        "success": True,
        "total": len(interessados),
        "data": interessados,
        "message": f"{len(interessados)} pessoa(s) interessada(s) encontrada(s)",
    }


@router.get("/api/contatos")
def read_contatos(pastoral: Pastoral = Depends(check_pastoral_active), db: Session = Depends(get_db)):
    contatos = service.get_contatos(db, pastoral.id)
    return {
        "success": True,
        "total": len(contatos),
        "data": contatos,
        "message": f"{len(contatos)} contato(s) encontrado(s)",
    }
