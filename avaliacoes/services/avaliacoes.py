# avaliacoes/services/avaliacoes.py
"""
Gravação de avaliações e as consultas agregadas usadas pelos painéis.

Todas as consultas recebem `pastoral_id` e, opcionalmente, `encontro_id`
para restringir o conjunto de avaliações consideradas.
"""
from typing import List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Query, Session, joinedload

from avaliacoes.models.avaliacao import (
    Ambientes,
    Avaliacao,
    AvaliacaoGeral,
    Equipe,
    MensagemFinal,
    Musicas,
    Palestras,
    PastoralInteresse,
    PreEncontro,
    Refeicoes,
)
from avaliacoes.schemas.avaliacao import (
    AmbientesRead,
    AvaliacaoGeralRead,
    AvaliacaoRead,
    EquipeRead,
    EvaluationData,
    MensagemFinalRead,
    MusicasRead,
    PalestrasRead,
    PastoralInteresseRead,
    PreEncontroRead,
    RefeicoesRead,
)

_SECTIONS = (
    "pre_encontro",
    "palestras",
    "ambientes",
    "refeicoes",
    "musicas",
    "equipe",
    "avaliacao_geral",
    "pastoral_interesse",
    "mensagem_final",
)


def create_avaliacao(db: Session, data: EvaluationData, pastoral_id: int, encontro_id: Optional[int] = None) -> Avaliacao:
    """Grava a avaliação e as nove seções numa única transação."""
    durante = data.durante_encontro
    pos = data.pos_encontro

    avaliacao = Avaliacao(
        pastoral_id=pastoral_id,
        encontro_id=encontro_id,
        couple_name=data.basic_info.couple_name,
        encounter_date=data.basic_info.encounter_date,
    )
    avaliacao.pre_encontro = PreEncontro(**data.pre_encontro.model_dump())
    avaliacao.palestras = Palestras(**durante.palestras.model_dump())
    avaliacao.ambientes = Ambientes(**durante.ambientes.model_dump())
    avaliacao.refeicoes = Refeicoes(**durante.refeicoes.model_dump())
    avaliacao.musicas = Musicas(**durante.musicas.model_dump())
    avaliacao.equipe = Equipe(**durante.equipe.model_dump())
    avaliacao.avaliacao_geral = AvaliacaoGeral(**pos.geral.model_dump())
    avaliacao.pastoral_interesse = PastoralInteresse(**pos.pastoral.model_dump())
    avaliacao.mensagem_final = MensagemFinal(message=pos.final_message)

    db.add(avaliacao)
    db.commit()
    db.refresh(avaliacao)
    return avaliacao


def _scoped(query: Query, pastoral_id: int, encontro_id: Optional[int] = None) -> Query:
    query = query.filter(Avaliacao.pastoral_id == pastoral_id)
    if encontro_id is not None:
        query = query.filter(Avaliacao.encontro_id == encontro_id)
    return query


def list_avaliacoes(db: Session, pastoral_id: int, encontro_id: Optional[int] = None) -> List[Avaliacao]:
    return _scoped(db.query(Avaliacao), pastoral_id, encontro_id).order_by(Avaliacao.created_at.desc(), Avaliacao.id.desc()).all()


def _read(schema, obj) -> Optional[dict]:
    return schema.model_validate(obj).model_dump() if obj is not None else None


def to_completa(avaliacao: Avaliacao) -> dict:
    """Mesmo formato que o relatório do frontend espera: uma chave por seção."""
    return {
        "avaliacao": _read(AvaliacaoRead, avaliacao),
        "preEncontro": _read(PreEncontroRead, avaliacao.pre_encontro),
        "palestras": _read(PalestrasRead, avaliacao.palestras),
        "ambientes": _read(AmbientesRead, avaliacao.ambientes),
        "refeicoes": _read(RefeicoesRead, avaliacao.refeicoes),
        "musicas": _read(MusicasRead, avaliacao.musicas),
        "equipe": _read(EquipeRead, avaliacao.equipe),
        "avaliacaoGeral": _read(AvaliacaoGeralRead, avaliacao.avaliacao_geral),
        "pastoral": _read(PastoralInteresseRead, avaliacao.pastoral_interesse),
        "mensagemFinal": _read(MensagemFinalRead, avaliacao.mensagem_final),
    }


def get_avaliacao_completa(db: Session, avaliacao_id: int, pastoral_id: int) -> Optional[dict]:
    avaliacao = (
        db.query(Avaliacao)
        .options(*[joinedload(getattr(Avaliacao, name)) for name in _SECTIONS])
        .filter(Avaliacao.id == avaliacao_id, Avaliacao.pastoral_id == pastoral_id)
        .first()
    )
    return to_completa(avaliacao) if avaliacao else None


def list_avaliacoes_detalhadas(db: Session, pastoral_id: int) -> List[dict]:
    avaliacoes = (
        _scoped(db.query(Avaliacao), pastoral_id)
        .options(*[joinedload(getattr(Avaliacao, name)) for name in _SECTIONS])
        .order_by(Avaliacao.created_at.desc(), Avaliacao.id.desc())
        .all()
    )
    return [to_completa(a) for a in avaliacoes]


# --- Estatísticas ---


def _averages(db: Session, model, labels: dict, pastoral_id: int, encontro_id: Optional[int]) -> dict:
    columns = [func.avg(getattr(model, column)).label(label) for label, column in labels.items()]
    query = db.query(*columns).select_from(model).join(Avaliacao, Avaliacao.id == model.avaliacao_id)
    row = _scoped(query, pastoral_id, encontro_id).one()
    return {label: (float(value) if value is not None else None) for label, value in row._mapping.items()}


def get_estatisticas(db: Session, pastoral_id: int, encontro_id: Optional[int] = None) -> dict:
    total = _scoped(db.query(func.count(Avaliacao.id)), pastoral_id, encontro_id).scalar()

    interesse_query = (
        db.query(PastoralInteresse.interest, func.count(PastoralInteresse.id))
        .select_from(PastoralInteresse)
        .join(Avaliacao, Avaliacao.id == PastoralInteresse.avaliacao_id)
    )
    interesse = _scoped(interesse_query, pastoral_id, encontro_id).group_by(PastoralInteresse.interest).all()

    return {
        "totalAvaliacoes": total,
        "mediaPreEncontro": _averages(
            db,
            PreEncontro,
            {"avg_communication": "communication_clarity", "avg_registration": "registration_ease"},
            pastoral_id,
            encontro_id,
        ),
        "mediaPalestras": _averages(
            db,
            Palestras,
            {"avg_relevance": "relevance", "avg_clarity": "clarity", "avg_duration": "duration"},
            pastoral_id,
            encontro_id,
        ),
        "mediaAmbientes": _averages(
            db,
            Ambientes,
            {"avg_comfort": "comfort", "avg_cleanliness": "cleanliness", "avg_decoration": "decoration"},
            pastoral_id,
            encontro_id,
        ),
        "mediaRefeicoes": _averages(
            db, Refeicoes, {"avg_quality": "quality", "avg_organization": "organization"}, pastoral_id, encontro_id
        ),
        "mediaMusicas": _averages(
            db, Musicas, {"avg_suitability": "suitability", "avg_quality": "quality"}, pastoral_id, encontro_id
        ),
        "mediaEquipe": _averages(
            db, Equipe, {"avg_availability": "availability", "avg_organization": "organization"}, pastoral_id, encontro_id
        ),
        "mediaAvaliacaoGeral": _averages(
            db,
            AvaliacaoGeral,
            {"avg_expectations": "expectations", "avg_overall": "overall_rating", "avg_recommendation": "recommendation"},
            pastoral_id,
            encontro_id,
        ),
        "interestePastoral": [{"interest": value, "count": count} for value, count in interesse],
    }


def _contatos_query(db: Session, pastoral_id: int):
    query = (
        db.query(
            Avaliacao.id.label("avaliacao_id"),
            Avaliacao.couple_name.label("nome_casal"),
            Avaliacao.encounter_date.label("data_encontro"),
            Avaliacao.created_at.label("data_avaliacao"),
            PastoralInteresse.interest.label("nivel_interesse"),
            PastoralInteresse.contact_info.label("contato"),
            AvaliacaoGeral.overall_rating.label("nota_geral"),
            AvaliacaoGeral.recommendation.label("recomendacao"),
        )
        .join(PastoralInteresse, PastoralInteresse.avaliacao_id == Avaliacao.id)
        .outerjoin(AvaliacaoGeral, AvaliacaoGeral.avaliacao_id == Avaliacao.id)
        .filter(PastoralInteresse.contact_info.isnot(None), PastoralInteresse.contact_info != "")
    )
    return _scoped(query, pastoral_id)


def get_interessados(db: Session, pastoral_id: int) -> List[dict]:
    """Quem respondeu 'sim' ou 'talvez' e deixou contato; 'sim' primeiro."""
    rows = (
        _contatos_query(db, pastoral_id)
        .filter(PastoralInteresse.interest.in_(("sim", "talvez")))
        .order_by(case((PastoralInteresse.interest == "sim", 1), else_=2), Avaliacao.created_at.desc())
        .all()
    )
    result = []
    for row in rows:
        item = dict(row._mapping)
        item.pop("recomendacao")
        result.append(item)
    return result


def get_contatos(db: Session, pastoral_id: int) -> List[dict]:
    rows = _contatos_query(db, pastoral_id).order_by(Avaliacao.created_at.desc()).all()
    return [dict(row._mapping) for row in rows]


def encontro_stats(db: Session, encontro_ids: List[int]) -> dict:
    """{encontro_id: (total_avaliacoes, media_geral)} para a listagem com ?stats=true."""
    if not encontro_ids:
        return {}
    rows = (
        db.query(Avaliacao.encontro_id, func.count(Avaliacao.id), func.avg(AvaliacaoGeral.overall_rating))
        .outerjoin(AvaliacaoGeral, AvaliacaoGeral.avaliacao_id == Avaliacao.id)
        .filter(Avaliacao.encontro_id.in_(encontro_ids))
        .group_by(Avaliacao.encontro_id)
        .all()
    )
    return {
        encontro_id: (total, float(media) if media is not None else None)
        for encontro_id, total, media in rows
    }
