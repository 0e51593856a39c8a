# avaliacoes/models/avaliacao.py
"""
Uma avaliação respondida por um casal e suas nove seções (1:1).

Todas as notas são inteiros de 0 a 5; a restrição também existe no banco.
"""
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from avaliacoes.database import Base

INTERESSES_PASTORAL = ("sim", "talvez", "nao", "")


def _rating_check(*columns):
    return tuple(
        CheckConstraint(f"{col} >= 0 AND {col} <= 5", name=f"ck_{col}_range") for col in columns
    )


def _avaliacao_fk():
    return Column(
        Integer, ForeignKey("avaliacoes.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )


class Avaliacao(Base):
    __tablename__ = "avaliacoes"

    id = Column(Integer, primary_key=True, index=True)
    pastoral_id = Column(Integer, ForeignKey("pastorais.id", ondelete="CASCADE"), nullable=False, index=True)
    encontro_id = Column(Integer, ForeignKey("encontros.id", ondelete="SET NULL"), nullable=True, index=True)

    couple_name = Column(String(200), nullable=True)
    encounter_date = Column(String(50), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow)

    pastoral = relationship("Pastoral", back_populates="avaliacoes")
    encontro = relationship("Encontro", back_populates="avaliacoes")

    pre_encontro = relationship("PreEncontro", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    palestras = relationship("Palestras", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    ambientes = relationship("Ambientes", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    refeicoes = relationship("Refeicoes", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    musicas = relationship("Musicas", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    equipe = relationship("Equipe", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    avaliacao_geral = relationship("AvaliacaoGeral", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    pastoral_interesse = relationship(
        "PastoralInteresse", uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )
    mensagem_final = relationship("MensagemFinal", uselist=False, cascade="all, delete-orphan", passive_deletes=True)


class PreEncontro(Base):
    __tablename__ = "pre_encontro"
    __table_args__ = _rating_check("communication_clarity", "registration_ease")

    id = Column(Integer, primary_key=True)
    avaliacao_id = _avaliacao_fk()
    communication_clarity = Column(Integer, nullable=False, default=0)
    registration_ease = Column(Integer, nullable=False, default=0)
    comments = Column(Text, nullable=True)


class Palestras(Base):
    __tablename__ = "palestras"
    __table_args__ = _rating_check("relevance", "clarity", "duration")

    id = Column(Integer, primary_key=True)
    avaliacao_id = _avaliacao_fk()
    relevance = Column(Integer, nullable=False, default=0)
    clarity = Column(Integer, nullable=False, default=0)
    duration = Column(Integer, nullable=False, default=0)
    comments = Column(Text, nullable=True)


class Ambientes(Base):
    __tablename__ = "ambientes"
    __table_args__ = _rating_check("comfort", "cleanliness", "decoration")

    id = Column(Integer, primary_key=True)
    avaliacao_id = _avaliacao_fk()
    comfort = Column(Integer, nullable=False, default=0)
    cleanliness = Column(Integer, nullable=False, default=0)
    decoration = Column(Integer, nullable=False, default=0)
    comments = Column(Text, nullable=True)


class Refeicoes(Base):
    __tablename__ = "refeicoes"
    __table_args__ = _rating_check("quality", "organization")

    id = Column(Integer, primary_key=True)
    avaliacao_id = _avaliacao_fk()
    quality = Column(Integer, nullable=False, default=0)
    organization = Column(Integer, nullable=False, default=0)
    comments = Column(Text, nullable=True)


class Musicas(Base):
    __tablename__ = "musicas"
    __table_args__ = _rating_check("suitability", "quality")

    id = Column(Integer, primary_key=True)
    avaliacao_id = _avaliacao_fk()
    suitability = Column(Integer, nullable=False, default=0)
    quality = Column(Integer, nullable=False, default=0)
    comments = Column(Text, nullable=True)


class Equipe(Base):
    __tablename__ = "equipe"
    __table_args__ = _rating_check("availability", "organization")

    id = Column(Integer, primary_key=True)
    avaliacao_id = _avaliacao_fk()
    availability = Column(Integer, nullable=False, default=0)
    organization = Column(Integer, nullable=False, default=0)
    comments = Column(Text, nullable=True)


class AvaliacaoGeral(Base):
    __tablename__ = "avaliacao_geral"
    __table_args__ = _rating_check("expectations", "overall_rating", "recommendation")

    id = Column(Integer, primary_key=True)
    avaliacao_id = _avaliacao_fk()
    expectations = Column(Integer, nullable=False, default=0)
    overall_rating = Column(Integer, nullable=False, default=0)
    recommendation = Column(Integer, nullable=False, default=0)
    comments = Column(Text, nullable=True)


class PastoralInteresse(Base):
    __tablename__ = "pastoral_interesse"
    __table_args__ = (
        CheckConstraint("interest IN ('sim', 'talvez', 'nao', '')", name="ck_pastoral_interest"),
    )

    id = Column(Integer, primary_key=True)
    avaliacao_id = _avaliacao_fk()
    interest = Column(String(10), nullable=False, default="")
    contact_info = Column(Text, nullable=True)


class MensagemFinal(Base):
    __tablename__ = "mensagem_final"

    id = Column(Integer, primary_key=True)
    avaliacao_id = _avaliacao_fk()
    message = Column(Text, nullable=True)
