from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from avaliacoes.database import Base

STATUS_ENCONTRO = ("planejado", "ativo", "concluido", "cancelado")


class Encontro(Base):
    __tablename__ = "encontros"
    __table_args__ = (
        CheckConstraint(
            "status IN ('planejado', 'ativo', 'concluido', 'cancelado')", name="ck_encontros_status"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    pastoral_id = Column(Integer, ForeignKey("pastorais.id", ondelete="CASCADE"), nullable=False, index=True)

    nome = Column(String(200), nullable=False)
    descricao = Column(Text, nullable=True)
    data_inicio = Column(Date, nullable=False)
    data_fim = Column(Date, nullable=False)
    local = Column(String(200), nullable=True)
    tema = Column(String(200), nullable=True)
    codigo_acesso = Column(String(50), unique=True, index=True, nullable=False)
    status = Column(String(20), nullable=False, default="planejado")
    max_participantes = Column(Integer, nullable=True)
    observacoes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    pastoral = relationship("Pastoral", back_populates="encontros")
    # Sem cascade de exclusão: as avaliações ficam no histórico com encontro_id nulo
    avaliacoes = relationship("Avaliacao", back_populates="encontro")
