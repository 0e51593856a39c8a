from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from avaliacoes.database import Base

DEFAULT_SUBDOMAIN = "default"


class Pastoral(Base):
    __tablename__ = "pastorais"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    subdomain = Column(String(63), unique=True, index=True, nullable=False)
    cidade = Column(String(100), nullable=True)
    estado = Column(String(2), nullable=True)
    contato_email = Column(String(255), nullable=True)
    logo_url = Column(String(500), nullable=True)
    config = Column(Text, nullable=True)  # JSON livre com cores, textos etc.

    is_active = Column(Boolean, nullable=False, default=True)
    blocked_reason = Column(String(500), nullable=True)
    blocked_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    users = relationship("User", back_populates="pastoral", cascade="all, delete-orphan", passive_deletes=True)
    encontros = relationship("Encontro", back_populates="pastoral", cascade="all, delete-orphan", passive_deletes=True)
    avaliacoes = relationship("Avaliacao", back_populates="pastoral", cascade="all, delete-orphan", passive_deletes=True)
