from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

StatusEncontro = Literal["planejado", "ativo", "concluido", "cancelado"]


class EncontroBase(BaseModel):
    nome: str = Field(..., min_length=3, max_length=200)
    descricao: Optional[str] = None
    data_inicio: date
    data_fim: date
    local: Optional[str] = Field(None, max_length=200)
    tema: Optional[str] = Field(None, max_length=200)
    status: StatusEncontro = "planejado"
    max_participantes: Optional[int] = Field(None, ge=1)
    observacoes: Optional[str] = None

    @model_validator(mode="after")
    def datas_em_ordem(self):
        if self.data_fim <= self.data_inicio:
            raise ValueError("Data de fim deve ser posterior à data de início")
        return self


class EncontroCreate(EncontroBase):
    # Gerado automaticamente quando não informado
    codigo_acesso: Optional[str] = Field(None, min_length=4, max_length=50, pattern=r"^[A-Za-z0-9-]+$")


class EncontroUpdate(BaseModel):
    nome: Optional[str] = Field(None, min_length=3, max_length=200)
    descricao: Optional[str] = None
    data_inicio: Optional[date] = None
    data_fim: Optional[date] = None
    local: Optional[str] = Field(None, max_length=200)
    tema: Optional[str] = Field(None, max_length=200)
    status: Optional[StatusEncontro] = None
    max_participantes: Optional[int] = Field(None, ge=1)
    observacoes: Optional[str] = None

    @field_validator("nome", "data_inicio", "data_fim", "status", mode="before")
    @classmethod
    def nao_nulo(cls, value):
        if value is None:
            raise ValueError("Campo não pode ser nulo")
        return value


class EncontroRead(BaseModel):
    id: int
    pastoral_id: int
    nome: str
    descricao: Optional[str] = None
    data_inicio: date
    data_fim: date
    local: Optional[str] = None
    tema: Optional[str] = None
    codigo_acesso: str
    status: str
    max_participantes: Optional[int] = None
    observacoes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EncontroComStats(EncontroRead):
    total_avaliacoes: int = 0
    media_geral: Optional[float] = None


class EncontroPublico(BaseModel):
    """Dados expostos no link público do formulário"""

    id: int
    nome: str
    descricao: Optional[str] = None
    data_inicio: date
    data_fim: date
    local: Optional[str] = None
    tema: Optional[str] = None
    codigo_acesso: str
    status: str

    class Config:
        from_attributes = True
