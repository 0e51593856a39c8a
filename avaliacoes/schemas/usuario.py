from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from avaliacoes.security import validate_password

Role = Literal["super_admin", "pastoral_admin"]


class CamelModel(BaseModel):
    """Aceita e devolve camelCase (formato usado pelo frontend)"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class UsuarioCreate(CamelModel):
    email: EmailStr
    password: str
    name: str = Field(..., min_length=3, max_length=100)
    role: Role
    pastoral_id: Optional[int] = Field(None, ge=1)

    @field_validator("password")
    @classmethod
    def senha_forte(cls, value: str) -> str:
        ok, message = validate_password(value)
        if not ok:
            raise ValueError(message)
        return value


class UsuarioUpdate(CamelModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    is_active: Optional[bool] = None
    pastoral_id: Optional[int] = Field(None, ge=1)
    role: Optional[Role] = None

    @field_validator("email", "name", "is_active", "role", mode="before")
    @classmethod
    def nao_nulo(cls, value):
        # Omitir o campo mantém o valor atual; null não é aceito
        if value is None:
            raise ValueError("Campo não pode ser nulo")
        return value


class UsuarioRead(CamelModel):
    id: int
    email: EmailStr
    name: str
    role: str
    pastoral_id: Optional[int] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class UsuarioResumo(CamelModel):
    """Dados devolvidos junto com os tokens no login e no refresh"""

    id: int
    email: EmailStr
    name: str
    role: str
    pastoral_id: Optional[int] = None
