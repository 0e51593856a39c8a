import json
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

SUBDOMAIN_PATTERN = r"^[a-z0-9-]+$"


class PastoralBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=200)
    subdomain: str = Field(..., min_length=2, max_length=63, pattern=SUBDOMAIN_PATTERN)
    cidade: Optional[str] = Field(None, min_length=2, max_length=100)
    estado: Optional[str] = Field(None, min_length=2, max_length=2)
    contato_email: Optional[EmailStr] = None
    logo_url: Optional[str] = Field(None, max_length=500)
    config: Optional[Dict[str, Any]] = None


class PastoralCreate(PastoralBase):
    pass


class PastoralUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=200)
    subdomain: Optional[str] = Field(None, min_length=2, max_length=63, pattern=SUBDOMAIN_PATTERN)
    cidade: Optional[str] = Field(None, min_length=2, max_length=100)
    estado: Optional[str] = Field(None, min_length=2, max_length=2)
    contato_email: Optional[EmailStr] = None
    logo_url: Optional[str] = Field(None, max_length=500)
    config: Optional[Dict[str, Any]] = None

    @field_validator("name", "subdomain", mode="before")
    @classmethod
    def nao_nulo(cls, value):
        if value is None:
            raise ValueError("Campo não pode ser nulo")
        return value


class PastoralConfigUpdate(BaseModel):
    config: Dict[str, Any]


class BlockRequest(BaseModel):
    reason: str = Field(..., min_length=10, max_length=500)

    @field_validator("reason", mode="before")
    @classmethod
    def strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class PastoralRead(BaseModel):
    id: int
    name: str
    subdomain: str
    cidade: Optional[str] = None
    estado: Optional[str] = None
    contato_email: Optional[str] = None
    logo_url: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    is_active: bool
    blocked_reason: Optional[str] = None
    blocked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("config", mode="before")
    @classmethod
    def parse_config(cls, value):
        # A coluna guarda JSON como texto
        if isinstance(value, str):
            return json.loads(value) if value else None
        return value

    class Config:
        from_attributes = True


class PastoralPublicConfig(BaseModel):
    """O que o formulário público precisa para se personalizar"""

    id: int
    name: str
    subdomain: str
    logoUrl: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
