from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from avaliacoes.schemas.usuario import CamelModel, UsuarioResumo
from avaliacoes.security import validate_password


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=32)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def senha_forte(cls, value: str) -> str:
        ok, message = validate_password(value)
        if not ok:
            raise ValueError(message)
        return value


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def senha_forte(cls, value: str) -> str:
        ok, message = validate_password(value)
        if not ok:
            raise ValueError(message)
        return value


class TokenResponse(CamelModel):
    success: bool = True
    token: str
    refresh_token: Optional[str] = None
    user: UsuarioResumo
