# -*- coding: utf-8 -*-
"""
Configurações da aplicação, lidas de variáveis de ambiente ou do arquivo .env.
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Configurações da API de avaliações - todas ajustáveis via ambiente"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Servidor
    ENVIRONMENT: str = Field(
        "development", validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV")
    )
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    # Proxies cujo X-Forwarded-For o uvicorn aceita (ex: "127.0.0.1,10.0.0.2")
    FORWARDED_ALLOW_IPS: str = "127.0.0.1"
    FRONTEND_URL: str = "http://localhost:5173"
    CORS_ORIGIN_REGEX: Optional[str] = None

    # Banco de dados
    DATABASE_URL: str = "sqlite:///./avaliacoes.db"

    # JWT (access token)
    JWT_SECRET: str = Field("dev-jwt-secret-change-in-production-0000", min_length=32)
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # Refresh token
    REFRESH_TOKEN_SECRET: str = Field(
        "dev-refresh-secret-change-in-production-0", min_length=32
    )
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    # Reset de senha
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60

    # Cookies / CSRF
    COOKIE_SECRET: str = Field("change-this-cookie-secret-in-production", min_length=32)
    CSRF_ENABLED: bool = True

    # SendGrid
    SENDGRID_API_KEY: Optional[str] = None
    SENDGRID_FROM_EMAIL: str = "nao-responda@pastoralfamiliar.org"
    SENDGRID_FROM_NAME: str = "Sistema de Avaliações"

    # Super admin criado na inicialização
    SUPER_ADMIN_EMAIL: str = "admin@pastoralfamiliar.org"
    SUPER_ADMIN_PASSWORD: str = "Admin@12345"
    SUPER_ADMIN_NAME: str = "Super Administrador"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_test(self) -> bool:
        return self.ENVIRONMENT == "test"

    def warn_insecure_defaults(self) -> None:
        """Avisa quando segredos padrão são usados em produção."""
        if not self.is_production:
            return
        for name in ("JWT_SECRET", "REFRESH_TOKEN_SECRET", "COOKIE_SECRET"):
            value = getattr(self, name)
            if "change" in value or "secret" in value:
                logger.warning(
                    f"{name} parece ser um valor padrão. Use uma chave forte em produção!"
                )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
