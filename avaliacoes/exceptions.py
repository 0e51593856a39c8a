# -*- coding: utf-8 -*-
"""
Exceções da aplicação e handlers centralizados.

Use as subclasses de AppError nas rotas e serviços; os handlers registrados
em `register_exception_handlers` convertem tudo para o envelope
{"success": false, "message": ...} com o status HTTP correto.
"""

import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from avaliacoes.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Erro base da aplicação, com status HTTP associado"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Erro interno do servidor"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Dados inválidos"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Não autorizado"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Acesso negado"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Recurso não encontrado"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflito de dados"


class TooManyAttemptsError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Muitas tentativas. Tente novamente mais tarde."


def _error_body(message: str, exc: Optional[BaseException] = None, **extra) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    body.update(extra)
    if exc is not None and settings.is_development:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def _constraint_field(message: str) -> Optional[str]:
    # "UNIQUE constraint failed: pastorais.subdomain" -> "subdomain"
    parts = message.split(":", 1)
    if len(parts) < 2:
        return None
    field = parts[1].strip().splitlines()[0].split(",")[0].strip()
    return field.split(".")[-1] or None


def integrity_error_response(exc: IntegrityError) -> JSONResponse:
    message = str(exc.orig) if exc.orig is not None else str(exc)

    if "UNIQUE constraint failed" in message:
        field = _constraint_field(message) or "campo"
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=_error_body(f"{field} já está em uso"),
        )
    if "FOREIGN KEY constraint failed" in message:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body("Referência inválida a outro recurso"),
        )
    if "NOT NULL constraint failed" in message:
        field = _constraint_field(message) or "Campo obrigatório"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(f"{field} é obrigatório"),
        )
    if "CHECK constraint failed" in message:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body("Dados inválidos"),
        )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Erro de integridade dos dados"),
    )


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"Erro capturado em {request.method} {request.url.path}: {exc.message}", exc_info=exc)
    else:
        logger.info(f"{exc.status_code} em {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc if exc.status_code >= 500 else None, **exc.details),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or "unknown", "message": err.get("msg", "")})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Dados inválidos", errors=errors),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"Rota não encontrada: {request.method} {request.url.path}"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message),
        headers=getattr(exc, "headers", None),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Violação de integridade em {request.method} {request.url.path}: {exc.orig}")
    return integrity_error_response(exc)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    client = request.client.host if request.client else "unknown"
    logger.warning(
        "Rate limit exceeded",
        extra={"event": "security.rate_limit", "ip": client, "endpoint": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=_error_body(str(exc.detail)),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Erro não tratado em {request.method} {request.url.path}: {exc}", exc_info=exc)
    message = "Erro interno do servidor" if settings.is_production else str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(message, exc),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
