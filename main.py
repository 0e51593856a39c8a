# -*- coding: utf-8 -*-
"""
Arquivo principal da aplicação FastAPI do sistema de avaliações da Pastoral Familiar.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import create_first_user
from avaliacoes.config import settings
from avaliacoes.database import SessionLocal, init_db
from avaliacoes.exceptions import register_exception_handlers
from avaliacoes.logging_config import configure_logging
from avaliacoes.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from avaliacoes.rate_limiter import limiter
from avaliacoes.routes import (
    admin_pastorais_fastapi,
    admin_seguranca_fastapi,
    admin_usuarios_fastapi,
    auth_fastapi,
    avaliacoes_fastapi,
    encontros_fastapi,
    sistema_fastapi,
)
from avaliacoes.services import login_monitor

configure_logging(settings)
settings.warn_insecure_defaults()

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 60 * 60


def run_cleanup() -> int:
    db = SessionLocal()
    try:
        return login_monitor.cleanup_old_attempts(db)
    finally:
        db.close()


async def cleanup_loop():
    """Limpa tentativas de login e tokens vencidos a cada hora."""
    while True:
        await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
        try:
            await asyncio.to_thread(run_cleanup)
        except Exception:
            logger.exception("Erro na limpeza periódica de tentativas de login")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Iniciando API de Avaliações ({settings.ENVIRONMENT})")

    init_db()
    create_first_user.create_first_user()
    run_cleanup()

    cleanup_task = asyncio.create_task(cleanup_loop())
    logger.info("Limpeza periódica de tentativas de login agendada (1h)")

    yield

    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass
    logger.info("API de Avaliações encerrada")


docs_url = "/docs" if not settings.is_production else None
redoc_url = "/redoc" if not settings.is_production else None

# Inicializa a aplicação FastAPI
app = FastAPI(
    title="API de Avaliações - Pastoral Familiar",
    description="API para o formulário de avaliação dos encontros e o painel das pastorais",
    version="1.0.0",
    docs_url=docs_url,   # Será None em produção (desativa /docs)
    redoc_url=redoc_url, # Será None em produção (desativa /redoc)
    openapi_url="/openapi.json" if not settings.is_production else None,
    lifespan=lifespan,
)

# Estado usado pelos decorators do slowapi
app.state.limiter = limiter
register_exception_handlers(app)

origins = [settings.FRONTEND_URL]
if settings.is_development:
    origins += [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

# O último middleware adicionado roda primeiro
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(dict.fromkeys(origins)),
    allow_origin_regex=settings.CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "x-csrf-token"],
)

# Montagem dos routers
app.include_router(sistema_fastapi.router)
app.include_router(auth_fastapi.router)
app.include_router(avaliacoes_fastapi.router)
app.include_router(encontros_fastapi.router)
app.include_router(admin_pastorais_fastapi.router)
app.include_router(admin_usuarios_fastapi.router)
app.include_router(admin_seguranca_fastapi.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        proxy_headers=True,
        forwarded_allow_ips=settings.FORWARDED_ALLOW_IPS,
    )
