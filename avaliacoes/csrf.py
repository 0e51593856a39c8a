# avaliacoes/csrf.py
"""
Proteção CSRF no padrão double-submit cookie.

GET /api/csrf-token gera um token aleatório, devolve-o no corpo e grava no
cookie `x-csrf-token` uma versão assinada (itsdangerous) contendo o token e
o identificador da sessão (IP do cliente). Requisições que alteram estado e
chegam autenticadas por cookie precisam repetir o token no header
`x-csrf-token`.
"""
import hmac
import logging
import secrets
from typing import Optional

from fastapi import Request, Response
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from avaliacoes.audit import get_client_ip
from avaliacoes.config import settings
from avaliacoes.cookies import ACCESS_COOKIE
from avaliacoes.exceptions import ForbiddenError

logger = logging.getLogger(__name__)

CSRF_COOKIE = "x-csrf-token"
CSRF_HEADER = "x-csrf-token"
CSRF_MAX_AGE = 24 * 60 * 60
SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}

_serializer = URLSafeTimedSerializer(settings.COOKIE_SECRET, salt="csrf")


def _session_id(request: Request) -> str:
    return get_client_ip(request) or "anonymous"


def generate_csrf_token(request: Request, response: Response) -> str:
    token = secrets.token_urlsafe(32)
    signed = _serializer.dumps({"token": token, "sid": _session_id(request)})
    response.set_cookie(
        CSRF_COOKIE,
        signed,
        max_age=CSRF_MAX_AGE,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        path="/",
    )
    return token


def _token_from_cookie(request: Request) -> Optional[str]:
    signed = request.cookies.get(CSRF_COOKIE)
    if not signed:
        return None
    try:
        data = _serializer.loads(signed, max_age=CSRF_MAX_AGE)
    except SignatureExpired:
        return None
    except BadSignature:
        return None
    if not isinstance(data, dict) or data.get("sid") != _session_id(request):
        return None
    return data.get("token")


def validate_csrf(request: Request) -> bool:
    header = request.headers.get(CSRF_HEADER)
    expected = _token_from_cookie(request)
    if not header or not expected:
        return False
    return hmac.compare_digest(header, expected)


async def csrf_protect(request: Request):
    """
    Dependência aplicada nos routers que aceitam escrita.

    Só exige o token quando a requisição é autenticada por cookie: chamadas
    com Bearer e formulários públicos não carregam credencial ambiente.
    """
    if not settings.CSRF_ENABLED or request.method in SAFE_METHODS:
        return
    if ACCESS_COOKIE not in request.cookies:
        return
    if not validate_csrf(request):
        logger.warning(
            "CSRF token inválido",
            extra={
                "event": "security.csrf_failure",
                "ip": get_client_ip(request),
                "endpoint": request.url.path,
                "method": request.method,
            },
        )
        raise ForbiddenError("Token CSRF inválido ou ausente")
