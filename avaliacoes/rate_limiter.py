# avaliacoes/rate_limiter.py
"""
Limites de requisição por IP (slowapi, armazenamento em memória).

Cada endpoint sensível recebe o seu decorator; a mensagem em português vai
no corpo do 429 montado pelo handler em exceptions.py.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

LOGIN_LIMIT = "5 per 15 minutes"
REFRESH_LIMIT = "10 per 15 minutes"
FORGOT_PASSWORD_LIMIT = "3 per hour"
AVALIACAO_LIMIT = "10 per hour"
WRITE_LIMIT = "30 per 15 minutes"
ADMIN_LIMIT = "50 per 15 minutes"

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://", strategy="fixed-window")


def login_rate_limit():
    return limiter.limit(
        LOGIN_LIMIT, error_message="Muitas tentativas de login. Tente novamente em 15 minutos."
    )


def refresh_rate_limit():
    return limiter.limit(
        REFRESH_LIMIT, error_message="Muitas tentativas de renovação de token. Tente novamente mais tarde."
    )


def forgot_password_rate_limit():
    return limiter.limit(
        FORGOT_PASSWORD_LIMIT, error_message="Muitas solicitações de redefinição de senha. Tente novamente em 1 hora."
    )


def avaliacao_rate_limit():
    return limiter.limit(
        AVALIACAO_LIMIT, error_message="Muitas avaliações enviadas. Tente novamente mais tarde."
    )


def write_rate_limit():
    return limiter.limit(
        WRITE_LIMIT, error_message="Você excedeu o limite de operações. Tente novamente em alguns minutos."
    )


def admin_rate_limit():
    return limiter.limit(
        ADMIN_LIMIT,
        error_message="Limite de operações administrativas excedido. Tente novamente mais tarde.",
    )
