# avaliacoes/auth.py
"""
Fluxos de autenticação (login, refresh, logout, reset de senha) e as
dependências FastAPI de autorização.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from avaliacoes import database
from avaliacoes.config import settings
from avaliacoes.cookies import ACCESS_COOKIE
from avaliacoes.exceptions import ForbiddenError, UnauthorizedError, ValidationError
from avaliacoes.models.pastoral import Pastoral
from avaliacoes.models.token import PasswordResetToken, RefreshToken
from avaliacoes.models.usuario import ROLE_PASTORAL_ADMIN, ROLE_SUPER_ADMIN, User
from avaliacoes.security import (
    create_access_token,
    decode_access_token,
    generate_password_reset_token,
    generate_refresh_token,
    get_password_hash,
    hash_token,
    validate_password,
    verify_password,
)
from avaliacoes.services.email_service import email_service
from avaliacoes.tenancy import get_current_pastoral

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

RESET_REQUESTED_MESSAGE = "Se o email existir, você receberá instruções para redefinir sua senha."


def get_user(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


def user_summary(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "pastoralId": user.pastoral_id,
    }


# --- Login / refresh / logout ---


def authenticate_user(db: Session, email: str, password: str) -> User:
    user = get_user(db, email)
    if not user:
        raise UnauthorizedError("Email ou senha incorretos")
    if not user.is_active:
        raise UnauthorizedError("Usuário desativado. Entre em contato com o administrador.")
    if not verify_password(password, user.password_hash):
        raise UnauthorizedError("Email ou senha incorretos")

    if user.role == ROLE_PASTORAL_ADMIN and user.pastoral_id:
        pastoral = db.get(Pastoral, user.pastoral_id)
        if not pastoral or not pastoral.is_active:
            raise UnauthorizedError("Pastoral desativada. Entre em contato com o administrador do sistema.")

    user.last_login = datetime.utcnow()
    db.commit()
    return user


def issue_refresh_token(
    db: Session, user: User, ip_address: Optional[str] = None, user_agent: Optional[str] = None
) -> str:
    token = generate_refresh_token()
    db.add(
        RefreshToken(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            ip_address=ip_address,
            user_agent=user_agent,
        )
    )
    db.commit()
    return token


def login(db: Session, email: str, password: str, ip_address: Optional[str] = None, user_agent: Optional[str] = None):
    """Autentica e devolve (usuário, access token, refresh token)."""
    user = authenticate_user(db, email, password)
    access_token = create_access_token(user)
    refresh_token = issue_refresh_token(db, user, ip_address, user_agent)
    return user, access_token, refresh_token


def refresh_access_token(db: Session, refresh_token: str):
    """Troca um refresh token válido por um novo access token."""
    row = (
        db.query(RefreshToken)
        .filter(RefreshToken.token_hash == hash_token(refresh_token), RefreshToken.revoked.is_(False))
        .first()
    )
    if not row:
        raise UnauthorizedError("Refresh token inválido ou expirado")
    if row.expires_at < datetime.utcnow():
        raise UnauthorizedError("Refresh token expirado")

    user = db.get(User, row.user_id)
    if not user or not user.is_active:
        raise UnauthorizedError("Usuário inválido ou inativo")

    return user, create_access_token(user)


def revoke_refresh_token(db: Session, refresh_token: str) -> bool:
    row = db.query(RefreshToken).filter(RefreshToken.token_hash == hash_token(refresh_token)).first()
    if not row or row.revoked:
        return False
    row.revoked = True
    row.revoked_at = datetime.utcnow()
    db.commit()
    return True


def logout_all_sessions(db: Session, user_id: int) -> int:
    count = (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
        .update({"revoked": True, "revoked_at": datetime.utcnow()}, synchronize_session=False)
    )
    db.commit()
    return count


# --- Reset de senha ---


def initiate_password_reset(db: Session, email: str, ip_address: Optional[str] = None) -> Optional[tuple]:
    """
    Gera e grava um token de reset para o email, se existir um usuário.

    Devolve (usuário, token em claro) para o envio do email, ou None. A
    resposta HTTP é a mesma nos dois casos.
    """
    user = get_user(db, email)
    if not user:
        return None

    token = generate_password_reset_token()
    db.add(
        PasswordResetToken(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=datetime.utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
            ip_address=ip_address,
        )
    )
    db.commit()
    return user, token


def send_reset_email(email: str, name: str, token: str) -> None:
    sent = email_service.send_password_reset_email(email, name, token)
    if sent:
        logger.info(f"Email de reset enviado para: {email}")
        return
    logger.warning(f"Falha ao enviar email de reset para: {email}")
    if not settings.is_production:
        # Sem SendGrid em desenvolvimento: o token vai para o log
        logger.info(f"PASSWORD RESET TOKEN (fallback) email={email} token={token}")


def _get_valid_reset_token(db: Session, token: str) -> Optional[PasswordResetToken]:
    return (
        db.query(PasswordResetToken)
        .filter(
            PasswordResetToken.token_hash == hash_token(token),
            PasswordResetToken.used.is_(False),
            PasswordResetToken.expires_at > datetime.utcnow(),
        )
        .first()
    )


def validate_password_reset_token(db: Session, token: str) -> dict:
    row = _get_valid_reset_token(db, token)
    if not row:
        return {"valid": False, "message": "Token inválido ou expirado"}
    return {"valid": True, "userId": row.user_id}


def reset_password_with_token(db: Session, token: str, new_password: str) -> User:
    row = _get_valid_reset_token(db, token)
    if not row:
        raise ValidationError("Token inválido ou expirado")

    ok, message = validate_password(new_password)
    if not ok:
        raise ValidationError(message)

    user = db.get(User, row.user_id)
    if not user:
        raise ValidationError("Usuário não encontrado")

    now = datetime.utcnow()
    user.password_hash = get_password_hash(new_password)
    row.used = True
    row.used_at = now
    # Força novo login em todos os dispositivos
    db.query(RefreshToken).filter(RefreshToken.user_id == user.id, RefreshToken.revoked.is_(False)).update(
        {"revoked": True, "revoked_at": now}, synchronize_session=False
    )
    db.commit()
    return user


# --- DEPENDÊNCIAS DE AUTENTICAÇÃO E AUTORIZAÇÃO ---


def _decode_request_token(request: Request, bearer: Optional[str]) -> dict:
    """Cookie primeiro; se ele estiver vencido ou inválido, tenta o Bearer."""
    cookie_token = request.cookies.get(ACCESS_COOKIE)
    if not cookie_token and not bearer:
        raise UnauthorizedError("Token de autenticação não fornecido")
    if cookie_token:
        try:
            return decode_access_token(cookie_token)
        except UnauthorizedError:
            if not bearer or bearer == cookie_token:
                raise
    return decode_access_token(bearer)


async def get_current_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(database.get_db),
) -> User:
    payload = _decode_request_token(request, bearer)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise UnauthorizedError("Token inválido")

    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("Token inválido")
    if not user.is_active:
        raise ForbiddenError("Usuário desativado. Entre em contato com o administrador.")
    return user


def require_role(*roles: str):
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            logger.warning(f"Acesso negado: {current_user.email} ({current_user.role}) tentou acessar rota de {', '.join(roles)}")
            raise ForbiddenError("Você não tem permissão para acessar este recurso")
        return current_user

    return checker


get_super_admin = require_role(ROLE_SUPER_ADMIN)
get_any_admin = require_role(ROLE_SUPER_ADMIN, ROLE_PASTORAL_ADMIN)


async def require_own_pastoral(
    current_user: User = Depends(get_any_admin),
    pastoral: Pastoral = Depends(get_current_pastoral),
) -> Pastoral:
    """Super admin acessa qualquer pastoral; admin de pastoral só a sua."""
    if current_user.role == ROLE_SUPER_ADMIN:
        return pastoral
    if pastoral.id != current_user.pastoral_id:
        logger.warning(f"{current_user.email} tentou acessar pastoral diferente da sua")
        raise ForbiddenError("Você não tem permissão para acessar esta pastoral")
    return pastoral


async def check_pastoral_active(
    current_user: User = Depends(get_any_admin),
    pastoral: Pastoral = Depends(require_own_pastoral),
) -> Pastoral:
    if current_user.role == ROLE_SUPER_ADMIN or pastoral.is_active:
        return pastoral
    logger.warning(f"Tentativa de acesso a pastoral bloqueada: {pastoral.name}")
    raise ForbiddenError(
        pastoral.blocked_reason
        or "Esta pastoral está temporariamente desabilitada. Entre em contato com o suporte.",
        details={"blockedAt": pastoral.blocked_at.isoformat() if pastoral.blocked_at else None},
    )
