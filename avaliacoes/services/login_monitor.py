# avaliacoes/services/login_monitor.py
"""
Monitor de tentativas de login.

Cada tentativa (sucesso ou falha) vira uma linha em `login_attempts`.
Cinco falhas dentro de uma janela de 15 minutos, para o mesmo IP ou para o
mesmo email, bloqueiam novos logins com 429 até a janela andar.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Request
from sqlalchemy import case, distinct, func
from sqlalchemy.orm import Session

from avaliacoes.audit import get_client_ip, get_user_agent
from avaliacoes.exceptions import TooManyAttemptsError
from avaliacoes.models.login_attempt import LoginAttempt
from avaliacoes.models.token import PasswordResetToken, RefreshToken

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5
WINDOW_MINUTES = 15
LOCK_DURATION_MINUTES = 15
RETENTION_HOURS = 24


def record_login_attempt(
    db: Session,
    ip_address: str,
    email: Optional[str],
    success: bool,
    user_agent: Optional[str] = None,
) -> LoginAttempt:
    attempt = LoginAttempt(
        ip_address=ip_address,
        email=email.lower() if email else None,
        success=success,
        attempted_at=datetime.utcnow(),
        user_agent=user_agent,
    )
    db.add(attempt)
    db.commit()

    if not success:
        logger.warning(
            "Failed login attempt",
            extra={"event": "auth.failed_attempt", "ip": ip_address, "email": email},
        )
    return attempt


def get_recent_failed_attempts(db: Session, value: str, by_email: bool = False) -> int:
    column = LoginAttempt.email if by_email else LoginAttempt.ip_address
    if by_email:
        value = value.lower()
    window_start = datetime.utcnow() - timedelta(minutes=WINDOW_MINUTES)
    return (
        db.query(func.count(LoginAttempt.id))
        .filter(column == value, LoginAttempt.success.is_(False), LoginAttempt.attempted_at > window_start)
        .scalar()
    )


def is_blocked(db: Session, value: str, by_email: bool = False) -> bool:
    count = get_recent_failed_attempts(db, value, by_email)
    if count >= MAX_ATTEMPTS:
        logger.warning(
            "Blocked login attempt - too many failures",
            extra={
                "event": "security.account_locked",
                "email" if by_email else "ip": value,
                "attempts": count,
            },
        )
        return True
    return False


def _locked_until() -> str:
    return (datetime.utcnow() + timedelta(minutes=LOCK_DURATION_MINUTES)).isoformat() + "Z"


def check_login_attempts(db: Session, request: Request, email: Optional[str]) -> None:
    """Levanta TooManyAttemptsError se o IP ou o email estiverem bloqueados."""
    ip_address = get_client_ip(request) or "unknown"

    if is_blocked(db, ip_address):
        logger.warning(
            "Login blocked - IP locked",
            extra={"event": "security.login_blocked", "ip": ip_address, "email": email},
        )
        raise TooManyAttemptsError(
            f"Muitas tentativas de login falhadas. Aguarde {LOCK_DURATION_MINUTES} minutos.",
            details={"lockedUntil": _locked_until()},
        )

    if email and is_blocked(db, email, by_email=True):
        logger.warning(
            "Login blocked - email locked",
            extra={"event": "security.login_blocked", "ip": ip_address, "email": email},
        )
        raise TooManyAttemptsError(
            f"Muitas tentativas de login falhadas para este email. Aguarde {LOCK_DURATION_MINUTES} minutos.",
            details={"lockedUntil": _locked_until()},
        )


def record_from_request(db: Session, request: Request, email: Optional[str], success: bool) -> LoginAttempt:
    return record_login_attempt(
        db,
        ip_address=get_client_ip(request) or "unknown",
        email=email,
        success=success,
        user_agent=get_user_agent(request),
    )


def cleanup_old_attempts(db: Session) -> int:
    """Remove tentativas com mais de 24h e tokens vencidos. Retorna o total removido."""
    now = datetime.utcnow()
    cutoff = now - timedelta(hours=RETENTION_HOURS)

    removed_attempts = (
        db.query(LoginAttempt).filter(LoginAttempt.attempted_at < cutoff).delete(synchronize_session=False)
    )
    removed_refresh = (
        db.query(RefreshToken).filter(RefreshToken.expires_at < now).delete(synchronize_session=False)
    )
    removed_reset = (
        db.query(PasswordResetToken)
        .filter(PasswordResetToken.expires_at < now)
        .delete(synchronize_session=False)
    )
    db.commit()

    total = removed_attempts + removed_refresh + removed_reset
    if total:
        logger.info(
            "Cleaned up old login attempts",
            extra={
                "event": "maintenance.cleanup",
                "removed": removed_attempts,
                "expired_refresh_tokens": removed_refresh,
                "expired_reset_tokens": removed_reset,
            },
        )
    return total


def get_login_attempt_stats(db: Session, hours: int = 24) -> dict:
    since = datetime.utcnow() - timedelta(hours=hours)
    row = (
        db.query(
            func.count(LoginAttempt.id),
            func.sum(case((LoginAttempt.success.is_(True), 1), else_=0)),
            func.sum(case((LoginAttempt.success.is_(False), 1), else_=0)),
            func.count(distinct(LoginAttempt.ip_address)),
            func.count(distinct(LoginAttempt.email)),
        )
        .filter(LoginAttempt.attempted_at > since)
        .one()
    )
    total, successful, failed, unique_ips, unique_emails = row
    return {
        "total": total or 0,
        "successful": successful or 0,
        "failed": failed or 0,
        "unique_ips": unique_ips or 0,
        "unique_emails": unique_emails or 0,
    }
