# avaliacoes/routes/auth_fastapi.py
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request, Response
from sqlalchemy.orm import Session

from avaliacoes import auth, database
from avaliacoes.audit import get_client_ip, get_user_agent, log_event
from avaliacoes.cookies import (
    ACCESS_COOKIE,
    clear_auth_cookies,
    get_refresh_token_from_request,
    set_access_cookie,
    set_auth_cookies,
)
from avaliacoes.csrf import csrf_protect
from avaliacoes.exceptions import UnauthorizedError, ValidationError
from avaliacoes.models.usuario import User
from avaliacoes.rate_limiter import forgot_password_rate_limit, login_rate_limit, refresh_rate_limit
from avaliacoes.schemas import auth as schemas_auth
from avaliacoes.security import decode_access_token, get_password_hash, verify_password
from avaliacoes.services import login_monitor

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth",
    tags=["Authentication"]
)


@router.post("/login")
@login_rate_limit()
def login(
    request: Request,
    response: Response,
    credentials: schemas_auth.LoginRequest,
    db: Session = Depends(database.get_db),
):
    email = credentials.email.lower()
    login_monitor.check_login_attempts(db, request, email)

    try:
        user, access_token, refresh_token = auth.login(
            db, email, credentials.password, get_client_ip(request), get_user_agent(request)
        )
    except UnauthorizedError:
        login_monitor.record_from_request(db, request, email, success=False)
        logger.warning(f"Tentativa de login falhou: {email}")
        raise

    login_monitor.record_from_request(db, request, email, success=True)
    log_event(db, request, "login", user=user, resource_type="auth")
    db.commit()

    logger.info(
        f"Login bem-sucedido: {user.email} ({user.role})",
        extra={"event": "auth.login", "user_id": user.id, "ip": get_client_ip(request)},
    )

    set_auth_cookies(response, access_token, refresh_token)
    return {
        "success": True,
        "token": access_token,
        "refreshToken": refresh_token,
        "user": auth.user_summary(user),
    }


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    payload: Optional[schemas_auth.RefreshRequest] = Body(None),
    bearer: Optional[str] = Depends(auth.oauth2_scheme),
    db: Session = Depends(database.get_db),
):
    """Sempre responde 200: revoga o refresh token (se houver) e apaga os cookies."""
    refresh_token = get_refresh_token_from_request(request, payload.refresh_token if payload else None)
    if refresh_token:
        auth.revoke_refresh_token(db, refresh_token)

    token = request.cookies.get(ACCESS_COOKIE) or bearer
    if token:
        try:
            claims = decode_access_token(token)
        except UnauthorizedError:
            claims = None
        if claims:
            user = db.get(User, int(claims["sub"]))
            if user:
                log_event(db, request, "logout", user=user, resource_type="auth")
                db.commit()
                logger.info(f"Logout: {user.email}")

    clear_auth_cookies(response)
    return {"success": True, "message": "Logout realizado com sucesso"}


@router.post("/refresh")
@refresh_rate_limit()
def refresh(
    request: Request,
    response: Response,
    payload: Optional[schemas_auth.RefreshRequest] = Body(None),
    db: Session = Depends(database.get_db),
):
    refresh_token = get_refresh_token_from_request(request, payload.refresh_token if payload else None)
    if not refresh_token:
        raise ValidationError("Refresh token não fornecido")

    user, access_token = auth.refresh_access_token(db, refresh_token)
    logger.info(f"Token renovado para: {user.email}")

    set_access_cookie(response, access_token)
    return {"success": True, "token": access_token, "user": auth.user_summary(user)}


@router.get("/me")
def read_users_me(current_user: User = Depends(auth.get_current_user)):
    """
    Retorna os dados do usuário atualmente logado.
    """
    return {
        "success": True,
        "user": {
            **auth.user_summary(current_user),
            "isActive": current_user.is_active,
            "lastLogin": current_user.last_login,
        },
    }


@router.put("/change-password", dependencies=[Depends(csrf_protect)])
def change_password(
    request: Request,
    payload: schemas_auth.ChangePasswordRequest,
    current_user: User = Depends(auth.get_current_user),
    db: Session = Depends(database.get_db),
):
    if not verify_password(payload.current_password, current_user.password_hash):
        raise UnauthorizedError("Senha atual incorreta")

    current_user.password_hash = get_password_hash(payload.new_password)
    log_event(
        db, request, "change_password", user=current_user, resource_type="user", resource_id=current_user.id
    )
    db.commit()
    logger.info(f"{current_user.email} trocou sua senha")
    return {"success": True, "message": "Senha alterada com sucesso"}


@router.post("/forgot-password")
@forgot_password_rate_limit()
def forgot_password(
    request: Request,
    payload: schemas_auth.ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(database.get_db),
):
    result = auth.initiate_password_reset(db, payload.email, get_client_ip(request))
    if result:
        user, token = result
        background_tasks.add_task(auth.send_reset_email, user.email, user.name, token)

    logger.info(f"Reset de senha solicitado para: {payload.email}")
    # Mesma resposta exista ou não o email
    return {"success": True, "message": auth.RESET_REQUESTED_MESSAGE}


@router.post("/reset-password")
def reset_password(payload: schemas_auth.ResetPasswordRequest, db: Session = Depends(database.get_db)):
    user = auth.reset_password_with_token(db, payload.token, payload.new_password)
    logger.info(f"Senha redefinida para o usuário {user.id}")
    return {"success": True, "message": "Senha redefinida com sucesso"}


@router.get("/validate-reset-token")
def validate_reset_token(token: Optional[str] = None, db: Session = Depends(database.get_db)):
    if not token:
        raise ValidationError("Token não fornecido", details={"valid": False})
    return auth.validate_password_reset_token(db, token)


@router.post("/logout-all", dependencies=[Depends(csrf_protect)])
def logout_all(
    request: Request,
    response: Response,
    current_user: User = Depends(auth.get_current_user),
    db: Session = Depends(database.get_db),
):
    revoked = auth.logout_all_sessions(db, current_user.id)
    log_event(
        db, request, "logout_all", user=current_user, resource_type="auth", details={"revoked": revoked}
    )
    db.commit()
    clear_auth_cookies(response)
    return {"success": True, "message": "Todas as sessões foram encerradas", "revoked": revoked}
