# avaliacoes/routes/admin_usuarios_fastapi.py
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.orm import Session

from avaliacoes import database
from avaliacoes.audit import log_event
from avaliacoes.auth import get_super_admin
from avaliacoes.csrf import csrf_protect
from avaliacoes.exceptions import ConflictError, NotFoundError, ValidationError
from avaliacoes.models.pastoral import Pastoral
from avaliacoes.models.usuario import ROLE_PASTORAL_ADMIN, User
from avaliacoes.rate_limiter import admin_rate_limit
from avaliacoes.schemas import usuario as schemas_usuario
from avaliacoes.security import get_password_hash
from avaliacoes.services.email_service import email_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin/users",
    tags=["Admin - Usuários"],
    dependencies=[Depends(get_super_admin), Depends(csrf_protect)]
)


def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("Usuário não encontrado")
    return user


def _check_pastoral(db: Session, role: str, pastoral_id) -> None:
    if role != ROLE_PASTORAL_ADMIN:
        return
    if not pastoral_id:
        raise ValidationError("pastoralId é obrigatório para pastoral_admin")
    if db.get(Pastoral, pastoral_id) is None:
        raise NotFoundError("Pastoral não encontrada")


def _read(user: User) -> dict:
    return schemas_usuario.UsuarioRead.model_validate(user).model_dump(by_alias=True)


@router.post("", status_code=status.HTTP_201_CREATED)
@admin_rate_limit()
def create_user(
    request: Request,
    user: schemas_usuario.UsuarioCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_super_admin),
    db: Session = Depends(database.get_db),
):
    email = user.email.lower()
    if db.query(User.id).filter(User.email == email).first():
        raise ConflictError("Já existe um usuário com este email")

    _check_pastoral(db, user.role, user.pastoral_id)

    db_user = User(
        email=email,
        password_hash=get_password_hash(user.password),
        name=user.name,
        role=user.role,
        # super_admin não fica preso a uma pastoral
        pastoral_id=user.pastoral_id if user.role == ROLE_PASTORAL_ADMIN else None,
    )
    db.add(db_user)
    db.flush()

    log_event(
        db,
        request,
        "create_user",
        user=current_user,
        pastoral_id=db_user.pastoral_id,
        resource_type="user",
        resource_id=db_user.id,
        details={"email": email, "role": user.role},
    )
    db.commit()

    background_tasks.add_task(email_service.send_welcome_email, email, user.name, user.role)

    logger.info(f"Usuário criado: {email} ({user.role}) por {current_user.email}")
    return {"success": True, "message": "Usuário criado com sucesso", "userId": db_user.id}


@router.get("")
def read_users(pastoral_id: Optional[int] = Query(None, alias="pastoralId"), db: Session = Depends(database.get_db)):
    query = db.query(User)
    if pastoral_id is not None:
        query = query.filter(User.pastoral_id == pastoral_id)
    users = query.order_by(User.created_at.desc(), User.id.desc()).all()
    return {"success": True, "total": len(users), "users": [_read(u) for u in users]}


@router.get("/{user_id}")
def read_user(user_id: int, db: Session = Depends(database.get_db)):
    return {"success": True, "user": _read(_get_user(db, user_id))}


@router.put("/{user_id}")
@admin_rate_limit()
def update_user(
    request: Request,
    user_id: int,
    user: schemas_usuario.UsuarioUpdate,
    current_user: User = Depends(get_super_admin),
    db: Session = Depends(database.get_db),
):
    db_user = _get_user(db, user_id)
    update_data = user.model_dump(exclude_unset=True)

    if "email" in update_data:
        update_data["email"] = update_data["email"].lower()
        if update_data["email"] != db_user.email:
            if db.query(User.id).filter(User.email == update_data["email"]).first():
                raise ConflictError("Já existe um usuário com este email")

    if db_user.id == current_user.id and update_data.get("is_active") is False:
        raise ValidationError("Você não pode desativar sua própria conta")

    role = update_data.get("role", db_user.role)
    pastoral_id = update_data.get("pastoral_id", db_user.pastoral_id)
    _check_pastoral(db, role, pastoral_id)
    if role != ROLE_PASTORAL_ADMIN:
        update_data["pastoral_id"] = None

    for key, value in update_data.items():
        setattr(db_user, key, value)

    log_event(
        db,
        request,
        "update_user",
        user=current_user,
        pastoral_id=db_user.pastoral_id,
        resource_type="user",
        resource_id=db_user.id,
        details=user.model_dump(exclude_unset=True, by_alias=True),
    )
    db.commit()
    db.refresh(db_user)

    return {"success": True, "message": "Usuário atualizado com sucesso", "user": _read(db_user)}


@router.delete("/{user_id}")
@admin_rate_limit()
def delete_user(
    request: Request,
    user_id: int,
    current_user: User = Depends(get_super_admin),
    db: Session = Depends(database.get_db),
):
    db_user = _get_user(db, user_id)
    if db_user.id == current_user.id:
        raise ValidationError("Você não pode excluir sua própria conta")

    log_event(
        db,
        request,
        "delete_user",
        user=current_user,
        pastoral_id=db_user.pastoral_id,
        resource_type="user",
        resource_id=db_user.id,
        details={"email": db_user.email},
    )
    email = db_user.email
    db.delete(db_user)
    db.commit()

    logger.warning(f"Usuário {email} excluído por {current_user.email}")
    return {"success": True, "message": "Usuário excluído com sucesso"}
