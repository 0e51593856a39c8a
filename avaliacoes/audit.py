import json
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from avaliacoes.models.audit_log import AuditLog


def get_client_ip(request: Request) -> Optional[str]:
    # Endereço do socket, a mesma chave do slowapi. Atrás de proxy, o uvicorn
    # reescreve request.client a partir do X-Forwarded-For só para os IPs de
    # FORWARDED_ALLOW_IPS.
    return request.client.host if request.client else None


def get_user_agent(request: Request) -> Optional[str]:
    agent = request.headers.get("user-agent")
    return agent[:300] if agent else None


def log_event(
    db: Session,
    request: Request,
    action: str,
    user=None,
    pastoral_id: Optional[int] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Registra uma ação administrativa na sessão atual.

    O commit fica a cargo de quem chamou, junto com a própria alteração:
    ou as duas coisas ficam gravadas, ou nenhuma.
    """
    if pastoral_id is None and user is not None:
        pastoral_id = user.pastoral_id

    entry = AuditLog(
        user_id=user.id if user is not None else None,
        pastoral_id=pastoral_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=json.dumps(details, default=str, ensure_ascii=False) if details else None,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
    )
    db.add(entry)
    return entry
