# avaliacoes/routes/admin_seguranca_fastapi.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from avaliacoes import database
from avaliacoes.auth import get_super_admin
from avaliacoes.models.audit_log import AuditLog
from avaliacoes.schemas.audit import AuditLogRead, SecurityStats
from avaliacoes.services import login_monitor

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin - Segurança"],
    dependencies=[Depends(get_super_admin)]
)


@router.get("/audit-logs")
def read_audit_logs(
    user_id: Optional[int] = Query(None, alias="userId"),
    pastoral_id: Optional[int] = Query(None, alias="pastoralId"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(database.get_db),
):
    query = db.query(AuditLog)
    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    if pastoral_id is not None:
        query = query.filter(AuditLog.pastoral_id == pastoral_id)

    total = query.count()
    rows = (
        query.options(joinedload(AuditLog.user))
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    logs = []
    for row in rows:
        item = AuditLogRead.model_validate(row)
        if row.user is not None:
            item.user_email = row.user.email
            item.user_name = row.user.name
        logs.append(item.model_dump())
    return {"success": True, "total": total, "logs": logs}


@router.get("/security/stats")
def read_security_stats(hours: int = Query(24, ge=1, le=720), db: Session = Depends(database.get_db)):
    stats = SecurityStats(**login_monitor.get_login_attempt_stats(db, hours))
    return {"success": True, "hours": hours, "stats": stats.model_dump()}
