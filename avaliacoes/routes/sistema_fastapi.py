# avaliacoes/routes/sistema_fastapi.py
import json
from datetime import datetime

from fastapi import APIRouter, Depends, Request, Response

from avaliacoes.csrf import generate_csrf_token
from avaliacoes.models.pastoral import Pastoral
from avaliacoes.schemas.pastoral import PastoralPublicConfig
from avaliacoes.tenancy import get_current_pastoral

router = APIRouter(
    prefix="/api",
    tags=["Sistema"]
)


@router.get("/health")
def health():
    return {
        "status": "OK",
        "message": "API de Avaliações - Pastoral Familiar",
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }


@router.get("/csrf-token")
def csrf_token(request: Request, response: Response):
    """O cliente guarda o valor e o reenvia no header x-csrf-token."""
    return {"csrfToken": generate_csrf_token(request, response)}


@router.get("/config")
def pastoral_config(pastoral: Pastoral = Depends(get_current_pastoral)):
    config = PastoralPublicConfig(
        id=pastoral.id,
        name=pastoral.name,
        subdomain=pastoral.subdomain,
        logoUrl=pastoral.logo_url,
        config=json.loads(pastoral.config) if pastoral.config else None,
    )
    return {"success": True, "data": config.model_dump()}
