"""Resolução da pastoral (tenant) a partir do Host da requisição."""
import re

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from avaliacoes import database
from avaliacoes.exceptions import NotFoundError
from avaliacoes.models.pastoral import DEFAULT_SUBDOMAIN, Pastoral

_IPV4_RE = re.compile(r"^\d+\.\d+\.\d+\.\d+$")


def subdomain_from_host(host: str) -> str:
    """
    saobenedito.avaliacoes.com -> saobenedito

    localhost, IPs e hosts sem subdomínio caem na pastoral padrão.
    """
    host = (host or "").strip().lower()
    if host.startswith("["):  # IPv6 literal
        return DEFAULT_SUBDOMAIN
    hostname = host.split(":")[0]
    if not hostname or hostname == "localhost" or _IPV4_RE.match(hostname):
        return DEFAULT_SUBDOMAIN
    parts = hostname.split(".")
    if len(parts) > 2:
        return parts[0]
    return DEFAULT_SUBDOMAIN


def get_pastoral_by_subdomain(db: Session, subdomain: str):
    return db.query(Pastoral).filter(Pastoral.subdomain == subdomain).first()


def pastoral_from_request(db: Session, request: Request) -> Pastoral:
    subdomain = subdomain_from_host(request.headers.get("host", ""))
    pastoral = get_pastoral_by_subdomain(db, subdomain)
    if not pastoral:
        raise NotFoundError(f"Nenhuma pastoral cadastrada para o subdomínio: {subdomain}")
    return pastoral


async def get_current_pastoral(request: Request, db: Session = Depends(database.get_db)) -> Pastoral:
    return pastoral_from_request(db, request)
