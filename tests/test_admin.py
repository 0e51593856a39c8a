import json

import pytest

from avaliacoes.models.audit_log import AuditLog
from avaliacoes.models.avaliacao import Avaliacao
from avaliacoes.models.pastoral import Pastoral
from avaliacoes.models.usuario import User
from avaliacoes.services.email_service import email_service


def _nova_pastoral(**extra):
    payload = {
        "name": "Paróquia Santa Rita",
        "subdomain": "santarita",
        "cidade": "Itu",
        "estado": "SP",
        "contato_email": "contato@santarita.org",
    }
    payload.update(extra)
    return payload


def _novo_usuario(pastoral_id=None, **extra):
    payload = {
        "email": "novo.admin@example.com",
        "password": "SenhaForte1",
        "name": "Maria e José",
        "role": "pastoral_admin",
        "pastoralId": pastoral_id,
    }
    payload.update(extra)
    return payload


# --- Acesso ---


@pytest.mark.parametrize(
    "method, url",
    [
        ("get", "/api/admin/pastorais"),
        ("post", "/api/admin/pastorais"),
        ("get", "/api/admin/users"),
        ("get", "/api/admin/audit-logs"),
        ("get", "/api/admin/security/stats"),
    ],
)
def test_admin_routes_forbidden_for_pastoral_admin(client, admin_headers, method, url):
    response = getattr(client, method)(url, headers=admin_headers)

    assert response.status_code == 403
    assert response.json()["message"] == "Você não tem permissão para acessar este recurso"


def test_admin_routes_require_auth(client, default_pastoral):
    assert client.get("/api/admin/pastorais").status_code == 401


# --- Pastorais ---


def test_create_pastoral(client, db_session, super_admin, super_admin_headers):
    response = client.post(
        "/api/admin/pastorais", json=_nova_pastoral(config={"titulo": "Avaliação"}), headers=super_admin_headers
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Pastoral criada com sucesso"
    pastoral = db_session.get(Pastoral, body["id"])
    assert pastoral.subdomain == "santarita"
    assert json.loads(pastoral.config) == {"titulo": "Avaliação"}

    log = db_session.query(AuditLog).filter(AuditLog.action == "create_pastoral").one()
    assert log.user_id == super_admin.id
    assert log.resource_id == pastoral.id


def test_create_pastoral_duplicate_subdomain(client, outra_pastoral, super_admin_headers):
    response = client.post(
        "/api/admin/pastorais", json=_nova_pastoral(subdomain="saobenedito"), headers=super_admin_headers
    )

    assert response.status_code == 409
    assert response.json()["message"] == 'O subdomínio "saobenedito" já está em uso'


def test_create_pastoral_invalid_subdomain(client, super_admin_headers):
    response = client.post(
        "/api/admin/pastorais", json=_nova_pastoral(subdomain="Santa Rita"), headers=super_admin_headers
    )
    assert response.status_code == 400


def test_list_and_get_pastorais(client, default_pastoral, outra_pastoral, super_admin_headers):
    listing = client.get("/api/admin/pastorais", headers=super_admin_headers).json()
    assert listing["total"] == 2

    response = client.get(f"/api/admin/pastorais/{outra_pastoral.id}", headers=super_admin_headers)
    assert response.json()["data"]["subdomain"] == "saobenedito"

    missing = client.get("/api/admin/pastorais/9999", headers=super_admin_headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Nenhuma pastoral encontrada com ID 9999"


def test_update_pastoral(client, outra_pastoral, super_admin_headers):
    response = client.put(
        f"/api/admin/pastorais/{outra_pastoral.id}",
        json={"name": "Paróquia São Benedito do Sul", "cidade": "Limeira"},
        headers=super_admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Paróquia São Benedito do Sul"
    assert data["cidade"] == "Limeira"
    assert data["subdomain"] == "saobenedito"


def test_update_pastoral_subdomain_clash(client, default_pastoral, outra_pastoral, super_admin_headers):
    client.post("/api/admin/pastorais", json=_nova_pastoral(), headers=super_admin_headers)

    response = client.put(
        f"/api/admin/pastorais/{outra_pastoral.id}", json={"subdomain": "santarita"}, headers=super_admin_headers
    )
    assert response.status_code == 409


def test_update_pastoral_config(client, db_session, outra_pastoral, super_admin_headers):
    config = {"corPrimaria": "#0ea5e9", "mensagemBoasVindas": "Bem-vindos!"}

    response = client.put(
        f"/api/admin/pastorais/{outra_pastoral.id}/config", json={"config": config}, headers=super_admin_headers
    )

    assert response.status_code == 200
    db_session.expire_all()
    assert json.loads(outra_pastoral.config) == config
    assert db_session.query(AuditLog).filter(AuditLog.action == "update_pastoral_config").count() == 1


def test_block_and_unblock_pastoral(client, db_session, outra_pastoral, super_admin_headers):
    reason = "Pagamento pendente desde janeiro"

    response = client.put(
        f"/api/admin/pastorais/{outra_pastoral.id}/block", json={"reason": reason}, headers=super_admin_headers
    )

    assert response.status_code == 200
    db_session.expire_all()
    assert outra_pastoral.is_active is False
    assert outra_pastoral.blocked_reason == reason
    assert outra_pastoral.blocked_at is not None

    response = client.put(f"/api/admin/pastorais/{outra_pastoral.id}/unblock", headers=super_admin_headers)

    assert response.status_code == 200
    db_session.expire_all()
    assert outra_pastoral.is_active is True
    assert outra_pastoral.blocked_reason is None
    actions = [log.action for log in db_session.query(AuditLog).order_by(AuditLog.id)]
    assert actions == ["block_pastoral", "unblock_pastoral"]


@pytest.mark.parametrize("reason", ["curto", "      curto      ", "x" * 501])
def test_block_reason_length(client, outra_pastoral, super_admin_headers, reason):
    response = client.put(
        f"/api/admin/pastorais/{outra_pastoral.id}/block", json={"reason": reason}, headers=super_admin_headers
    )
    assert response.status_code == 400


def test_delete_default_pastoral_is_forbidden(client, default_pastoral, super_admin_headers):
    response = client.delete(f"/api/admin/pastorais/{default_pastoral.id}", headers=super_admin_headers)

    assert response.status_code == 403
    assert response.json()["message"] == "Não é possível excluir a pastoral padrão"


def test_delete_pastoral_cascades(client, db_session, outra_pastoral, outro_admin, super_admin_headers, make_evaluation):
    client.post("/api/avaliacoes", json=make_evaluation(), headers={"host": "saobenedito.avaliacoes.com.br"})
    pastoral_id = outra_pastoral.id

    response = client.delete(f"/api/admin/pastorais/{pastoral_id}", headers=super_admin_headers)

    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.query(Pastoral).filter(Pastoral.id == pastoral_id).count() == 0
    assert db_session.query(User).filter(User.pastoral_id == pastoral_id).count() == 0
    assert db_session.query(Avaliacao).count() == 0
    # o registro de auditoria sobrevive
    assert db_session.query(AuditLog).filter(AuditLog.action == "delete_pastoral").count() == 1


# --- Usuários ---


def test_create_user(client, db_session, default_pastoral, super_admin_headers, monkeypatch):
    sent = []
    monkeypatch.setattr(email_service, "send_welcome_email", lambda *args: sent.append(args) or True)

    response = client.post("/api/admin/users", json=_novo_usuario(default_pastoral.id), headers=super_admin_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Usuário criado com sucesso"
    user = db_session.get(User, body["userId"])
    assert user.pastoral_id == default_pastoral.id
    assert user.password_hash != "SenhaForte1"
    assert sent == [("novo.admin@example.com", "Maria e José", "pastoral_admin")]
    assert db_session.query(AuditLog).filter(AuditLog.action == "create_user").count() == 1


def test_create_super_admin_ignores_pastoral(client, db_session, default_pastoral, super_admin_headers):
    response = client.post(
        "/api/admin/users",
        json=_novo_usuario(default_pastoral.id, role="super_admin"),
        headers=super_admin_headers,
    )

    assert response.status_code == 201
    assert db_session.get(User, response.json()["userId"]).pastoral_id is None


def test_create_user_weak_password(client, default_pastoral, super_admin_headers):
    response = client.post(
        "/api/admin/users", json=_novo_usuario(default_pastoral.id, password="semnumero"), headers=super_admin_headers
    )
    assert response.status_code == 400


def test_create_pastoral_admin_without_pastoral(client, super_admin_headers):
    response = client.post("/api/admin/users", json=_novo_usuario(None), headers=super_admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "pastoralId é obrigatório para pastoral_admin"


def test_create_user_unknown_pastoral(client, super_admin_headers):
    response = client.post("/api/admin/users", json=_novo_usuario(9999), headers=super_admin_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Pastoral não encontrada"


def test_create_user_duplicate_email(client, default_pastoral, pastoral_admin, super_admin_headers):
    response = client.post(
        "/api/admin/users",
        json=_novo_usuario(default_pastoral.id, email=pastoral_admin.email.upper()),
        headers=super_admin_headers,
    )

    assert response.status_code == 409
    assert response.json()["message"] == "Já existe um usuário com este email"


def test_list_and_get_users(client, super_admin, pastoral_admin, super_admin_headers):
    listing = client.get("/api/admin/users", headers=super_admin_headers).json()
    assert listing["total"] == 2
    assert {u["email"] for u in listing["users"]} == {super_admin.email, pastoral_admin.email}
    assert "passwordHash" not in listing["users"][0]

    filtered = client.get(
        "/api/admin/users", params={"pastoralId": pastoral_admin.pastoral_id}, headers=super_admin_headers
    ).json()
    assert filtered["total"] == 1

    user = client.get(f"/api/admin/users/{pastoral_admin.id}", headers=super_admin_headers).json()["user"]
    assert user["pastoralId"] == pastoral_admin.pastoral_id
    assert user["isActive"] is True

    assert client.get("/api/admin/users/9999", headers=super_admin_headers).status_code == 404


def test_update_user(client, db_session, pastoral_admin, super_admin_headers):
    response = client.put(
        f"/api/admin/users/{pastoral_admin.id}",
        json={"name": "Novo Nome do Casal", "isActive": False},
        headers=super_admin_headers,
    )

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["name"] == "Novo Nome do Casal"
    assert user["isActive"] is False
    assert db_session.query(AuditLog).filter(AuditLog.action == "update_user").count() == 1


def test_update_user_to_super_admin_drops_pastoral(client, db_session, pastoral_admin, super_admin_headers):
    response = client.put(
        f"/api/admin/users/{pastoral_admin.id}", json={"role": "super_admin"}, headers=super_admin_headers
    )

    assert response.json()["user"]["pastoralId"] is None


def test_update_user_email_clash(client, super_admin, pastoral_admin, super_admin_headers):
    response = client.put(
        f"/api/admin/users/{pastoral_admin.id}", json={"email": super_admin.email}, headers=super_admin_headers
    )
    assert response.status_code == 409


@pytest.mark.parametrize("field", ["email", "name", "isActive", "role"])
def test_update_user_rejects_null(client, db_session, pastoral_admin, super_admin_headers, field):
    email = pastoral_admin.email

    response = client.put(f"/api/admin/users/{pastoral_admin.id}", json={field: None}, headers=super_admin_headers)

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == field
    db_session.expire_all()
    assert pastoral_admin.email == email
    assert pastoral_admin.is_active is True


def test_update_pastoral_rejects_null_name(client, outra_pastoral, super_admin_headers):
    response = client.put(f"/api/admin/pastorais/{outra_pastoral.id}", json={"name": None}, headers=super_admin_headers)
    assert response.status_code == 400


def test_delete_user(client, db_session, pastoral_admin, super_admin_headers):
    user_id = pastoral_admin.id

    response = client.delete(f"/api/admin/users/{user_id}", headers=super_admin_headers)

    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.query(User).filter(User.id == user_id).count() == 0
    log = db_session.query(AuditLog).filter(AuditLog.action == "delete_user").one()
    assert log.resource_id == user_id


def test_delete_yourself_is_refused(client, super_admin, super_admin_headers):
    response = client.delete(f"/api/admin/users/{super_admin.id}", headers=super_admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Você não pode excluir sua própria conta"


# --- Auditoria e segurança ---


def test_audit_logs(client, super_admin, default_pastoral, outra_pastoral, super_admin_headers):
    client.put(f"/api/admin/pastorais/{outra_pastoral.id}/config", json={"config": {}}, headers=super_admin_headers)
    client.put(
        f"/api/admin/pastorais/{outra_pastoral.id}",
        json={"name": "Paróquia São Benedito"},
        headers=super_admin_headers,
    )
    client.put(f"/api/admin/pastorais/{default_pastoral.id}", json={"cidade": "Jundiaí"}, headers=super_admin_headers)

    body = client.get("/api/admin/audit-logs", headers=super_admin_headers).json()

    assert body["total"] == 3
    assert [log["action"] for log in body["logs"]][0] == "update_pastoral"
    assert body["logs"][0]["user_email"] == super_admin.email
    assert body["logs"][0]["user_name"] == super_admin.name

    filtered = client.get(
        "/api/admin/audit-logs", params={"pastoralId": outra_pastoral.id}, headers=super_admin_headers
    ).json()
    assert filtered["total"] == 2

    page = client.get("/api/admin/audit-logs", params={"limit": 1, "offset": 1}, headers=super_admin_headers).json()
    assert page["total"] == 3
    assert len(page["logs"]) == 1


def test_security_stats(client, super_admin, super_admin_headers):
    client.post("/api/auth/login", json={"email": super_admin.email, "password": "Errada123"})

    response = client.get("/api/admin/security/stats", params={"hours": 1}, headers=super_admin_headers)

    assert response.status_code == 200
    stats = response.json()["stats"]
    assert stats["total"] == 1
    assert stats["failed"] == 1
    assert stats["unique_emails"] == 1
