import re
from datetime import timedelta

from avaliacoes.models.audit_log import AuditLog
from avaliacoes.models.avaliacao import Avaliacao
from avaliacoes.models.encontro import Encontro
from avaliacoes.security import create_access_token

OUTRA_HOST = "saobenedito.avaliacoes.com.br"


def _payload(**extra):
    payload = {
        "nome": "Encontro de Casais - Outono",
        "descricao": "Fim de semana de formação",
        "data_inicio": "2026-04-17",
        "data_fim": "2026-04-19",
        "local": "Seminário Diocesano",
        "tema": "Família, escola de amor",
        "status": "planejado",
        "max_participantes": 40,
    }
    payload.update(extra)
    return payload


def test_create_encontro_generates_access_code(client, db_session, pastoral_admin, admin_headers):
    response = client.post("/api/encontros", json=_payload(), headers=admin_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Encontro criado com sucesso!"
    data = body["data"]
    assert data["pastoral_id"] == pastoral_admin.pastoral_id
    assert re.fullmatch(r"[0-9A-F]{8}", data["codigo_acesso"])

    log = db_session.query(AuditLog).filter(AuditLog.action == "create_encontro").one()
    assert log.resource_id == data["id"]


def test_create_encontro_with_explicit_code(client, admin_headers):
    response = client.post("/api/encontros", json=_payload(codigo_acesso="OUTONO26"), headers=admin_headers)

    assert response.status_code == 201
    assert response.json()["data"]["codigo_acesso"] == "OUTONO26"


def test_create_encontro_duplicate_code(client, encontro, admin_headers):
    response = client.post("/api/encontros", json=_payload(codigo_acesso=encontro.codigo_acesso), headers=admin_headers)
    assert response.status_code == 409


def test_create_encontro_end_before_start(client, admin_headers):
    response = client.post(
        "/api/encontros", json=_payload(data_inicio="2026-04-19", data_fim="2026-04-17"), headers=admin_headers
    )
    assert response.status_code == 400


def test_create_encontro_invalid_status(client, admin_headers):
    response = client.post("/api/encontros", json=_payload(status="adiado"), headers=admin_headers)
    assert response.status_code == 400


def test_create_encontro_requires_auth(client, default_pastoral):
    response = client.post("/api/encontros", json=_payload())
    assert response.status_code == 401


def test_list_encontros(client, encontro, admin_headers):
    response = client.get("/api/encontros", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["data"][0]["codigo_acesso"] == encontro.codigo_acesso
    assert "total_avaliacoes" not in body["data"][0]


def test_list_encontros_with_stats(client, encontro, admin_headers, make_evaluation):
    client.post("/api/avaliacoes", json=make_evaluation(nota=5, codigoAcesso=encontro.codigo_acesso))
    client.post("/api/avaliacoes", json=make_evaluation(nota=3, codigoAcesso=encontro.codigo_acesso))

    response = client.get("/api/encontros", params={"stats": "true"}, headers=admin_headers)

    item = response.json()["data"][0]
    assert item["total_avaliacoes"] == 2
    assert item["media_geral"] == 4.0


def test_list_encontros_only_from_own_pastoral(client, db_session, encontro, outro_admin):
    headers = {"Authorization": f"Bearer {create_access_token(outro_admin)}", "host": OUTRA_HOST}

    response = client.get("/api/encontros", headers=headers)
    assert response.json()["total"] == 0

    assert client.get(f"/api/encontros/{encontro.id}", headers=headers).status_code == 404


def test_public_lookup_by_code(client, encontro):
    response = client.get(f"/api/encontros/codigo/{encontro.codigo_acesso}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["nome"] == encontro.nome
    assert "pastoral_id" not in data


def test_public_lookup_unknown_code(client, default_pastoral):
    response = client.get("/api/encontros/codigo/NAOEXISTE")

    assert response.status_code == 404
    assert response.json()["message"] == "Nenhum encontro encontrado com o código NAOEXISTE"


def test_get_encontro(client, encontro, admin_headers):
    response = client.get(f"/api/encontros/{encontro.id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["id"] == encontro.id


def test_update_encontro(client, encontro, admin_headers):
    response = client.put(
        f"/api/encontros/{encontro.id}", json={"status": "concluido", "tema": "Novo tema"}, headers=admin_headers
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "concluido"
    assert data["tema"] == "Novo tema"
    assert data["nome"] == encontro.nome


def test_update_encontro_checks_merged_dates(client, encontro, admin_headers):
    """Só data_fim no corpo, mas anterior à data_inicio gravada"""
    antes = (encontro.data_inicio - timedelta(days=1)).isoformat()

    response = client.put(f"/api/encontros/{encontro.id}", json={"data_fim": antes}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Data de fim deve ser posterior à data de início"


def test_update_encontro_rejects_null_nome(client, encontro, admin_headers):
    response = client.put(f"/api/encontros/{encontro.id}", json={"nome": None}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "nome"


def test_update_missing_encontro(client, default_pastoral, admin_headers):
    response = client.put("/api/encontros/9999", json={"tema": "x"}, headers=admin_headers)
    assert response.status_code == 404


def test_delete_encontro_keeps_avaliacoes(client, db_session, encontro, admin_headers, make_evaluation):
    created = client.post("/api/avaliacoes", json=make_evaluation(encontroId=encontro.id))
    avaliacao_id = created.json()["id"]
    encontro_id = encontro.id

    response = client.delete(f"/api/encontros/{encontro_id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Encontro deletado com sucesso!"
    db_session.expire_all()
    assert db_session.query(Encontro).filter(Encontro.id == encontro_id).first() is None
    avaliacao = db_session.get(Avaliacao, avaliacao_id)
    assert avaliacao is not None
    assert avaliacao.encontro_id is None


def test_encontro_estatisticas(client, encontro, admin_headers, make_evaluation):
    client.post("/api/avaliacoes", json=make_evaluation(nota=4, encontroId=encontro.id))
    # fora do encontro: não entra na conta
    client.post("/api/avaliacoes", json=make_evaluation(nota=1))

    response = client.get(f"/api/encontros/{encontro.id}/estatisticas", headers=admin_headers)

    data = response.json()["data"]
    assert data["totalAvaliacoes"] == 1
    assert data["mediaAvaliacaoGeral"]["avg_overall"] == 4.0
    assert data["encontro"] == {"id": encontro.id, "nome": encontro.nome}


def test_encontro_avaliacoes(client, encontro, admin_headers, make_evaluation):
    client.post("/api/avaliacoes", json=make_evaluation(encontroId=encontro.id))
    client.post("/api/avaliacoes", json=make_evaluation())

    response = client.get(f"/api/encontros/{encontro.id}/avaliacoes", headers=admin_headers)

    body = response.json()
    assert body["total"] == 1
    assert body["data"][0]["encontro_id"] == encontro.id
