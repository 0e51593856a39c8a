from avaliacoes.config import settings
from avaliacoes.csrf import CSRF_COOKIE, CSRF_HEADER

from tests.conftest import PASTORAL_ADMIN_PASSWORD


def _login(client, user):
    response = client.post("/api/auth/login", json={"email": user.email, "password": PASTORAL_ADMIN_PASSWORD})
    assert response.status_code == 200


def _change_password(client, headers=None):
    return client.put(
        "/api/auth/change-password",
        json={"currentPassword": PASTORAL_ADMIN_PASSWORD, "newPassword": "NovaSenha2026"},
        headers=headers or {},
    )


def test_csrf_token_endpoint_sets_signed_cookie(client):
    response = client.get("/api/csrf-token")

    assert response.status_code == 200
    token = response.json()["csrfToken"]
    assert token
    signed = client.cookies.get(CSRF_COOKIE)
    assert signed and signed != token
    set_cookie = response.headers["set-cookie"].lower()
    assert "httponly" in set_cookie
    assert "samesite=strict" in set_cookie


def test_cookie_session_without_csrf_header_is_rejected(client, pastoral_admin):
    _login(client, pastoral_admin)

    response = _change_password(client)

    assert response.status_code == 403
    assert response.json()["message"] == "Token CSRF inválido ou ausente"


def test_cookie_session_with_valid_csrf_header(client, pastoral_admin):
    _login(client, pastoral_admin)
    token = client.get("/api/csrf-token").json()["csrfToken"]

    response = _change_password(client, {CSRF_HEADER: token})

    assert response.status_code == 200


def test_wrong_csrf_header_is_rejected(client, pastoral_admin):
    _login(client, pastoral_admin)
    client.get("/api/csrf-token")

    response = _change_password(client, {CSRF_HEADER: "valor-inventado"})
    assert response.status_code == 403


def test_tampered_csrf_cookie_is_rejected(client, pastoral_admin):
    _login(client, pastoral_admin)
    token = client.get("/api/csrf-token").json()["csrfToken"]
    client.cookies.delete(CSRF_COOKIE)
    client.cookies.set(CSRF_COOKIE, "adulterado." + token)

    response = _change_password(client, {CSRF_HEADER: token})
    assert response.status_code == 403


def test_csrf_protects_encontro_writes(client, pastoral_admin):
    _login(client, pastoral_admin)
    payload = {"nome": "Encontro de Noivos", "data_inicio": "2026-05-01", "data_fim": "2026-05-03"}

    assert client.post("/api/encontros", json=payload).status_code == 403

    token = client.get("/api/csrf-token").json()["csrfToken"]
    assert client.post("/api/encontros", json=payload, headers={CSRF_HEADER: token}).status_code == 201


def test_safe_methods_do_not_need_csrf(client, pastoral_admin):
    _login(client, pastoral_admin)
    assert client.get("/api/encontros").status_code == 200


def test_bearer_requests_skip_csrf(client, pastoral_admin, admin_headers):
    """Sem cookie de sessão não há credencial ambiente para forjar"""
    response = _change_password(client, admin_headers)
    assert response.status_code == 200


def test_csrf_can_be_disabled(client, pastoral_admin, monkeypatch):
    monkeypatch.setattr(settings, "CSRF_ENABLED", False)
    _login(client, pastoral_admin)

    assert _change_password(client).status_code == 200
