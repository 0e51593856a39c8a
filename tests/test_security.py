from datetime import timedelta

import pytest
from jose import jwt

from avaliacoes.config import settings
from avaliacoes.exceptions import UnauthorizedError
from avaliacoes.security import (
    create_access_token,
    decode_access_token,
    generate_password_reset_token,
    generate_refresh_token,
    get_password_hash,
    hash_token,
    validate_password,
    verify_password,
)


@pytest.mark.parametrize(
    "password, message",
    [
        ("Curta1", "Senha deve ter no mínimo 8 caracteres"),
        ("SEMMINUSCULA1", "Senha deve conter pelo menos uma letra minúscula"),
        ("semmaiuscula1", "Senha deve conter pelo menos uma letra maiúscula"),
        ("SemNumeroAqui", "Senha deve conter pelo menos um número"),
    ],
)
def test_password_policy_rejects(password, message):
    assert validate_password(password) == (False, message)


def test_password_policy_accepts():
    assert validate_password("Pastoral2026") == (True, None)


def test_password_hash_and_verify():
    hashed = get_password_hash("Pastoral2026")

    assert hashed != "Pastoral2026"
    assert verify_password("Pastoral2026", hashed)
    assert not verify_password("pastoral2026", hashed)
    assert not verify_password("Pastoral2026", None)


def test_access_token_claims(pastoral_admin):
    token = create_access_token(pastoral_admin)

    payload = decode_access_token(token)

    assert payload["sub"] == str(pastoral_admin.id)
    assert payload["email"] == pastoral_admin.email
    assert payload["role"] == "pastoral_admin"
    assert payload["pastoral_id"] == pastoral_admin.pastoral_id
    assert payload["type"] == "access"


def test_expired_access_token(pastoral_admin):
    token = create_access_token(pastoral_admin, expires_delta=timedelta(seconds=-10))

    with pytest.raises(UnauthorizedError) as exc_info:
        decode_access_token(token)
    assert exc_info.value.message == "Token expirado"


def test_token_signed_with_other_secret(pastoral_admin):
    token = jwt.encode({"sub": "1", "type": "access"}, "outro-segredo-qualquer-com-32-caracteres", algorithm="HS256")

    with pytest.raises(UnauthorizedError) as exc_info:
        decode_access_token(token)
    assert exc_info.value.message == "Token inválido"


def test_token_without_access_type_is_rejected():
    token = jwt.encode({"sub": "1", "type": "refresh"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    with pytest.raises(UnauthorizedError):
        decode_access_token(token)


def test_expired_token_on_protected_route(client, pastoral_admin):
    token = create_access_token(pastoral_admin, expires_delta=timedelta(seconds=-10))

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Token expirado"


def test_stale_cookie_falls_back_to_bearer(client, pastoral_admin, admin_headers):
    expirado = create_access_token(pastoral_admin, expires_delta=timedelta(seconds=-10))
    client.cookies.set("accessToken", expirado)

    assert client.get("/api/auth/me").status_code == 401

    response = client.get("/api/auth/me", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["user"]["id"] == pastoral_admin.id


def test_token_for_deleted_user(client, db_session, pastoral_admin):
    token = create_access_token(pastoral_admin)
    db_session.delete(pastoral_admin)
    db_session.commit()

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_inactive_user_token_is_forbidden(client, db_session, pastoral_admin, admin_headers):
    pastoral_admin.is_active = False
    db_session.commit()

    assert client.get("/api/auth/me", headers=admin_headers).status_code == 403


def test_opaque_tokens():
    refresh = generate_refresh_token()
    reset = generate_password_reset_token()

    assert len(refresh) == 128
    assert len(reset) == 64
    assert refresh != generate_refresh_token()
    int(refresh, 16)


def test_hash_token_is_keyed_and_stable():
    assert hash_token("abc") == hash_token("abc")
    assert hash_token("abc") != hash_token("abd")
    assert len(hash_token("abc")) == 64
