from types import SimpleNamespace

import pytest

from avaliacoes.config import settings
from avaliacoes.services import email_service as email_module
from avaliacoes.services.email_service import EmailService


@pytest.fixture
def sent_messages(monkeypatch):
    """Troca o cliente SendGrid por um que só guarda as mensagens"""
    messages = []

    def fake_send(self, message):
        messages.append(message)
        return SimpleNamespace(status_code=202, body="")

    monkeypatch.setattr(email_module.SendGridAPIClient, "send", fake_send)
    return messages


def test_not_configured_does_not_send(sent_messages):
    service = EmailService(api_key="")

    assert service.is_configured is False
    assert service.send_email("casal@example.com", "Assunto", "<p>Oi</p>") is False
    assert sent_messages == []


def test_send_email(sent_messages):
    service = EmailService(api_key="SG.chave-de-teste")

    assert service.send_email("casal@example.com", "Assunto", "<p>Oi</p>") is True

    payload = sent_messages[0].get()
    assert payload["subject"] == "Assunto"
    assert payload["personalizations"][0]["to"][0]["email"] == "casal@example.com"
    content_types = [content["type"] for content in payload["content"]]
    assert content_types == ["text/plain", "text/html"]
    assert payload["content"][0]["value"] == "Oi"


def test_sendgrid_error_returns_false(monkeypatch):
    def broken_send(self, message):
        raise RuntimeError("conexão recusada")

    monkeypatch.setattr(email_module.SendGridAPIClient, "send", broken_send)

    assert EmailService(api_key="SG.chave-de-teste").send_email("a@example.com", "x", "<p>x</p>") is False


def test_sendgrid_unexpected_status_returns_false(monkeypatch):
    monkeypatch.setattr(
        email_module.SendGridAPIClient,
        "send",
        lambda self, message: SimpleNamespace(status_code=401, body="unauthorized"),
    )

    assert EmailService(api_key="SG.chave-de-teste").send_email("a@example.com", "x", "<p>x</p>") is False


def _capture(monkeypatch, service):
    captured = {}

    def fake_send_email(to_email, subject, html_content, text_content=None):
        captured.update(to=to_email, subject=subject, html=html_content)
        return True

    monkeypatch.setattr(service, "send_email", fake_send_email)
    return captured


def test_password_reset_email_has_link(monkeypatch):
    service = EmailService(api_key="SG.chave-de-teste")
    captured = _capture(monkeypatch, service)

    assert service.send_password_reset_email("casal@example.com", "Maria", "abc123") is True

    link = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token=abc123"
    assert captured["to"] == "casal@example.com"
    assert link in captured["html"]
    assert "1 hora" in captured["html"]


def test_welcome_email_escapes_name(monkeypatch):
    service = EmailService(api_key="SG.chave-de-teste")
    captured = _capture(monkeypatch, service)

    service.send_welcome_email("novo@example.com", "<b>João</b>", "pastoral_admin")

    assert "&lt;b&gt;João&lt;/b&gt;" in captured["html"]
    assert "Administrador de Pastoral" in captured["html"]


def test_new_avaliacao_notification(monkeypatch):
    service = EmailService(api_key="SG.chave-de-teste")
    captured = _capture(monkeypatch, service)

    service.send_new_avaliacao_notification("contato@example.com", "Ana e Pedro", "Encontro de Outono")

    assert captured["subject"] == "Nova Avaliação: Ana e Pedro"
    assert "Encontro de Outono" in captured["html"]
