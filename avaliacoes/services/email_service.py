# avaliacoes/services/email_service.py
"""
Envio de emails via SendGrid.

Todos os métodos devolvem True/False em vez de levantar exceção: quem chama
(normalmente uma BackgroundTask) só precisa saber se o email saiu.
"""
import html
import logging
import re
from datetime import datetime
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Content, Email, Mail, To

from avaliacoes.config import settings

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")

_LAYOUT = """<!DOCTYPE html>
<html lang="pt-BR">
<head>
  <meta charset="UTF-8">
  <title>{title}</title>
  <style>
    body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; }}
    .header {{ background: #4f46e5; color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0; }}
    .content {{ background: #f9fafb; padding: 30px; border-radius: 0 0 10px 10px; }}
    .button {{ display: inline-block; padding: 12px 30px; background: #3b82f6; color: white; text-decoration: none; border-radius: 5px; margin: 20px 0; }}
    .footer {{ text-align: center; margin-top: 30px; color: #6b7280; font-size: 12px; }}
  </style>
</head>
<body>
  <div class="header"><h1>{title}</h1></div>
  <div class="content">{body}</div>
  <div class="footer">
    <p>Este é um email automático, por favor não responda.</p>
    <p>&copy; {year} Sistema de Avaliações - Pastoral Familiar</p>
  </div>
</body>
</html>
"""


def _render(title: str, body: str) -> str:
    return _LAYOUT.format(title=title, body=body, year=datetime.utcnow().year)


class EmailService:
    """Serviço de email (SendGrid)"""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.SENDGRID_API_KEY
        self.from_email = settings.SENDGRID_FROM_EMAIL
        self.from_name = settings.SENDGRID_FROM_NAME
        self.frontend_url = settings.FRONTEND_URL.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def send_email(self, to_email: str, subject: str, html_content: str, text_content: Optional[str] = None) -> bool:
        if not self.is_configured:
            logger.warning("SendGrid não configurado; email não enviado", extra={"event": "email.failed", "to": to_email})
            return False

        message = Mail(
            from_email=Email(self.from_email, self.from_name),
            to_emails=To(to_email),
            subject=subject,
        )
        message.add_content(Content("text/plain", text_content or _TAG_RE.sub("", html_content)))
        message.add_content(Content("text/html", html_content))

        try:
            response = SendGridAPIClient(self.api_key).send(message)
        except Exception as e:
            logger.error(f"Erro ao enviar email para {to_email}: {e}", extra={"event": "email.failed"})
            return False

        if response.status_code in (200, 201, 202):
            logger.info(f"Email enviado para {to_email}: {subject}", extra={"event": "email.sent"})
            return True

        logger.error(
            f"SendGrid respondeu {response.status_code} para {to_email}",
            extra={"event": "email.failed", "body": response.body},
        )
        return False

    def send_password_reset_email(self, email: str, name: str, reset_token: str) -> bool:
        reset_link = f"{self.frontend_url}/reset-password?token={reset_token}"
        body = f"""
    <h2>Olá, {html.escape(name)}!</h2>
    <p>Recebemos uma solicitação para redefinir a senha da sua conta no <strong>Sistema de Avaliações</strong>.</p>
    <p><a href="{reset_link}" class="button">Redefinir Senha</a></p>
    <p>Ou copie e cole o link abaixo no seu navegador:</p>
    <p style="word-break: break-all;">{reset_link}</p>
    <p><strong>Importante:</strong> este link expira em <strong>1 hora</strong>.
    Se você não solicitou esta redefinição, ignore este email.</p>"""
        return self.send_email(
            email, "Redefinição de Senha - Sistema de Avaliações", _render("Redefinição de Senha", body)
        )

    def send_welcome_email(self, email: str, name: str, role: str) -> bool:
        login_link = f"{self.frontend_url}/login"
        role_label = "Super Administrador" if role == "super_admin" else "Administrador de Pastoral"
        body = f"""
    <h2>Olá, {html.escape(name)}!</h2>
    <p>Sua conta no <strong>Sistema de Avaliações</strong> foi criada com o perfil <strong>{role_label}</strong>.</p>
    <p>Use o email <strong>{html.escape(email)}</strong> e a senha informada pelo administrador para entrar.</p>
    <p><a href="{login_link}" class="button">Acessar o sistema</a></p>
    <p>Recomendamos trocar a senha no primeiro acesso.</p>"""
        return self.send_email(email, "Bem-vindo ao Sistema de Avaliações", _render("Bem-vindo!", body))

    def send_new_avaliacao_notification(self, admin_email: str, couple_name: str, encontro_name: str) -> bool:
        dashboard_link = f"{self.frontend_url}/dashboard"
        body = f"""
    <h2>Nova avaliação recebida</h2>
    <p><strong>Casal:</strong> {html.escape(couple_name)}</p>
    <p><strong>Encontro:</strong> {html.escape(encontro_name)}</p>
    <p><a href="{dashboard_link}" class="button">Ver no painel</a></p>"""
        return self.send_email(admin_email, f"Nova Avaliação: {couple_name}", _render("Nova Avaliação", body))


email_service = EmailService()
