from avaliacoes.models import pastoral, usuario, encontro, avaliacao, token, login_attempt, audit_log  # noqa: F401
from avaliacoes.models.pastoral import Pastoral
from avaliacoes.models.usuario import User, ROLE_SUPER_ADMIN, ROLE_PASTORAL_ADMIN
from avaliacoes.models.encontro import Encontro
from avaliacoes.models.avaliacao import (
    Avaliacao,
    PreEncontro,
    Palestras,
    Ambientes,
    Refeicoes,
    Musicas,
    Equipe,
    AvaliacaoGeral,
    PastoralInteresse,
    MensagemFinal,
)
from avaliacoes.models.token import RefreshToken, PasswordResetToken
from avaliacoes.models.login_attempt import LoginAttempt
from avaliacoes.models.audit_log import AuditLog
