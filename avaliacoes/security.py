# avaliacoes/security.py
"""
Primitivas de segurança: hash de senha, política de senha, JWT de acesso
e tokens opacos (refresh e reset de senha).

Nada aqui acessa o banco; o fluxo de login/refresh/reset fica em auth.py.
"""
import hashlib
import hmac
import re
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from avaliacoes.config import settings
from avaliacoes.exceptions import UnauthorizedError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

PASSWORD_MIN_LENGTH = 8


def verify_password(plain_password, hashed_password):
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def validate_password(password: str) -> Tuple[bool, Optional[str]]:
    """Retorna (True, None) ou (False, mensagem) para a primeira regra violada."""
    if len(password) < PASSWORD_MIN_LENGTH:
        return False, f"Senha deve ter no mínimo {PASSWORD_MIN_LENGTH} caracteres"
    if not re.search(r"[a-z]", password):
        return False, "Senha deve conter pelo menos uma letra minúscula"
    if not re.search(r"[A-Z]", password):
        return False, "Senha deve conter pelo menos uma letra maiúscula"
    if not re.search(r"[0-9]", password):
        return False, "Senha deve conter pelo menos um número"
    return True, None


# --- JWT de acesso ---


def create_access_token(user, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.utcnow() + (expires_delta or timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "pastoral_id": user.pastoral_id,
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedError("Token expirado")
    except JWTError:
        raise UnauthorizedError("Token inválido")

    if payload.get("type") != "access" or payload.get("sub") is None:
        raise UnauthorizedError("Token inválido")
    return payload


# --- Tokens opacos ---


def generate_refresh_token() -> str:
    return secrets.token_hex(64)


def generate_password_reset_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    # O banco guarda só o HMAC; um vazamento da tabela não expõe sessões
    return hmac.new(settings.REFRESH_TOKEN_SECRET.encode(), token.encode(), hashlib.sha256).hexdigest()
