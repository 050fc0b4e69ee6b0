# Autenticação: hash de senha, JWT, login/refresh e dependências de acesso
import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from sqlalchemy.orm import Session

from gestor_faturas.config import BCRYPT_ROUNDS, JWT_ALGORITHM, JWT_EXPIRE_HOURS, JWT_SECRET
from gestor_faturas.errors import Forbidden, Unauthenticated, ValidationError
from gestor_faturas.models import User

logger = logging.getLogger("uvicorn.error")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)
security = HTTPBearer(auto_error=False)

CREDENCIAIS_INVALIDAS = "Credenciais inválidas"

# Hash usado quando o usuário não existe: a verificação custa o mesmo nos dois casos
_DUMMY_HASH = pwd_context.hash("senha-inexistente")


class Identidade(BaseModel):
    """Quem está fazendo a requisição, segundo o token."""

    id: str
    username: str
    is_admin: bool


def hash_password(password: str) -> str:
    """Gera hash bcrypt da senha."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica se a senha em texto corresponde ao hash."""
    return pwd_context.verify(plain_password, hashed_password)


def identidade_de(user: User) -> Identidade:
    return Identidade(id=user.id, username=user.username, is_admin=user.is_admin)


def create_access_token(identidade: Identidade, expires_delta: timedelta | None = None) -> str:
    """Gera JWT com id, username e is_admin no payload."""
    agora = datetime.now(timezone.utc)
    expire = agora + (expires_delta if expires_delta is not None else timedelta(hours=JWT_EXPIRE_HOURS))
    payload = {
        "sub": identidade.id,
        "username": identidade.username,
        "is_admin": identidade.is_admin,
        "iat": agora,
        "exp": expire,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Identidade:
    """Decodifica JWT e retorna a identidade. Levanta Unauthenticated se inválido ou expirado."""
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token expirado")
    except jwt.PyJWTError:
        raise Unauthenticated("Token inválido")
    username = payload.get("username")
    if not isinstance(username, str):
        raise Unauthenticated("Token inválido")
    return Identidade(id=payload["sub"], username=username, is_admin=bool(payload.get("is_admin")))


def login(db: Session, username: str, password: str) -> tuple[str, Identidade]:
    """
    Valida usuário e senha e emite um token de 8 horas.
    Usuário inexistente e senha errada geram o mesmo erro.
    """
    username = (username or "").strip()
    password = (password or "").strip()
    if not username or not password:
        raise ValidationError("Usuário e senha são obrigatórios")

    user = db.query(User).filter(User.username == username).first()
    password_hash = user.password_hash if user else _DUMMY_HASH
    if not verify_password(password, password_hash) or not user:
        logger.warning(f"[AUTH] Login recusado para '{username}'")
        raise Unauthenticated(CREDENCIAIS_INVALIDAS)

    identidade = identidade_de(user)
    logger.info(f"[AUTH] Login de '{username}' (admin={user.is_admin})")
    return create_access_token(identidade), identidade


def refresh(db: Session, identidade: Identidade) -> tuple[str, Identidade]:
    """Reemite o token relendo o usuário do banco (is_admin pode ter mudado)."""
    user = db.query(User).filter(User.id == identidade.id).first()
    if not user:
        raise Unauthenticated("Usuário não encontrado")
    atual = identidade_de(user)
    return create_access_token(atual), atual


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identidade:
    """
    Dependência: extrai token do header Authorization e retorna a identidade.
    Não consulta o banco: a validade é só assinatura + expiração.
    """
    if not credentials or not credentials.credentials:
        raise Unauthenticated("Token de autenticação obrigatório")
    return decode_token(credentials.credentials)


async def require_admin(identidade: Identidade = Depends(get_current_identity)) -> Identidade:
    """Dependência: libera apenas administradores."""
    if not identidade.is_admin:
        raise Forbidden()
    return identidade
