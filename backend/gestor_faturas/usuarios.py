# Cadastro de usuários: listar, criar e excluir (rotas restritas a admin)
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gestor_faturas.auth import Identidade, hash_password
from gestor_faturas.errors import Conflict, NotFound, ValidationError
from gestor_faturas.models import User

logger = logging.getLogger("uvicorn.error")

SENHA_MIN_CARACTERES = 6


def usuario_para_dict(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "nome": user.nome,
        "is_admin": user.is_admin,
        "criado_em": user.criado_em.isoformat(),
    }


def listar_usuarios(db: Session) -> list[User]:
    return db.query(User).order_by(User.username).all()


def criar_usuario(db: Session, username: str, password: str, nome: str = "", is_admin: bool = False) -> User:
    """Cria um usuário. Levanta Conflict se o username já existir."""
    username = (username or "").strip()
    password = (password or "").strip()
    if not username or not password:
        raise ValidationError("Usuário e senha são obrigatórios")
    if len(password) < SENHA_MIN_CARACTERES:
        raise ValidationError(f"Senha deve ter no mínimo {SENHA_MIN_CARACTERES} caracteres")

    if db.query(User).filter(User.username == username).first():
        raise Conflict("Nome de usuário já existe")

    user = User(
        id=str(uuid.uuid4()),
        username=username,
        nome=(nome or "").strip(),
        password_hash=hash_password(password),
        is_admin=bool(is_admin),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Outro request criou o mesmo username entre a checagem e o insert
        db.rollback()
        raise Conflict("Nome de usuário já existe")
    db.refresh(user)
    logger.info(f"[AUTH] Usuário '{user.username}' criado (admin={user.is_admin})")
    return user


def excluir_usuario(db: Session, usuario_id: str, atual: Identidade) -> None:
    """Exclui um usuário. Ninguém pode excluir a si mesmo, nem sendo admin."""
    if usuario_id == atual.id:
        raise ValidationError("Você não pode excluir a si mesmo")
    user = db.query(User).filter(User.id == usuario_id).first()
    if not user:
        raise NotFound("Usuário não encontrado")
    db.delete(user)
    db.commit()
    logger.info(f"[AUTH] Usuário '{user.username}' excluído por '{atual.username}'")
