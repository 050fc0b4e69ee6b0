# Endpoints de usuários (somente administradores)
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from gestor_faturas.auth import Identidade, require_admin
from gestor_faturas.db import get_db
from gestor_faturas.usuarios import criar_usuario, excluir_usuario, listar_usuarios, usuario_para_dict

router = APIRouter(prefix="/api/usuarios", tags=["usuarios"])


class UsuarioCreate(BaseModel):
    username: str = ""
    password: str = ""
    nome: str = ""
    is_admin: bool = False


@router.get("")
def list_usuarios(
    db: Session = Depends(get_db),
    admin: Identidade = Depends(require_admin),
):
    return [usuario_para_dict(u) for u in listar_usuarios(db)]


@router.post("", status_code=201)
def create_usuario(
    body: UsuarioCreate,
    db: Session = Depends(get_db),
    admin: Identidade = Depends(require_admin),
):
    """Cria um usuário. Retorna 409 se o username já existir."""
    user = criar_usuario(db, body.username, body.password, body.nome, body.is_admin)
    return usuario_para_dict(user)


@router.delete("/{usuario_id}")
def delete_usuario(
    usuario_id: str,
    db: Session = Depends(get_db),
    admin: Identidade = Depends(require_admin),
):
    """Exclui um usuário. O admin logado não pode excluir a si mesmo."""
    excluir_usuario(db, usuario_id, admin)
    return {"success": True}
