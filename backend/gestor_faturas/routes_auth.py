# Endpoints de autenticação: login, renovação e validação do token
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from gestor_faturas import auth
from gestor_faturas.auth import Identidade, get_current_identity
from gestor_faturas.db import get_db

router = APIRouter(prefix="/api", tags=["auth"])


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


@router.post("/login")
def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Faz login com usuário e senha.
    Retorna token JWT (8 horas) e os dados do usuário para exibição.
    """
    token, identidade = auth.login(db, body.username, body.password)
    return {"token": token, "user": identidade.model_dump()}


@router.post("/refresh-token")
def refresh_token(
    db: Session = Depends(get_db),
    identidade: Identidade = Depends(get_current_identity),
):
    """
    Emite um novo token a partir de um token ainda válido.
    Devolve também o usuário relido do banco (is_admin pode ter mudado).
    """
    token, atual = auth.refresh(db, identidade)
    return {"token": token, "user": atual.model_dump()}


@router.get("/validate-token")
def validate_token(identidade: Identidade = Depends(get_current_identity)):
    """Confirma que o token é válido e devolve a identidade contida nele."""
    return {"valid": True, "user": identidade.model_dump()}
