"""
Configuração do pytest e fixtures compartilhadas.

As variáveis de ambiente são definidas antes de importar o pacote: o
config lê tudo no import. O banco é SQLite em memória (uma conexão só,
StaticPool) e é recriado a cada teste; os uploads vão para tmp_path.
"""

import os
from datetime import date, timedelta

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin123"
os.environ["ENV"] = "test"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from gestor_faturas import storage  # noqa: E402
from gestor_faturas.db import Base, engine  # noqa: E402
from gestor_faturas.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def uploads_dir(tmp_path, monkeypatch):
    """Cada teste grava comprovantes numa pasta própria."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(storage, "UPLOADS_DIR", path)
    return path


@pytest.fixture
def client():
    """TestClient com lifespan: cria as tabelas, operadoras padrão e o admin."""
    Base.metadata.drop_all(bind=engine)
    with TestClient(app) as c:
        yield c
    Base.metadata.drop_all(bind=engine)


def login(client, username: str, password: str):
    return client.post("/api/login", json={"username": username, "password": password})


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_login(client) -> dict:
    response = login(client, "admin", "admin123")
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def admin_headers(admin_login) -> dict:
    return bearer(admin_login["token"])


@pytest.fixture
def user_headers(client, admin_headers) -> dict:
    """Usuário comum (não admin) criado pela API."""
    response = client.post(
        "/api/usuarios",
        json={"username": "maria", "password": "segredo1", "nome": "Maria"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    return bearer(login(client, "maria", "segredo1").json()["token"])


@pytest.fixture
def operadora_id(client, admin_headers) -> str:
    operadoras = client.get("/api/operadoras", headers=admin_headers).json()
    return operadoras[0]["id"]


@pytest.fixture
def criar_fatura(client, admin_headers, operadora_id):
    """Fábrica: cria uma fatura vencendo `hoje + dias` e devolve o JSON da resposta."""

    def _criar(dias: int = 10, referencia: str = "REF", valor: float = 100.5, headers: dict | None = None):
        response = client.post(
            "/api/faturas",
            json={
                "operadora_id": operadora_id,
                "referencia": referencia,
                "valor": valor,
                "vencimento": (date.today() + timedelta(days=dias)).isoformat(),
            },
            headers=headers or admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _criar
