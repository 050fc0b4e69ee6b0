"""
Testes do CRUD de faturas e do filtro por status derivado.
"""

import uuid
from datetime import date, timedelta

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from gestor_faturas.db import SessionLocal
from gestor_faturas.models import Fatura, Operadora

pytestmark = pytest.mark.unit


def _vencimento(dias: int) -> str:
    return (date.today() + timedelta(days=dias)).isoformat()


def _refs(response) -> list[str]:
    assert response.status_code == 200, response.text
    return [f["referencia"] for f in response.json()]


# ============================================================================
# Criar / consultar
# ============================================================================


def test_criar_e_consultar_retornam_os_mesmos_dados(client, admin_headers, admin_login, operadora_id):
    criada = client.post(
        "/api/faturas",
        json={"operadora_id": operadora_id, "referencia": "REF1", "valor": 100.50, "vencimento": _vencimento(3)},
        headers=admin_headers,
    )
    assert criada.status_code == 201
    body = criada.json()

    assert body["operadora_id"] == operadora_id
    assert body["referencia"] == "REF1"
    assert body["valor"] == 100.5
    assert body["vencimento"] == _vencimento(3)
    assert body["status"] == "pendente"
    assert body["status_fatura"] == "proximo"
    assert body["usuario_id"] == admin_login["user"]["id"]
    assert body["data_envio"] is None
    assert body["comprovante_path"] is None
    assert body["operadora_nome"]

    consultada = client.get(f"/api/faturas/{body['id']}", headers=admin_headers)
    assert consultada.status_code == 200
    assert consultada.json() == body


def test_usuario_comum_cria_fatura(criar_fatura, user_headers):
    assert criar_fatura(headers=user_headers)["status"] == "pendente"


@pytest.mark.parametrize("campo", ["operadora_id", "referencia", "valor", "vencimento"])
def test_criar_sem_campo_obrigatorio_e_400(client, admin_headers, operadora_id, campo):
    dados = {"operadora_id": operadora_id, "referencia": "REF", "valor": 10, "vencimento": _vencimento(1)}
    del dados[campo]

    response = client.post("/api/faturas", json=dados, headers=admin_headers)

    assert response.status_code == 400
    assert campo in response.json()["error"]


@pytest.mark.parametrize(
    "alteracao",
    [{"referencia": "   "}, {"valor": 0}, {"valor": -5}, {"vencimento": "31/12/2026"}],
)
def test_criar_com_campo_invalido_e_400(client, admin_headers, operadora_id, alteracao):
    dados = {"operadora_id": operadora_id, "referencia": "REF", "valor": 10, "vencimento": _vencimento(1)}
    dados.update(alteracao)
    response = client.post("/api/faturas", json=dados, headers=admin_headers)
    assert response.status_code == 400


def test_criar_com_operadora_inexistente_e_404(client, admin_headers):
    response = client.post(
        "/api/faturas",
        json={"operadora_id": str(uuid.uuid4()), "referencia": "REF", "valor": 10, "vencimento": _vencimento(1)},
        headers=admin_headers,
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Operadora não encontrada"}


@pytest.mark.parametrize("valor", ["100.555", "0.001", "10000000000", "99999999999.99"])
def test_criar_com_valor_fora_de_numeric_12_2_e_400(client, admin_headers, operadora_id, valor):
    response = client.post(
        "/api/faturas",
        json={"operadora_id": operadora_id, "referencia": "REF", "valor": valor, "vencimento": _vencimento(1)},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert "valor" in response.json()["error"]
    assert client.get("/api/faturas", headers=admin_headers).json() == []


def test_criar_com_valor_maximo_de_numeric_12_2(client, admin_headers, operadora_id):
    response = client.post(
        "/api/faturas",
        json={"operadora_id": operadora_id, "referencia": "REF", "valor": "9999999999.99", "vencimento": _vencimento(1)},
        headers=admin_headers,
    )
    assert response.status_code == 201


def test_usuario_excluido_nao_cria_fatura(client, admin_headers, operadora_id):
    client.post("/api/usuarios", json={"username": "joao", "password": "segredo1"}, headers=admin_headers)
    token = client.post("/api/login", json={"username": "joao", "password": "segredo1"}).json()["token"]
    joao = next(u for u in client.get("/api/usuarios", headers=admin_headers).json() if u["username"] == "joao")
    assert client.delete(f"/api/usuarios/{joao['id']}", headers=admin_headers).status_code == 200

    response = client.post(
        "/api/faturas",
        json={"operadora_id": operadora_id, "referencia": "REF", "valor": 10, "vencimento": _vencimento(1)},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Usuário não encontrado"}
    assert client.get("/api/faturas", headers=admin_headers).json() == []


def test_banco_rejeita_fatura_de_usuario_inexistente(client, operadora_id):
    with SessionLocal() as db:
        assert db.execute(text("PRAGMA foreign_keys")).scalar() == 1
        db.add(Fatura(
            id=str(uuid.uuid4()),
            operadora_id=operadora_id,
            referencia="REF",
            valor=10,
            vencimento=date.today(),
            usuario_id=str(uuid.uuid4()),
        ))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()


def test_consultar_fatura_inexistente_e_404(client, admin_headers):
    response = client.get(f"/api/faturas/{uuid.uuid4()}", headers=admin_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Fatura não encontrada"}


# ============================================================================
# Listar / filtrar
# ============================================================================


def test_listar_ordena_por_vencimento(client, admin_headers, criar_fatura):
    criar_fatura(dias=20, referencia="C")
    criar_fatura(dias=-3, referencia="A")
    criar_fatura(dias=2, referencia="B")

    assert _refs(client.get("/api/faturas", headers=admin_headers)) == ["A", "B", "C"]


def test_filtro_respeita_os_limites_da_janela(client, admin_headers, criar_fatura):
    criar_fatura(dias=-1, referencia="ontem")
    criar_fatura(dias=0, referencia="hoje")
    criar_fatura(dias=7, referencia="mais7")
    criar_fatura(dias=8, referencia="mais8")
    enviada = criar_fatura(dias=-10, referencia="enviada")
    client.put(f"/api/faturas/{enviada['id']}/enviar", data={"enviado_para": "financeiro"}, headers=admin_headers)

    def filtrar(status):
        return _refs(client.get(f"/api/faturas?status={status}", headers=admin_headers))

    assert filtrar("vencido") == ["ontem"]
    assert filtrar("proximo") == ["hoje", "mais7"]
    assert filtrar("pendente") == ["mais8"]
    assert filtrar("enviado") == ["enviada"]


def test_filtro_sql_e_status_derivado_concordam(client, admin_headers, criar_fatura):
    for dias in range(-3, 12):
        criar_fatura(dias=dias, referencia=f"D{dias}")
    enviada = criar_fatura(dias=1, referencia="E")
    client.put(f"/api/faturas/{enviada['id']}/enviar", data={"enviado_para": "x"}, headers=admin_headers)

    todas = client.get("/api/faturas", headers=admin_headers).json()
    for status in ("enviado", "vencido", "proximo", "pendente"):
        esperadas = {f["id"] for f in todas if f["status_fatura"] == status}
        filtradas = client.get(f"/api/faturas?status={status}", headers=admin_headers).json()
        assert {f["id"] for f in filtradas} == esperadas
        assert all(f["status_fatura"] == status for f in filtradas)


def test_cenario_operadora_acme(client, admin_headers):
    acme_id = str(uuid.uuid4())
    with SessionLocal() as db:
        db.add(Operadora(id=acme_id, nome="ACME", contato="11 4000-0000", portal="https://acme.example"))
        db.commit()

    criada = client.post(
        "/api/faturas",
        json={"operadora_id": acme_id, "referencia": "REF1", "valor": 100.50, "vencimento": _vencimento(3)},
        headers=admin_headers,
    )
    assert criada.status_code == 201
    assert criada.json()["operadora_nome"] == "ACME"

    assert "REF1" in _refs(client.get("/api/faturas?status=proximo", headers=admin_headers))
    assert "REF1" not in _refs(client.get("/api/faturas?status=vencido", headers=admin_headers))


def test_filtro_desconhecido_e_400(client, admin_headers):
    response = client.get("/api/faturas?status=atrasada", headers=admin_headers)
    assert response.status_code == 400


# ============================================================================
# Editar
# ============================================================================


def test_editar_fatura(client, admin_headers, criar_fatura):
    fatura = criar_fatura(dias=20)

    response = client.put(
        f"/api/faturas/{fatura['id']}",
        json={"referencia": "REF-NOVA", "valor": 250.75, "vencimento": _vencimento(-2)},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["referencia"] == "REF-NOVA"
    assert body["valor"] == 250.75
    assert body["status_fatura"] == "vencido"
    assert body["operadora_id"] == fatura["operadora_id"]


def test_editar_troca_operadora(client, admin_headers, criar_fatura):
    fatura = criar_fatura()
    outra = client.get("/api/operadoras", headers=admin_headers).json()[-1]

    response = client.put(f"/api/faturas/{fatura['id']}", json={"operadora_id": outra["id"]}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["operadora_nome"] == outra["nome"]


@pytest.mark.parametrize(
    "campos",
    [
        {"status": "enviado"},
        {"data_envio": "2026-01-01T00:00:00"},
        {"comprovante_path": "/uploads/x.pdf"},
    ],
)
def test_editar_nao_altera_campos_do_envio(client, admin_headers, criar_fatura, campos):
    fatura = criar_fatura()

    response = client.put(f"/api/faturas/{fatura['id']}", json=campos, headers=admin_headers)

    assert response.status_code == 400
    assert client.get(f"/api/faturas/{fatura['id']}", headers=admin_headers).json()["status"] == "pendente"


@pytest.mark.parametrize(
    "campos",
    [
        {"referencia": ""},
        {"valor": None},
        {"vencimento": None},
        {"valor": 0},
        {"valor": "12.345"},
        {"valor": "10000000000"},
    ],
)
def test_editar_nao_deixa_campo_obrigatorio_vazio(client, admin_headers, criar_fatura, campos):
    fatura = criar_fatura()
    response = client.put(f"/api/faturas/{fatura['id']}", json=campos, headers=admin_headers)
    assert response.status_code == 400


def test_editar_inexistente_e_404(client, admin_headers):
    response = client.put(f"/api/faturas/{uuid.uuid4()}", json={"referencia": "X"}, headers=admin_headers)
    assert response.status_code == 404


def test_editar_com_operadora_inexistente_e_404(client, admin_headers, criar_fatura):
    fatura = criar_fatura()
    response = client.put(
        f"/api/faturas/{fatura['id']}", json={"operadora_id": str(uuid.uuid4())}, headers=admin_headers
    )
    assert response.status_code == 404


# ============================================================================
# Excluir
# ============================================================================


def test_excluir_fatura_como_admin(client, admin_headers, criar_fatura):
    fatura = criar_fatura()

    response = client.delete(f"/api/faturas/{fatura['id']}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert client.get(f"/api/faturas/{fatura['id']}", headers=admin_headers).status_code == 404


def test_usuario_comum_nao_exclui_fatura(client, user_headers, admin_headers, criar_fatura):
    fatura = criar_fatura()

    response = client.delete(f"/api/faturas/{fatura['id']}", headers=user_headers)

    assert response.status_code == 403
    assert client.get(f"/api/faturas/{fatura['id']}", headers=admin_headers).status_code == 200


def test_excluir_inexistente_e_404(client, admin_headers):
    assert client.delete(f"/api/faturas/{uuid.uuid4()}", headers=admin_headers).status_code == 404


def test_operadoras_ordenadas_por_nome(client, user_headers):
    response = client.get("/api/operadoras", headers=user_headers)

    assert response.status_code == 200
    nomes = [o["nome"] for o in response.json()]
    assert nomes == sorted(nomes)
    assert {"UNI TELECOM", "VOCE TELECOM", "OLLA TELECOM"} <= set(nomes)
