# Status derivado das faturas: enviado, vencido, proximo, pendente
#
# O status exibido nunca é gravado no banco: é calculado a cada leitura a
# partir de `vencimento` e do status gravado ("pendente" ou "enviado").
# A mesma regra vale para o filtro SQL (`filtro_status`), para a derivação
# linha a linha (`derivar_status`) e para o frontend (frontend/status.js).
# "Hoje" é lido uma vez por requisição e passado adiante.
from datetime import date, timedelta

from sqlalchemy import and_

from gestor_faturas.config import JANELA_PROXIMO_DIAS
from gestor_faturas.errors import ValidationError
from gestor_faturas.models import Fatura

PENDENTE = "pendente"
ENVIADO = "enviado"
VENCIDO = "vencido"
PROXIMO = "proximo"

STATUS_DERIVADOS = (ENVIADO, VENCIDO, PROXIMO, PENDENTE)


def hoje() -> date:
    return date.today()


def derivar_status(vencimento: date, status: str, referencia: date) -> str:
    """Classifica uma fatura em relação à data `referencia` (o "hoje" da requisição)."""
    if status == ENVIADO:
        return ENVIADO
    dias = (vencimento - referencia).days
    if dias < 0:
        return VENCIDO
    if dias <= JANELA_PROXIMO_DIAS:
        return PROXIMO
    return PENDENTE


def dias_restantes(vencimento: date, referencia: date) -> int:
    return (vencimento - referencia).days


def filtro_status(status_filtro: str, referencia: date):
    """Predicado SQL equivalente a `derivar_status(...) == status_filtro`."""
    limite = referencia + timedelta(days=JANELA_PROXIMO_DIAS)
    nao_enviada = Fatura.status != ENVIADO
    if status_filtro == ENVIADO:
        return Fatura.status == ENVIADO
    if status_filtro == VENCIDO:
        return and_(nao_enviada, Fatura.vencimento < referencia)
    if status_filtro == PROXIMO:
        return and_(nao_enviada, Fatura.vencimento >= referencia, Fatura.vencimento <= limite)
    if status_filtro == PENDENTE:
        return and_(nao_enviada, Fatura.vencimento > limite)
    raise ValidationError(
        f"Status inválido: {status_filtro}. Use um de: {', '.join(STATUS_DERIVADOS)}"
    )
