# Notificações: faturas não enviadas que vencem nos próximos 7 dias
from datetime import date, timedelta

from sqlalchemy.orm import Session

from gestor_faturas import status as st
from gestor_faturas.config import JANELA_PROXIMO_DIAS
from gestor_faturas.models import Fatura


def faturas_a_vencer(db: Session, hoje: date) -> list[Fatura]:
    """
    Faturas com vencimento entre hoje e hoje+7 (inclusive) ainda não enviadas.
    Faturas já vencidas ficam de fora.
    """
    limite = hoje + timedelta(days=JANELA_PROXIMO_DIAS)
    return (
        db.query(Fatura)
        .filter(
            Fatura.status != st.ENVIADO,
            Fatura.vencimento >= hoje,
            Fatura.vencimento <= limite,
        )
        .order_by(Fatura.vencimento.asc())
        .all()
    )


def notificacao_para_dict(fatura: Fatura, hoje: date) -> dict:
    return {
        "id": fatura.id,
        "referencia": fatura.referencia,
        "valor": float(fatura.valor),
        "vencimento": fatura.vencimento.isoformat(),
        "operadora_nome": fatura.operadora.nome if fatura.operadora else None,
        "dias_restantes": st.dias_restantes(fatura.vencimento, hoje),
    }
