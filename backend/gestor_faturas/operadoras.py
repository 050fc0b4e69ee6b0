# Operadoras: dados de referência (nome, contato, portal)
from sqlalchemy.orm import Session

from gestor_faturas.errors import NotFound
from gestor_faturas.models import Operadora


def operadora_para_dict(operadora: Operadora) -> dict:
    return {
        "id": operadora.id,
        "nome": operadora.nome,
        "contato": operadora.contato,
        "portal": operadora.portal,
        "dia_vencimento": operadora.dia_vencimento,
    }


def listar_operadoras(db: Session) -> list[Operadora]:
    return db.query(Operadora).order_by(Operadora.nome).all()


def obter_operadora(db: Session, operadora_id: str) -> Operadora:
    operadora = db.query(Operadora).filter(Operadora.id == operadora_id).first()
    if not operadora:
        raise NotFound("Operadora não encontrada")
    return operadora
