# Faturas: criar, consultar, listar com filtro de status, editar, enviar e excluir
import logging
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gestor_faturas import status as st
from gestor_faturas.errors import InternalError, NotFound, Unauthenticated, ValidationError
from gestor_faturas.models import Fatura, User
from gestor_faturas.operadoras import obter_operadora
from gestor_faturas.storage import remove_upload, save_upload, validar_comprovante

logger = logging.getLogger("uvicorn.error")

CAMPOS_EDITAVEIS = ("operadora_id", "referencia", "valor", "vencimento")


def fatura_para_dict(fatura: Fatura, hoje: date) -> dict:
    """Serializa a fatura com o nome da operadora e o status derivado em relação a `hoje`."""
    operadora = fatura.operadora
    return {
        "id": fatura.id,
        "operadora_id": fatura.operadora_id,
        "operadora_nome": operadora.nome if operadora else None,
        "operadora_contato": operadora.contato if operadora else None,
        "operadora_portal": operadora.portal if operadora else None,
        "referencia": fatura.referencia,
        "valor": float(fatura.valor),
        "vencimento": fatura.vencimento.isoformat(),
        "status": fatura.status,
        "status_fatura": st.derivar_status(fatura.vencimento, fatura.status, hoje),
        "data_envio": fatura.data_envio.isoformat() if fatura.data_envio else None,
        "enviado_para": fatura.enviado_para,
        "comprovante_path": fatura.comprovante_path,
        "usuario_id": fatura.usuario_id,
        "criado_em": fatura.criado_em.isoformat(),
    }


def _validar_campos(campos: dict) -> None:
    """Campos obrigatórios não podem ficar vazios; valor precisa ser positivo."""
    vazios = [
        nome for nome, valor in campos.items()
        if valor is None or (isinstance(valor, str) and not valor.strip())
    ]
    if vazios:
        raise ValidationError(f"Campos obrigatórios vazios: {', '.join(vazios)}")
    if "valor" in campos and Decimal(str(campos["valor"])) <= 0:
        raise ValidationError("Valor deve ser maior que zero")


def _commit(db: Session, acao: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[FATURAS] Erro ao {acao}: {e}")
        raise InternalError(f"Erro ao {acao}")


def criar_fatura(
    db: Session,
    operadora_id: str,
    referencia: str,
    valor: Decimal,
    vencimento: date,
    usuario_id: str | None = None,
) -> Fatura:
    """
    Cria a fatura com status "pendente". Levanta NotFound se a operadora não existir.
    O token não passa pelo banco: um usuário excluído ainda pode chegar aqui e
    recebe 401 em vez de violar a FK de `usuario_id`.
    """
    _validar_campos({
        "operadora_id": operadora_id,
        "referencia": referencia,
        "valor": valor,
        "vencimento": vencimento,
    })
    obter_operadora(db, operadora_id)
    if usuario_id is not None and not db.query(User).filter(User.id == usuario_id).first():
        raise Unauthenticated("Usuário não encontrado")

    fatura = Fatura(
        id=str(uuid.uuid4()),
        operadora_id=operadora_id,
        referencia=referencia.strip(),
        valor=Decimal(str(valor)),
        vencimento=vencimento,
        status=st.PENDENTE,
        usuario_id=usuario_id,
    )
    db.add(fatura)
    _commit(db, "criar fatura")
    db.refresh(fatura)
    logger.info(f"[FATURAS] Fatura {fatura.id} criada ({fatura.referencia}, vence {fatura.vencimento})")
    return fatura


def obter_fatura(db: Session, fatura_id: str) -> Fatura:
    fatura = db.query(Fatura).filter(Fatura.id == fatura_id).first()
    if not fatura:
        raise NotFound("Fatura não encontrada")
    return fatura


def listar_faturas(db: Session, status_filtro: str | None, hoje: date) -> list[Fatura]:
    """
    Lista faturas por vencimento crescente.
    `status_filtro` é um dos status derivados; o predicado é recalculado a
    partir de vencimento/status com o mesmo `hoje` usado na serialização.
    """
    query = db.query(Fatura)
    if status_filtro:
        query = query.filter(st.filtro_status(status_filtro, hoje))
    return query.order_by(Fatura.vencimento.asc(), Fatura.criado_em.asc()).all()


def atualizar_fatura(db: Session, fatura_id: str, campos: dict) -> Fatura:
    """
    Edita operadora, referência, valor e vencimento.
    Status, data de envio e comprovante só mudam pelo envio.
    """
    proibidos = sorted(set(campos) - set(CAMPOS_EDITAVEIS))
    if proibidos:
        raise ValidationError(f"Campos não editáveis: {', '.join(proibidos)}")
    fatura = obter_fatura(db, fatura_id)
    _validar_campos(campos)

    if "operadora_id" in campos:
        obter_operadora(db, campos["operadora_id"])
        fatura.operadora_id = campos["operadora_id"]
    if "referencia" in campos:
        fatura.referencia = campos["referencia"].strip()
    if "valor" in campos:
        fatura.valor = Decimal(str(campos["valor"]))
    if "vencimento" in campos:
        fatura.vencimento = campos["vencimento"]

    _commit(db, "atualizar fatura")
    db.refresh(fatura)
    return fatura


def enviar_fatura(
    db: Session,
    fatura_id: str,
    enviado_para: str,
    arquivo: tuple[str, str | None, bytes] | None = None,
) -> Fatura:
    """
    Marca a fatura como enviada, opcionalmente com comprovante.

    `arquivo` é (nome original, content type, conteúdo). O arquivo é gravado
    antes de tocar no banco; se a fatura não existir ou o commit falhar, ele
    é apagado para não deixar órfãos na pasta de uploads.
    """
    enviado_para = (enviado_para or "").strip()
    if not enviado_para:
        raise ValidationError('Campo "enviado_para" é obrigatório')

    novo_comprovante = None
    if arquivo is not None:
        filename, content_type, content = arquivo
        validar_comprovante(filename, content_type, len(content))
        novo_comprovante = save_upload(filename, content)

    try:
        fatura = obter_fatura(db, fatura_id)
        anterior = fatura.comprovante_path
        fatura.status = st.ENVIADO
        fatura.data_envio = datetime.utcnow()
        fatura.enviado_para = enviado_para
        if novo_comprovante:
            fatura.comprovante_path = novo_comprovante
        _commit(db, "marcar fatura como enviada")
    except Exception:
        if novo_comprovante:
            _remover_arquivo(novo_comprovante)
        raise

    if novo_comprovante and anterior:
        _remover_arquivo(anterior)
    db.refresh(fatura)
    logger.info(f"[FATURAS] Fatura {fatura.id} enviada para '{enviado_para}'")
    return fatura


def _remover_arquivo(comprovante_path: str) -> str | None:
    """Remove o comprovante sem derrubar a operação; retorna a mensagem de erro, se houver."""
    try:
        remove_upload(comprovante_path)
    except OSError as e:
        logger.warning(f"[FATURAS] Não foi possível remover o comprovante {comprovante_path}: {e}")
        return f"O comprovante não pôde ser removido: {e}"
    return None


def excluir_fatura(db: Session, fatura_id: str) -> str | None:
    """
    Exclui a fatura e, depois, o comprovante no disco.
    Falha ao apagar o arquivo não desfaz a exclusão: vira um aviso no retorno.
    """
    fatura = obter_fatura(db, fatura_id)
    comprovante = fatura.comprovante_path
    db.delete(fatura)
    _commit(db, "excluir fatura")
    logger.info(f"[FATURAS] Fatura {fatura_id} excluída")
    if comprovante:
        return _remover_arquivo(comprovante)
    return None
