# Endpoints de faturas: CRUD, envio com comprovante e exclusão
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from gestor_faturas import faturas as svc
from gestor_faturas.auth import Identidade, get_current_identity, require_admin
from gestor_faturas.config import MAX_UPLOAD_BYTES
from gestor_faturas.db import get_db
from gestor_faturas.errors import ValidationError
from gestor_faturas.status import hoje

router = APIRouter(prefix="/api/faturas", tags=["faturas"])


class FaturaCreate(BaseModel):
    operadora_id: str
    referencia: str
    valor: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    vencimento: date


class FaturaUpdate(BaseModel):
    # Campos extras passam adiante para o serviço recusar com mensagem clara
    model_config = ConfigDict(extra="allow")

    operadora_id: str | None = None
    referencia: str | None = None
    valor: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    vencimento: date | None = None


def _ler_arquivo(comprovante: UploadFile | None) -> tuple[str, str | None, bytes] | None:
    """Lê o upload (no máximo o limite + 1 byte, suficiente para detectar excesso)."""
    if comprovante is None or not comprovante.filename:
        return None
    content = comprovante.file.read(MAX_UPLOAD_BYTES + 1)
    return comprovante.filename, comprovante.content_type, content


@router.get("")
def list_faturas(
    status: str | None = None,
    db: Session = Depends(get_db),
    identidade: Identidade = Depends(get_current_identity),
):
    """Lista faturas por vencimento. `status` filtra por enviado, vencido, proximo ou pendente."""
    referencia = hoje()
    faturas = svc.listar_faturas(db, status, referencia)
    return [svc.fatura_para_dict(f, referencia) for f in faturas]


@router.post("", status_code=201)
def create_fatura(
    body: FaturaCreate,
    db: Session = Depends(get_db),
    identidade: Identidade = Depends(get_current_identity),
):
    fatura = svc.criar_fatura(
        db,
        operadora_id=body.operadora_id,
        referencia=body.referencia,
        valor=body.valor,
        vencimento=body.vencimento,
        usuario_id=identidade.id,
    )
    return svc.fatura_para_dict(fatura, hoje())


@router.get("/{fatura_id}")
def get_fatura(
    fatura_id: str,
    db: Session = Depends(get_db),
    identidade: Identidade = Depends(get_current_identity),
):
    return svc.fatura_para_dict(svc.obter_fatura(db, fatura_id), hoje())


@router.put("/{fatura_id}")
def update_fatura(
    fatura_id: str,
    body: FaturaUpdate,
    db: Session = Depends(get_db),
    identidade: Identidade = Depends(get_current_identity),
):
    """Edita os dados da fatura. Status e comprovante só mudam pelo envio."""
    campos = body.model_dump(exclude_unset=True)
    campos.update(body.model_extra or {})
    fatura = svc.atualizar_fatura(db, fatura_id, campos)
    return svc.fatura_para_dict(fatura, hoje())


@router.put("/{fatura_id}/enviar")
def enviar_fatura(
    fatura_id: str,
    enviado_para: str = Form(""),
    comprovante: UploadFile | None = File(None, description="PDF, JPG ou PNG até 5 MB"),
    db: Session = Depends(get_db),
    identidade: Identidade = Depends(get_current_identity),
):
    """Marca a fatura como enviada. O comprovante é opcional."""
    fatura = svc.enviar_fatura(db, fatura_id, enviado_para, _ler_arquivo(comprovante))
    return svc.fatura_para_dict(fatura, hoje())


@router.post("/{fatura_id}/comprovante")
def enviar_comprovante(
    fatura_id: str,
    enviado_para: str = Form(""),
    comprovante: UploadFile | None = File(None, description="PDF, JPG ou PNG até 5 MB"),
    db: Session = Depends(get_db),
    identidade: Identidade = Depends(get_current_identity),
):
    """Igual ao envio, mas exige o comprovante."""
    arquivo = _ler_arquivo(comprovante)
    if arquivo is None:
        raise ValidationError("Nenhum comprovante enviado")
    fatura = svc.enviar_fatura(db, fatura_id, enviado_para, arquivo)
    return svc.fatura_para_dict(fatura, hoje())


@router.delete("/{fatura_id}")
def delete_fatura(
    fatura_id: str,
    db: Session = Depends(get_db),
    admin: Identidade = Depends(require_admin),
):
    """Exclui a fatura e o comprovante. Falha ao apagar o arquivo vem como `aviso`."""
    aviso = svc.excluir_fatura(db, fatura_id)
    resposta = {"success": True}
    if aviso:
        resposta["aviso"] = aviso
    return resposta
