# Funções para validar, salvar, localizar e remover comprovantes de pagamento
import logging
import uuid
from pathlib import Path

from gestor_faturas.config import MAX_UPLOAD_BYTES, UPLOADS_DIR
from gestor_faturas.errors import InternalError, InvalidFile

logger = logging.getLogger("uvicorn.error")

ALLOWED_EXTENSIONS = {".pdf", ".jpg", ".jpeg", ".png"}
ALLOWED_MIME_TYPES = {"application/pdf", "image/jpeg", "image/png"}

# Prefixo público dos comprovantes (servidos em GET /uploads/<arquivo>)
URL_PREFIX = "/uploads/"


def allowed_file(filename: str, content_type: str | None) -> bool:
    """Aceita o arquivo só se a extensão E o MIME declarado forem PDF, JPEG ou PNG."""
    extensao_ok = Path(filename).suffix.lower() in ALLOWED_EXTENSIONS
    mime_ok = (content_type or "").split(";")[0].strip().lower() in ALLOWED_MIME_TYPES
    return extensao_ok and mime_ok


def validar_comprovante(filename: str, content_type: str | None, tamanho: int) -> None:
    """Levanta InvalidFile se o comprovante não passar na política de tipo/tamanho."""
    if not allowed_file(filename, content_type):
        raise InvalidFile("Apenas arquivos PDF, JPG, JPEG ou PNG são permitidos")
    if tamanho > MAX_UPLOAD_BYTES:
        limite_mb = MAX_UPLOAD_BYTES / (1024 * 1024)
        raise InvalidFile(f"Arquivo excede o tamanho máximo permitido de {limite_mb:g} MB")


def save_upload(filename_original: str, content: bytes) -> str:
    """
    Salva o comprovante na pasta de uploads.
    Nome no disco: UUID + extensão do arquivo original (nunca o nome enviado).
    Retorna o caminho público (/uploads/<nome>) para guardar no banco.
    """
    UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
    ext = Path(filename_original).suffix.lower()
    nome = f"{uuid.uuid4()}{ext}"
    path = UPLOADS_DIR / nome
    try:
        path.write_bytes(content)
    except OSError as e:
        path.unlink(missing_ok=True)
        logger.error(f"[UPLOAD] Falha ao gravar {path}: {e}")
        raise InternalError("Erro ao salvar comprovante")
    logger.info(f"[UPLOAD] Comprovante salvo: {nome} ({len(content)} bytes)")
    return f"{URL_PREFIX}{nome}"


def resolve_upload(nome_ou_path: str) -> Path | None:
    """
    Traduz /uploads/<nome> (ou só <nome>) para o arquivo dentro de UPLOADS_DIR.
    Retorna None para nomes que sairiam da pasta de uploads.
    """
    nome = Path(nome_ou_path).name
    if not nome or nome in (".", ".."):
        return None
    root = UPLOADS_DIR.resolve()
    path = (root / nome).resolve()
    if path.parent != root:
        return None
    return path


def remove_upload(comprovante_path: str) -> None:
    """Remove o arquivo do comprovante, se existir. Propaga OSError para quem chamou decidir."""
    path = resolve_upload(comprovante_path)
    if path is None:
        return
    path.unlink(missing_ok=True)
