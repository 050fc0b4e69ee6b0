# Servidor principal: FastAPI (expõe os endpoints HTTP)
import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session

from gestor_faturas.auth import Identidade, get_current_identity
from gestor_faturas.config import (
    DEFAULT_JWT_SECRET,
    FRONTEND_DIR,
    JWT_SECRET,
    PORT,
    get_allowed_origins,
    get_env_loaded_path,
    get_masked_database_url,
)
from gestor_faturas.db import Base, SessionLocal, engine, get_db, get_driver_info, get_effective_url_masked, test_connection
from gestor_faturas import models  # noqa: F401  registra as tabelas no Base antes de create_all
from gestor_faturas.errors import NotFound, register_exception_handlers
from gestor_faturas.notificacoes import faturas_a_vencer, notificacao_para_dict
from gestor_faturas.operadoras import listar_operadoras, operadora_para_dict
from gestor_faturas.routes_auth import router as auth_router
from gestor_faturas.routes_faturas import router as faturas_router
from gestor_faturas.routes_usuarios import router as usuarios_router
from gestor_faturas.seed import run_seed
from gestor_faturas.status import hoje
from gestor_faturas.storage import resolve_upload

logger = logging.getLogger("uvicorn.error")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ao subir o servidor: valida a conexão, cria as tabelas e os dados iniciais."""
    env_path = get_env_loaded_path()
    logger.info(f"[STARTUP] .env carregado de: {env_path or '(nenhum .env encontrado)'}")
    logger.info(f"[STARTUP] DATABASE_URL (mascarada): {get_masked_database_url()}")
    logger.info(f"[STARTUP] URL efetiva: {get_effective_url_masked()}")
    logger.info(f"[STARTUP] Driver: {get_driver_info()}")
    if JWT_SECRET == DEFAULT_JWT_SECRET:
        logger.warning("[STARTUP] JWT_SECRET não definido; usando o valor padrão (inseguro em produção)")

    try:
        conn_info = test_connection()
        logger.info(f"[STARTUP] Banco conectado: db={conn_info['current_database']} user={conn_info['current_user']}")
    except Exception as e:
        logger.error(f"[STARTUP] ERRO ao conectar no banco: {e}")
        raise

    Base.metadata.create_all(bind=engine)
    logger.info("[STARTUP] Tabelas criadas/verificadas (create_all)")

    with SessionLocal() as db:
        run_seed(db)

    yield


app = FastAPI(
    title="Gestor de Faturas",
    description="Controle de faturas das operadoras de telecom: vencimentos, envio e comprovantes",
    lifespan=lifespan,
)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Loga método, caminho, status e latência; adiciona headers de segurança."""
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    logger.info(f"[HTTP] {request.method} {request.url.path} -> {response.status_code} ({latency_ms:.1f} ms)")
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


app.include_router(auth_router)
app.include_router(usuarios_router)
app.include_router(faturas_router)


@app.get("/api/operadoras", summary="Listar operadoras")
def list_operadoras(
    db: Session = Depends(get_db),
    identidade: Identidade = Depends(get_current_identity),
):
    return [operadora_para_dict(o) for o in listar_operadoras(db)]


@app.get("/api/notificacoes", summary="Faturas a vencer nos próximos 7 dias")
def list_notificacoes(
    db: Session = Depends(get_db),
    identidade: Identidade = Depends(get_current_identity),
):
    """Faturas não enviadas com vencimento de hoje até hoje+7. Vencidas não entram."""
    referencia = hoje()
    return [notificacao_para_dict(f, referencia) for f in faturas_a_vencer(db, referencia)]


@app.get("/uploads/{arquivo}", summary="Baixar comprovante")
def download_comprovante(arquivo: str):
    """Serve um comprovante salvo. Público: o nome é um UUID impossível de adivinhar."""
    path = resolve_upload(arquivo)
    if path is None or not path.is_file():
        raise NotFound("Comprovante não encontrado")
    return FileResponse(path)


@app.get("/health")
def health():
    """Verifica se o servidor está no ar."""
    return {"status": "ok"}


@app.get("/")
def index():
    """Serve a página principal do frontend."""
    index_path = FRONTEND_DIR / "index.html"
    if not index_path.exists():
        return {"message": "Frontend não encontrado. Adicione index.html em frontend/"}
    return FileResponse(index_path, media_type="text/html")


# Demais arquivos do frontend (login.html, scripts, css)
if FRONTEND_DIR.is_dir():
    app.mount("/", StaticFiles(directory=FRONTEND_DIR, html=True), name="frontend")


def run():
    """Sobe o servidor com uvicorn na porta configurada (PORT)."""
    import uvicorn

    uvicorn.run("gestor_faturas.main:app", host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    run()
