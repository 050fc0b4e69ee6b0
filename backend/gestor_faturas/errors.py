# Erros da aplicação e handlers que os convertem em JSON {"error": mensagem}
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("uvicorn.error")


class AppError(Exception):
    """Base dos erros de negócio: cada subclasse sabe seu status HTTP."""

    status_code = 500
    default_message = "Erro interno do servidor"
    headers: dict[str, str] | None = None

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Dados inválidos"


class InvalidFile(AppError):
    status_code = 400
    default_message = "Apenas arquivos PDF, JPG, JPEG ou PNG são permitidos"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Token de autenticação obrigatório"
    headers = {"WWW-Authenticate": "Bearer"}


class Forbidden(AppError):
    status_code = 403
    default_message = "Acesso restrito a administradores"


class NotFound(AppError):
    status_code = 404
    default_message = "Registro não encontrado"


class Conflict(AppError):
    status_code = 409
    default_message = "Registro já existe"


class InternalError(AppError):
    status_code = 500


def _error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"[HTTP] {request.method} {request.url.path}: {exc.message}")
    return _error_response(exc.status_code, exc.message, exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Erros do pydantic viram 400 com o primeiro campo problemático na mensagem."""
    errors = exc.errors()
    if not errors:
        return _error_response(400, ValidationError.default_message)
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form")]
    campo = ".".join(loc)
    if first.get("type") == "missing":
        message = f"Campo obrigatório: {campo}" if campo else "Corpo da requisição obrigatório"
    else:
        msg = str(first.get("msg", "valor inválido")).removeprefix("Value error, ")
        message = f"Campo inválido ({campo}): {msg}" if campo else msg
    return _error_response(400, message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"[HTTP] Erro não tratado em {request.method} {request.url.path}")
    return _error_response(500, InternalError.default_message)


def register_exception_handlers(app: FastAPI) -> None:
    """Registra os handlers na app FastAPI (o genérico por último)."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
