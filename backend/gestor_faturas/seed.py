# Dados iniciais: operadoras padrão e usuário admin
# Roda no startup da API; também pode ser chamado direto: python -m gestor_faturas.seed
import logging
import uuid

from sqlalchemy.orm import Session

from gestor_faturas.auth import hash_password
from gestor_faturas.config import ADMIN_PASSWORD, ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD
from gestor_faturas.models import Operadora, User

logger = logging.getLogger("uvicorn.error")

OPERADORAS_PADRAO = [
    {
        "nome": "UNI TELECOM",
        "contato": "69 3422-3511",
        "portal": "https://sistema.souuni.com/central_assinante_web/login",
    },
    {
        "nome": "VOCE TELECOM",
        "contato": "96 9175-4483",
        "portal": "https://sac.vocetelecom.com.br/",
    },
    {
        "nome": "OLLA TELECOM",
        "contato": "69 3219-4300",
        "portal": "https://ixc.ollatelecom.com.br/central_assinante_web/login",
    },
]


def seed_operadoras(db: Session) -> int:
    """Insere as operadoras padrão que ainda não existem (por nome). Retorna quantas inseriu."""
    existentes = {nome for (nome,) in db.query(Operadora.nome).all()}
    novas = [dados for dados in OPERADORAS_PADRAO if dados["nome"] not in existentes]
    for dados in novas:
        db.add(Operadora(id=str(uuid.uuid4()), **dados))
    if novas:
        db.commit()
        logger.info(f"[STARTUP] {len(novas)} operadora(s) cadastrada(s)")
    return len(novas)


def seed_admin(db: Session) -> User | None:
    """Cria o usuário admin se ele ainda não existir."""
    if db.query(User).filter(User.username == ADMIN_USERNAME).first():
        return None
    user = User(
        id=str(uuid.uuid4()),
        username=ADMIN_USERNAME,
        nome="Administrador",
        password_hash=hash_password(ADMIN_PASSWORD),
        is_admin=True,
    )
    db.add(user)
    db.commit()
    logger.info(f"[STARTUP] Usuário admin '{ADMIN_USERNAME}' criado")
    if ADMIN_PASSWORD == DEFAULT_ADMIN_PASSWORD:
        logger.warning("[STARTUP] Admin criado com a senha padrão; defina ADMIN_PASSWORD e troque-a")
    return user


def run_seed(db: Session) -> None:
    seed_operadoras(db)
    seed_admin(db)


if __name__ == "__main__":
    from gestor_faturas.db import Base, SessionLocal, engine
    from gestor_faturas import models  # noqa: F401  registra as tabelas no Base

    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        run_seed(session)
