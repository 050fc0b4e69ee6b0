# Conexão com o banco de dados
# Usa SQLAlchemy; em produção Postgres com psycopg3, nos testes SQLite em memória
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from gestor_faturas.config import DATABASE_URL, mask_url


# SQLAlchemy com psycopg3 precisa da URL no formato postgresql+psycopg://
# Se o .env tiver postgresql://, trocamos para o driver correto
_db_url = DATABASE_URL
if _db_url.startswith("postgresql://") and "+" not in _db_url.split("?")[0]:
    _db_url = _db_url.replace("postgresql://", "postgresql+psycopg://", 1)

if _db_url.startswith("sqlite"):
    # Uma única conexão compartilhada: o banco em memória vive enquanto ela existir
    engine = create_engine(
        _db_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _ligar_foreign_keys(dbapi_conn, connection_record):
        # SQLite só aplica FKs (e ON DELETE SET NULL) com o pragma ligado
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
else:
    engine = create_engine(_db_url, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Retorna uma sessão do banco. Usado nos endpoints que precisam ler/escrever."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def test_connection():
    """
    Testa a conexão com o banco e retorna current_database, current_user.
    Usado no startup.
    """
    with engine.connect() as conn:
        if engine.dialect.name != "postgresql":
            conn.execute(text("SELECT 1"))
            return {"current_database": engine.url.database or ":memory:", "current_user": None}
        r = conn.execute(text("SELECT current_database(), current_user"))
        row = r.fetchone()
        return {"current_database": row[0], "current_user": row[1]}


def get_effective_url_masked() -> str:
    """Retorna a URL efetiva (com driver) mascarada."""
    return mask_url(_db_url)


def get_driver_info() -> str:
    """Retorna o driver usado (postgresql+psycopg, postgresql ou sqlite)."""
    return engine.url.drivername
