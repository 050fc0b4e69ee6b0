# Modelos das tabelas do banco (cada classe = uma tabela)
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gestor_faturas.db import Base


class User(Base):
    """Tabela usuarios: usuários do sistema (autenticação)."""
    __tablename__ = "usuarios"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    nome: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    criado_em: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class Operadora(Base):
    """Tabela operadoras: cadastro fixo das operadoras de telecom."""
    __tablename__ = "operadoras"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    nome: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    contato: Mapped[str | None] = mapped_column(String(120), nullable=True)
    portal: Mapped[str | None] = mapped_column(String(512), nullable=True)
    dia_vencimento: Mapped[int | None] = mapped_column(Integer, nullable=True)


class Fatura(Base):
    """Tabela faturas: uma fatura de operadora com vencimento e comprovante."""
    __tablename__ = "faturas"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    operadora_id: Mapped[str] = mapped_column(String(36), ForeignKey("operadoras.id"), nullable=False, index=True)
    referencia: Mapped[str] = mapped_column(String(255), nullable=False)
    valor: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    vencimento: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pendente")
    data_envio: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    enviado_para: Mapped[str | None] = mapped_column(String(255), nullable=True)
    comprovante_path: Mapped[str | None] = mapped_column(String(512), nullable=True)
    usuario_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True, index=True
    )
    criado_em: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    operadora: Mapped[Operadora] = relationship(lazy="joined")
