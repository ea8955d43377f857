from __future__ import annotations

import enum
from datetime import datetime, date, timezone
from decimal import Decimal
from typing import Optional, List

from sqlalchemy import (
    String, Integer, DateTime, Date, Numeric, ForeignKey, Text,
    Enum as SAEnum, UniqueConstraint, Index, CheckConstraint, func
)

from sqlalchemy.orm import (
    DeclarativeBase, Mapped, mapped_column, relationship
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# base
class Base(DeclarativeBase):
    pass

# enums = status
class ObligationStatus(str, enum.Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


OPEN_STATUSES = (ObligationStatus.PENDING, ObligationStatus.PARTIAL, ObligationStatus.OVERDUE)

# venda a prazo: o método original da parcela não é sobrescrito pela baixa
CREDIT_METHOD = "prazo"


# models
class ObligationORM(Base):
    """
    Uma parcela / conta a receber. Cada linha tem o próprio saldo (value_due)
    e é baixada de forma independente das irmãs da mesma venda.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("value_due >= 0", name="ck_transactions_value_due_positive"),
        CheckConstraint("value_due <= value", name="ck_transactions_value_due_le_value"),
        Index("ix_transactions_due", "due_date", "status"),
        Index("ix_transactions_person", "person"),
        Index("ix_transactions_sale_ref", "sale_ref"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    category: Mapped[str] = mapped_column(String(60), nullable=False, default="Vendas")
    description: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    person: Mapped[Optional[str]] = mapped_column(String(140), nullable=True)

    value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    value_due: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    status: Mapped[ObligationStatus] = mapped_column(
        SAEnum(ObligationStatus, name="obligation_status"),
        nullable=False,
        default=ObligationStatus.PENDING,
    )

    due_date: Mapped[date] = mapped_column(Date, nullable=False)

    # "Parcela 2/4 | sale:X" - só exibição/agrupamento
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sale_ref: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    installment_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    installment_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    payment_method: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    payment_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # saldo restante gerado a partir de outra parcela
    parent_id: Mapped[Optional[int]] = mapped_column(ForeignKey("transactions.id"), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    receipts: Mapped[List["ReceiptORM"]] = relationship(
        back_populates="obligation", order_by="ReceiptORM.id"
    )

    __mapper_args__ = {"version_id_col": version}


class ReceiptORM(Base):
    __tablename__ = "receipts"
    __table_args__ = (
        UniqueConstraint("public_id", name="uq_receipts_public_id"),
        CheckConstraint("amount > 0", name="ck_receipts_amount_positive"),
        Index("ix_receipts_transaction", "transaction_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    public_id: Mapped[str] = mapped_column(String(32), nullable=False)

    transaction_id: Mapped[int] = mapped_column(ForeignKey("transactions.id"), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    method: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    obligation: Mapped["ObligationORM"] = relationship(back_populates="receipts")

    # dados da transação mostrados junto do recibo
    @property
    def tx_description(self) -> Optional[str]:
        return self.obligation.description

    @property
    def tx_person(self) -> Optional[str]:
        return self.obligation.person

    @property
    def tx_due_date(self) -> date:
        return self.obligation.due_date
