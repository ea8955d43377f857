"""Payment Ledger - recibos (append-only) das baixas feitas nas parcelas."""
from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from haver.infra.models import ObligationORM, ReceiptORM
from haver.services.errors import NotFoundError, StorageError
from haver.services.money import positive_money, quantize_money

ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"
RECEIPT_PREFIX = "REC"


def generate_receipt_code(length: int = 8) -> str:
    token = "".join(secrets.choice(ALPHABET) for _ in range(length))
    return f"{RECEIPT_PREFIX}-{token}"


class PaymentLedger:
    def __init__(self, db: Session):
        self.db = db

    def _unique_code(self) -> str:
        for _ in range(30):
            code = generate_receipt_code()
            exists = self.db.scalar(select(ReceiptORM.id).where(ReceiptORM.public_id == code))
            if not exists:
                return code
        raise StorageError("Falha ao gerar código único de recibo.")

    def record(
        self,
        obligation_id: int,
        amount,
        method: Optional[str] = None,
        note: Optional[str] = None,
        *,
        created_by: Optional[str] = None,
    ) -> ReceiptORM:
        """Não valida saldo: isso é responsabilidade do motor de baixa."""
        if not self.db.get(ObligationORM, obligation_id):
            raise NotFoundError("Transação não encontrada.", obligation_id=obligation_id)

        receipt = ReceiptORM(
            public_id=self._unique_code(),
            transaction_id=obligation_id,
            amount=positive_money(amount),
            method=(method or None),
            note=(note or None),
            created_by=(created_by or None),
        )
        self.db.add(receipt)
        self.db.flush()
        return receipt

    def get(self, receipt_id: int) -> ReceiptORM:
        receipt = self.db.get(ReceiptORM, receipt_id)
        if not receipt:
            raise NotFoundError("Recibo não encontrado.")
        return receipt

    def list(
        self,
        *,
        transaction_id: Optional[int] = None,
        person: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Tuple[list[ReceiptORM], int]:
        if page < 1:
            raise ValueError("page deve ser >= 1")
        if page_size < 1 or page_size > 500:
            raise ValueError("page_size deve estar entre 1 e 500")

        stmt = select(ReceiptORM).options(selectinload(ReceiptORM.obligation))
        if transaction_id is not None:
            stmt = stmt.where(ReceiptORM.transaction_id == transaction_id)
        if person:
            stmt = stmt.join(ObligationORM, ObligationORM.id == ReceiptORM.transaction_id).where(
                ObligationORM.person == person
            )

        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        items = self.db.execute(
            stmt.order_by(ReceiptORM.created_at.desc(), ReceiptORM.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).scalars().all()
        return list(items), total

    def total_for(self, transaction_id: int) -> Decimal:
        total = self.db.scalar(
            select(func.coalesce(func.sum(ReceiptORM.amount), 0)).where(
                ReceiptORM.transaction_id == transaction_id
            )
        )
        return quantize_money(Decimal(str(total or 0)))
