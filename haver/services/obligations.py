"""
Obligation Store - acesso às parcelas/contas a receber (tabela `transactions`).

Só o motor de baixa (`haver.services.settlement`) altera saldo e status de
uma parcela existente; aqui ficam leitura, busca, criação e o `apply_delta`
condicional usado por ele.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from haver.infra.models import ObligationORM, ObligationStatus, OPEN_STATUSES
from haver.services.errors import AlreadySettledError, InvalidAmountError, NotFoundError
from haver.services.money import ZERO, positive_money, quantize_money

logger = logging.getLogger(__name__)


def _today() -> date:
    return datetime.now(timezone.utc).date()


def derive_status(
    balance: Decimal,
    original: Decimal,
    due_date: Optional[date],
    today: Optional[date] = None,
) -> ObligationStatus:
    if balance <= 0:
        return ObligationStatus.PAID
    today = today or _today()
    if due_date is not None and due_date < today:
        return ObligationStatus.OVERDUE
    if balance < original:
        return ObligationStatus.PARTIAL
    return ObligationStatus.PENDING


class ObligationStore:
    """Repository for obligations. Receives the session explicitly, never global state."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, obligation_id: int, *, for_update: bool = False) -> ObligationORM:
        obligation = self.db.get(
            ObligationORM,
            obligation_id,
            with_for_update=for_update or None,
            populate_existing=for_update,
        )
        if not obligation:
            raise NotFoundError("Transação não encontrada.", obligation_id=obligation_id)
        return obligation

    def create(
        self,
        *,
        value,
        due_date: date,
        category: str = "Vendas",
        description: Optional[str] = None,
        person: Optional[str] = None,
        notes: Optional[str] = None,
        sale_ref: Optional[str] = None,
        installment_number: Optional[int] = None,
        installment_count: Optional[int] = None,
        payment_method: Optional[str] = None,
        parent_id: Optional[int] = None,
    ) -> ObligationORM:
        amount = positive_money(value)

        obligation = ObligationORM(
            category=category,
            description=description,
            person=(person or None),
            value=amount,
            value_due=amount,
            status=ObligationStatus.PENDING,
            due_date=due_date,
            notes=notes,
            sale_ref=sale_ref,
            installment_number=installment_number,
            installment_count=installment_count,
            payment_method=payment_method,
            parent_id=parent_id,
        )
        self.db.add(obligation)
        self.db.flush()
        return obligation

    def apply_delta(
        self,
        obligation: ObligationORM,
        *,
        new_balance: Decimal,
        new_status: ObligationStatus,
        payment_amount: Decimal = ZERO,
    ) -> ObligationORM:
        """
        Grava o novo saldo/status de UMA parcela. Nenhuma outra linha é lida
        ou escrita aqui. O UPDATE leva a versão lida, então uma escrita
        concorrente faz o flush falhar (StaleDataError) em vez de sobrescrever.
        """
        if obligation.status == ObligationStatus.PAID and payment_amount > 0:
            raise AlreadySettledError("Transação já quitada.", obligation_id=obligation.id)

        new_balance = quantize_money(new_balance)
        if new_balance < 0 or new_balance > obligation.value:
            raise InvalidAmountError(
                f"Saldo fora do intervalo 0..{obligation.value}.", obligation_id=obligation.id
            )

        obligation.value_due = new_balance
        obligation.status = new_status
        if new_status == ObligationStatus.PAID:
            obligation.payment_date = datetime.now(timezone.utc)
        self.db.flush()
        return obligation

    def list(
        self,
        *,
        status: Optional[ObligationStatus] = None,
        person: Optional[str] = None,
        sale_ref: Optional[str] = None,
        due_from: Optional[date] = None,
        due_to: Optional[date] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Tuple[list[ObligationORM], int]:
        if page < 1:
            raise ValueError("page deve ser >= 1")
        if page_size < 1 or page_size > 500:
            raise ValueError("page_size deve estar entre 1 e 500")

        stmt = select(ObligationORM)
        if status is not None:
            stmt = stmt.where(ObligationORM.status == status)
        if person:
            stmt = stmt.where(ObligationORM.person.ilike(f"%{person}%"))
        if sale_ref:
            stmt = stmt.where(ObligationORM.sale_ref == sale_ref)
        if due_from is not None:
            stmt = stmt.where(ObligationORM.due_date >= due_from)
        if due_to is not None:
            stmt = stmt.where(ObligationORM.due_date <= due_to)

        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

        items = self.db.execute(
            stmt.order_by(ObligationORM.due_date.asc(), ObligationORM.id.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).scalars().all()

        return list(items), total

    def summary(self, *, person: Optional[str] = None) -> list[dict]:
        """Saldo em aberto agrupado por cliente (relatório de parcelas pendentes)."""
        stmt = (
            select(
                ObligationORM.person,
                func.count(ObligationORM.id),
                func.coalesce(func.sum(ObligationORM.value_due), 0),
            )
            .where(ObligationORM.status.in_(OPEN_STATUSES))
            .group_by(ObligationORM.person)
            .order_by(ObligationORM.person.asc())
        )
        if person:
            stmt = stmt.where(ObligationORM.person.ilike(f"%{person}%"))

        return [
            {
                "person": row_person,
                "open_count": int(count),
                "outstanding": quantize_money(Decimal(str(total))),
            }
            for row_person, count, total in self.db.execute(stmt).all()
        ]

    def mark_overdue(self, today: Optional[date] = None) -> int:
        today = today or _today()
        result = self.db.execute(
            update(ObligationORM)
            .where(
                ObligationORM.status.in_((ObligationStatus.PENDING, ObligationStatus.PARTIAL)),
                ObligationORM.due_date < today,
                ObligationORM.value_due > 0,
            )
            .values(status=ObligationStatus.OVERDUE, version=ObligationORM.version + 1)
            .execution_options(synchronize_session="fetch")
        )
        changed = result.rowcount or 0
        if changed:
            logger.info("mark_overdue: %s parcela(s) vencidas até %s", changed, today)
        return changed
