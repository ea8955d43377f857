"""
Motor de baixa (haver).

Regra principal: um recebimento lançado na parcela K altera SOMENTE a
parcela K. O valor nunca é redistribuído entre as parcelas irmãs da mesma
venda; o excedente volta para quem chamou como `unused_amount`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from haver.config import settings
from haver.infra.models import CREDIT_METHOD, ObligationORM, ObligationStatus, ReceiptORM
from haver.services.errors import (
    AlreadySettledError,
    ConcurrentSettlementError,
    OverpaymentError,
    SettlementError,
    StorageError,
)
from haver.services.ledger import PaymentLedger
from haver.services.money import ZERO, positive_money
from haver.services.obligations import ObligationStore, derive_status

logger = logging.getLogger(__name__)


@dataclass
class SettlementResult:
    receipt: ReceiptORM
    obligation: ObligationORM
    applied: Decimal
    unused_amount: Decimal
    remaining_obligation: Optional[ObligationORM] = None

    @property
    def receipt_id(self) -> int:
        return self.receipt.id

    @property
    def remaining_obligation_id(self) -> Optional[int]:
        return self.remaining_obligation.id if self.remaining_obligation else None


def _keeps_method(obligation: ObligationORM) -> bool:
    return (obligation.payment_method or "").strip().lower() == CREDIT_METHOD


def _spawn_remaining(
    store: ObligationStore,
    obligation: ObligationORM,
    balance: Decimal,
    today: Optional[date],
) -> ObligationORM:
    notes = f"Saldo restante da transação #{obligation.id}"
    if obligation.notes:
        notes = f"{notes} | {obligation.notes}"

    remaining = store.create(
        value=balance,
        due_date=obligation.due_date,
        category=obligation.category,
        description=obligation.description,
        person=obligation.person,
        notes=notes,
        sale_ref=obligation.sale_ref,
        installment_number=obligation.installment_number,
        installment_count=obligation.installment_count,
        payment_method=obligation.payment_method,
        parent_id=obligation.id,
    )
    status = derive_status(balance, balance, remaining.due_date, today)
    if status != remaining.status:
        store.apply_delta(remaining, new_balance=balance, new_status=status)
    return remaining


def _settle_once(
    db: Session,
    obligation_id: int,
    amount: Decimal,
    method: Optional[str],
    note: Optional[str],
    *,
    created_by: Optional[str],
    carry_forward: bool,
    allow_overpayment: bool,
    today: Optional[date],
) -> SettlementResult:
    store = ObligationStore(db)
    ledger = PaymentLedger(db)

    obligation = store.get(obligation_id, for_update=True)
    balance = obligation.value_due
    if obligation.status == ObligationStatus.PAID or balance <= 0:
        raise AlreadySettledError("Transação já quitada.", obligation_id=obligation_id)

    applied = min(amount, balance)
    unused = amount - applied
    if unused > 0 and not allow_overpayment:
        raise OverpaymentError(
            f"Valor {amount} maior que o saldo da parcela ({balance}).",
            obligation_id=obligation_id,
        )

    receipt = ledger.record(obligation.id, applied, method, note, created_by=created_by)

    if method and not _keeps_method(obligation):
        obligation.payment_method = method

    new_balance = balance - applied
    remaining: Optional[ObligationORM] = None

    if carry_forward and new_balance > 0:
        # fecha a parcela no valor recebido e abre outra só com o que falta
        store.apply_delta(
            obligation, new_balance=ZERO, new_status=ObligationStatus.PAID, payment_amount=applied
        )
        remaining = _spawn_remaining(store, obligation, new_balance, today)
    else:
        store.apply_delta(
            obligation,
            new_balance=new_balance,
            new_status=derive_status(new_balance, obligation.value, obligation.due_date, today),
            payment_amount=applied,
        )

    return SettlementResult(
        receipt=receipt,
        obligation=obligation,
        applied=applied,
        unused_amount=unused,
        remaining_obligation=remaining,
    )


def settle(
    db: Session,
    obligation_id: int,
    amount,
    method: Optional[str] = None,
    note: Optional[str] = None,
    *,
    created_by: Optional[str] = None,
    carry_forward: bool = False,
    allow_overpayment: bool = True,
    today: Optional[date] = None,
    max_retries: Optional[int] = None,
) -> SettlementResult:
    """
    Aplica `amount` na parcela `obligation_id` e grava o recibo.

    A leitura do saldo, o recibo e o novo saldo vão no mesmo commit. Se outra
    baixa concorrente gravou a parcela antes (versão mudou), desfaz e tenta
    de novo sobre o saldo atualizado. Em qualquer falha nada fica gravado.
    """
    amount = positive_money(amount)
    attempts = settings.SETTLEMENT_MAX_RETRIES if max_retries is None else max_retries
    if attempts < 1:
        raise ValueError("max_retries deve ser >= 1")

    for attempt in range(1, attempts + 1):
        try:
            result = _settle_once(
                db,
                obligation_id,
                amount,
                method,
                note,
                created_by=created_by,
                carry_forward=carry_forward,
                allow_overpayment=allow_overpayment,
                today=today,
            )
            db.commit()
        except StaleDataError:
            db.rollback()
            logger.warning(
                "settle: conflito de versão na transação %s (tentativa %s/%s)",
                obligation_id, attempt, attempts,
            )
            continue
        except SettlementError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("settle: falha ao gravar baixa da transação %s: %s", obligation_id, e)
            raise StorageError(
                "Erro ao registrar recebimento.", obligation_id=obligation_id
            ) from e

        logger.info(
            "settle: transação %s recebeu %s (saldo %s, status %s, recibo %s)",
            obligation_id,
            result.applied,
            result.obligation.value_due,
            result.obligation.status.value,
            result.receipt.public_id,
        )
        return result

    raise ConcurrentSettlementError(
        "Transação alterada por outra baixa ao mesmo tempo. Tente novamente.",
        obligation_id=obligation_id,
    )
