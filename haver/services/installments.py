"""
Geração de parcelas de uma venda a prazo.

A entrada é abatida do total ANTES de dividir: venda de 10,00 em 2x com
2,00 de entrada gera duas parcelas de 4,00. Depois de criadas, cada parcela
só muda pelo motor de baixa; nada aqui redivide parcelas existentes.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from haver.config import settings
from haver.infra.models import CREDIT_METHOD, ObligationORM, ReceiptORM
from haver.services.errors import InvalidAmountError
from haver.services.money import CENT, ZERO, positive_money, quantize_money, to_money
from haver.services.obligations import ObligationStore
from haver.services.settlement import settle

MAX_INSTALLMENTS = 60


@dataclass
class InstallmentPlan:
    sale_ref: str
    installments: list[ObligationORM] = field(default_factory=list)
    entrada: Optional[ObligationORM] = None
    entrada_receipt: Optional[ReceiptORM] = None


def _today_utc() -> date:
    return datetime.now(timezone.utc).date()


def _add_months(d: date, months: int) -> date:
    return d + relativedelta(months=months)


def split_installments(total, entrada, count: int) -> list[Decimal]:
    total = positive_money(total)
    entrada = to_money(entrada if entrada is not None else ZERO)

    if count < 1 or count > MAX_INSTALLMENTS:
        raise InvalidAmountError(f"Número de parcelas deve estar entre 1 e {MAX_INSTALLMENTS}.")
    if entrada < 0:
        raise InvalidAmountError("Entrada não pode ser negativa.")
    if entrada >= total:
        raise InvalidAmountError("Entrada cobre o total da venda: não há o que parcelar.")

    principal = total - entrada
    per = (principal / Decimal(count)).quantize(CENT, rounding=ROUND_HALF_UP)
    if per <= 0:
        raise InvalidAmountError("Valor por parcela menor que um centavo.")

    values = [per] * count
    # diferença de arredondamento fica na última
    values[-1] = quantize_money(principal - per * (count - 1))
    if values[-1] <= 0:
        raise InvalidAmountError("Valor por parcela inválido após arredondamento.")
    return values


def create_installment_plan(
    db: Session,
    *,
    total,
    count: int,
    entrada=None,
    person: Optional[str] = None,
    sale_ref: Optional[str] = None,
    first_due_date: Optional[date] = None,
    description: Optional[str] = None,
    entrada_method: str = "cash",
    today: Optional[date] = None,
) -> InstallmentPlan:
    values = split_installments(total, entrada, count)
    entrada_value = to_money(entrada if entrada is not None else ZERO)

    store = ObligationStore(db)
    sale_ref = (sale_ref or "").strip() or uuid.uuid4().hex[:12]
    today = today or _today_utc()
    interval = settings.INSTALLMENT_INTERVAL_MONTHS
    first_due = first_due_date or _add_months(today, interval)
    label = description or "Venda PDV"

    plan = InstallmentPlan(sale_ref=sale_ref)

    for n, value in enumerate(values, start=1):
        plan.installments.append(
            store.create(
                value=value,
                due_date=_add_months(first_due, (n - 1) * interval),
                description=f"{label} - Parcela {n}/{count}",
                person=person,
                notes=f"Parcela {n}/{count} | sale:{sale_ref}",
                sale_ref=sale_ref,
                installment_number=n,
                installment_count=count,
                payment_method=CREDIT_METHOD,
            )
        )

    if entrada_value > 0:
        # entrada vira um lançamento próprio, quitado na hora; as parcelas ficam intactas
        plan.entrada = store.create(
            value=entrada_value,
            due_date=today,
            description=f"{label} - Entrada",
            person=person,
            notes=f"Entrada | sale:{sale_ref}",
            sale_ref=sale_ref,
            payment_method=entrada_method,
        )
        result = settle(
            db,
            plan.entrada.id,
            entrada_value,
            entrada_method,
            "Entrada paga no ato da compra",
            created_by=person,
            allow_overpayment=False,
            today=today,
        )
        plan.entrada_receipt = result.receipt

    return plan
