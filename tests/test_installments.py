"""Tests for installment generation with down payment (entrada)."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from haver.infra.models import ObligationStatus
from haver.services.errors import InvalidAmountError
from haver.services.installments import create_installment_plan, split_installments
from haver.services.ledger import PaymentLedger
from haver.services.settlement import settle


class TestSplitInstallments:
    def test_entrada_is_deducted_before_division(self) -> None:
        """R$10,00 em 2x com R$2,00 de entrada -> 2x R$4,00 (não R$5,00)."""
        assert split_installments("10.00", "2.00", 2) == [Decimal("4.00"), Decimal("4.00")]

    def test_no_entrada(self) -> None:
        assert split_installments("100.00", None, 4) == [Decimal("25.00")] * 4

    def test_rounding_difference_goes_to_last(self) -> None:
        values = split_installments("100.00", "0", 3)
        assert values == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
        assert sum(values) == Decimal("100.00")

    @pytest.mark.parametrize(
        "total, entrada, count",
        [
            ("10.00", "10.00", 2),   # entrada cobre tudo
            ("10.00", "12.00", 2),
            ("10.00", "-1.00", 2),
            ("10.00", "0", 0),
            ("10.00", "0", 61),
            ("0", "0", 2),
            ("0.01", "0", 2),        # menos de um centavo por parcela
        ],
    )
    def test_invalid_inputs(self, total, entrada, count) -> None:
        with pytest.raises(InvalidAmountError):
            split_installments(total, entrada, count)


class TestCreateInstallmentPlan:
    def test_plan_with_entrada(self, db) -> None:
        plan = create_installment_plan(
            db,
            total="10.00",
            count=2,
            entrada="2.00",
            person="Cliente Teste Entrada",
            sale_ref="VEN-ENT",
            first_due_date=date(2030, 1, 15),
        )
        db.commit()

        assert [i.value for i in plan.installments] == [Decimal("4.00"), Decimal("4.00")]
        assert [i.value_due for i in plan.installments] == [Decimal("4.00"), Decimal("4.00")]
        assert [i.status for i in plan.installments] == [ObligationStatus.PENDING] * 2
        assert [i.due_date for i in plan.installments] == [date(2030, 1, 15), date(2030, 2, 15)]
        assert [i.notes for i in plan.installments] == [
            "Parcela 1/2 | sale:VEN-ENT",
            "Parcela 2/2 | sale:VEN-ENT",
        ]
        assert all(i.payment_method == "prazo" for i in plan.installments)

        assert plan.entrada.status == ObligationStatus.PAID
        assert plan.entrada.value == Decimal("2.00")
        assert plan.entrada_receipt.amount == Decimal("2.00")
        assert plan.entrada_receipt.note == "Entrada paga no ato da compra"

        for inst in plan.installments:
            assert PaymentLedger(db).total_for(inst.id) == Decimal("0.00")

    def test_plan_without_entrada_defaults_due_dates(self, db) -> None:
        plan = create_installment_plan(db, total="90.00", count=3, today=date(2026, 1, 31))
        db.commit()

        assert plan.entrada is None
        assert plan.sale_ref
        # relativedelta ajusta fim de mês
        assert [i.due_date for i in plan.installments] == [
            date(2026, 2, 28),
            date(2026, 3, 28),
            date(2026, 4, 28),
        ]

    def test_haver_on_generated_installment_is_isolated(self, db) -> None:
        plan = create_installment_plan(db, total="10.00", count=2, first_due_date=date(2030, 1, 1))
        db.commit()
        first, second = plan.installments

        settle(db, first.id, "2.00", "cash", "Partial upfront")

        assert first.value_due == Decimal("3.00")
        assert first.status == ObligationStatus.PARTIAL
        db.refresh(second)
        assert second.value_due == Decimal("5.00")
        assert second.status == ObligationStatus.PENDING
