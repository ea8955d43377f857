from __future__ import annotations

from decimal import Decimal

from haver.infra.models import ObligationORM, ObligationStatus
from haver.services import ledger as ledger_module
from haver.services.batch import SettlementRequest, settle_batch
from haver.services.ledger import PaymentLedger


class TestSettleBatch:
    def test_one_failure_does_not_abort_the_batch(self, db, session_factory, make_obligation):
        good = make_obligation("25.00")

        result = settle_batch(
            db,
            [
                SettlementRequest(obligation_id=9999, amount="10.00", method="cash"),
                SettlementRequest(obligation_id=good.id, amount="10.00", method="cash"),
            ],
        )

        assert len(result.receipts) == 1
        assert result.receipts[0]["obligation_id"] == good.id
        assert result.errors == [
            {"obligation_id": 9999, "error_kind": "not_found", "message": "Transação não encontrada."}
        ]
        assert result.summary == {
            "requested": 2,
            "succeeded": 1,
            "failed": 1,
            "applied_total": Decimal("10.00"),
        }

        with session_factory() as s:
            row = s.get(ObligationORM, good.id)
        assert row.value_due == Decimal("15.00")
        assert row.status == ObligationStatus.PARTIAL

    def test_each_item_debits_only_its_own_installment(self, db, session_factory, sale_group):
        first, second, third, fourth = sale_group

        result = settle_batch(
            db,
            [
                SettlementRequest(obligation_id=first.id, amount="25.00", method="cash"),
                SettlementRequest(obligation_id=third.id, amount="5.00", method="pix"),
            ],
        )

        assert result.summary["succeeded"] == 2
        with session_factory() as s:
            balances = {o.id: s.get(ObligationORM, o.id).value_due for o in sale_group}
        assert balances == {
            first.id: Decimal("0.00"),
            second.id: Decimal("25.00"),
            third.id: Decimal("20.00"),
            fourth.id: Decimal("25.00"),
        }

    def test_mixed_error_kinds(self, db, make_obligation):
        paid = make_obligation("5.00")
        open_ = make_obligation("5.00")
        settle_batch(db, [SettlementRequest(obligation_id=paid.id, amount="5.00")])

        result = settle_batch(
            db,
            [
                SettlementRequest(obligation_id=paid.id, amount="1.00"),
                SettlementRequest(obligation_id=open_.id, amount="-1"),
                SettlementRequest(obligation_id=open_.id, amount="9.00"),
            ],
            allow_overpayment=False,
        )

        assert [e["error_kind"] for e in result.errors] == ["already_settled", "invalid_amount", "overpayment"]
        assert result.receipts == []

    def test_raw_ids_and_amounts_fail_per_item(self, db, session_factory, make_obligation):
        row = make_obligation("25.00")

        result = settle_batch(
            db,
            [
                SettlementRequest(obligation_id=str(row.id), amount="4.00"),
                SettlementRequest(obligation_id=row.id, amount="abc"),
                SettlementRequest(obligation_id=None, amount="1.00"),
                SettlementRequest(obligation_id="12x", amount="1.00"),
            ],
        )

        assert [r["obligation_id"] for r in result.receipts] == [row.id]
        assert [(e["obligation_id"], e["error_kind"]) for e in result.errors] == [
            (row.id, "invalid_amount"),
            (None, "not_found"),
            (None, "not_found"),
        ]
        with session_factory() as s:
            assert s.get(ObligationORM, row.id).value_due == Decimal("21.00")

    def test_receipt_code_exhaustion_is_reported_as_storage(self, db, session_factory, make_obligation, monkeypatch):
        taken = make_obligation("10.00")
        other = make_obligation("10.00")
        code = PaymentLedger(db).record(taken.id, "1.00", "cash").public_id
        db.commit()
        monkeypatch.setattr(ledger_module, "generate_receipt_code", lambda: code)

        result = settle_batch(
            db,
            [
                SettlementRequest(obligation_id=other.id, amount="2.00"),
                SettlementRequest(obligation_id=9999, amount="2.00"),
            ],
        )

        assert [e["error_kind"] for e in result.errors] == ["storage", "not_found"]
        with session_factory() as s:
            assert s.get(ObligationORM, other.id).value_due == Decimal("10.00")
