from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

from haver.infra.models import ObligationORM
from haver.services.errors import StorageError
from haver.services.ledger import PaymentLedger
from haver.services.settlement import settle


def test_concurrent_settlements_never_double_debit(session_factory, make_obligation):
    obligation = make_obligation("8.00")
    barrier = threading.Barrier(2)

    def worker():
        session = session_factory()
        try:
            barrier.wait(timeout=10)
            return settle(session, obligation.id, "5.00", "cash").applied
        except StorageError as e:
            # perdeu a disputa de lock e falhou sem gravar nada
            return e
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = [f.result(timeout=60) for f in [pool.submit(worker), pool.submit(worker)]]

    applied = sorted(o for o in outcomes if isinstance(o, Decimal))
    assert applied in ([Decimal("5.00")], [Decimal("3.00"), Decimal("5.00")])

    with session_factory() as s:
        row = s.get(ObligationORM, obligation.id)
        received = PaymentLedger(s).total_for(obligation.id)

    assert row.value_due >= 0
    assert received == sum(applied)
    assert row.value_due == Decimal("8.00") - received
