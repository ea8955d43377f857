from __future__ import annotations

from sqlalchemy import inspect

from haver import init_db
from haver.scripts.check_installments import report
from haver.services.settlement import settle


def test_check_installments_report(db, sale_group, make_obligation):
    make_obligation("7.00", person=None)
    settle(db, sale_group[0].id, "10.00", "cash")

    lines = report(db)

    assert lines[0] == "=== TRANSACOES EM ABERTO ==="
    assert ">>> Joao Soares (4 parcela(s)) TOTAL DEVIDO: R$ 90.00" in lines
    assert ">>> SEM PESSOA (1 parcela(s)) TOTAL DEVIDO: R$ 7.00" in lines
    assert lines[-1] == "=== FIM ==="


def test_init_db_creates_tables(tmp_path, monkeypatch):
    from haver.infra.db import build_engine

    eng = build_engine(f"sqlite:///{tmp_path / 'fresh.db'}")
    monkeypatch.setattr(init_db, "engine", eng)

    init_db.main()

    assert {"transactions", "receipts"} <= set(inspect(eng).get_table_names())
    eng.dispose()
