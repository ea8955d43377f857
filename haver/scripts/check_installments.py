"""Lista o saldo em aberto por cliente (uso: python -m haver.scripts.check_installments [nome])."""
from __future__ import annotations

import sys
from typing import Optional

from sqlalchemy.orm import Session

from haver.infra.db import SessionLocal
from haver.services.obligations import ObligationStore


def report(db: Session, person: Optional[str] = None) -> list[str]:
    store = ObligationStore(db)
    lines = ["=== TRANSACOES EM ABERTO ==="]
    for row in store.summary(person=person):
        name = row["person"] or "SEM PESSOA"
        lines.append(f">>> {name} ({row['open_count']} parcela(s)) TOTAL DEVIDO: R$ {row['outstanding']}")
    lines.append("=== FIM ===")
    return lines


def main() -> None:
    person = sys.argv[1] if len(sys.argv) > 1 else None
    db = SessionLocal()
    try:
        for line in report(db, person):
            print(line)
    finally:
        db.close()


if __name__ == "__main__":
    main()
