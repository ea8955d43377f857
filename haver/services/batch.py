"""Recebimento em lote: cada item é uma baixa independente, sem rollback global."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from haver.services.errors import NotFoundError, SettlementError
from haver.services.money import ZERO
from haver.services.settlement import settle

logger = logging.getLogger(__name__)


@dataclass
class SettlementRequest:
    obligation_id: object
    amount: object
    method: Optional[str] = None
    note: Optional[str] = None
    created_by: Optional[str] = None


def _obligation_id(raw) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    raise NotFoundError(f"Transação não encontrada: {raw!r}.")


@dataclass
class BatchResult:
    receipts: list[dict] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)
    requested: int = 0
    applied_total: Decimal = ZERO

    @property
    def summary(self) -> dict:
        return {
            "requested": self.requested,
            "succeeded": len(self.receipts),
            "failed": len(self.errors),
            "applied_total": self.applied_total,
        }


def settle_batch(
    db: Session,
    items: Iterable[SettlementRequest],
    *,
    allow_overpayment: bool = True,
    today: Optional[date] = None,
) -> BatchResult:
    result = BatchResult()

    for item in items:
        result.requested += 1
        obligation_id = None
        try:
            obligation_id = _obligation_id(item.obligation_id)
            settled = settle(
                db,
                obligation_id,
                item.amount,
                item.method,
                item.note,
                created_by=item.created_by,
                allow_overpayment=allow_overpayment,
                today=today,
            )
        except SettlementError as e:
            logger.warning(
                "bulk-receive: item da transação %s rejeitado (%s): %s",
                item.obligation_id, e.kind, e.message,
            )
            result.errors.append(
                {
                    "obligation_id": obligation_id,
                    "error_kind": e.kind,
                    "message": e.message,
                }
            )
            continue

        result.applied_total += settled.applied
        result.receipts.append(
            {
                "obligation_id": obligation_id,
                "receipt_id": settled.receipt_id,
                "applied": settled.applied,
                "unused_amount": settled.unused_amount,
            }
        )

    return result
