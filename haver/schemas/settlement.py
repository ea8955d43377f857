from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from pydantic import Field

from haver.schemas.base import ApiModel
from haver.schemas.obligations import ObligationOut
from haver.schemas.receipts import ReceiptOut


class ReceiveIn(ApiModel):
    # sem gt=0 aqui: o motor de baixa rejeita com 400 e mensagem própria
    amount: Decimal
    method: str = Field(min_length=1, max_length=30)
    note: Optional[str] = None
    created_by: Optional[str] = Field(default=None, max_length=120)

    carry_forward: bool = False
    allow_overpayment: bool = True


class ReceiveOut(ApiModel):
    id: int
    receipt: ReceiptOut
    transaction: ObligationOut
    applied: Decimal
    unused_amount: Decimal
    remaining_transaction_id: Optional[int] = None


class BulkItemIn(ApiModel):
    # valores crus: id ou valor inválido vira erro do item, não 422 do lote todo
    id: Any = None
    amount: Any = None
    method: Optional[str] = Field(default=None, max_length=30)
    note: Optional[str] = None
    created_by: Optional[str] = Field(default=None, max_length=120)


class BulkReceiveIn(ApiModel):
    items: list[BulkItemIn]
    allow_overpayment: bool = True


class BulkReceiptOut(ApiModel):
    obligation_id: int
    receipt_id: int
    applied: Decimal
    unused_amount: Decimal


class BulkErrorOut(ApiModel):
    obligation_id: Optional[int] = None
    error_kind: str
    message: str


class BulkSummaryOut(ApiModel):
    requested: int
    succeeded: int
    failed: int
    applied_total: Decimal


class BulkReceiveOut(ApiModel):
    receipts: list[BulkReceiptOut]
    errors: list[BulkErrorOut]
    summary: BulkSummaryOut
