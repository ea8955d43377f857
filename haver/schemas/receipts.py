from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from haver.schemas.base import ApiModel


class ReceiptOut(ApiModel):
    id: int
    public_id: str
    transaction_id: int
    amount: Decimal
    method: Optional[str]
    note: Optional[str]
    created_by: Optional[str]
    created_at: datetime

    tx_description: Optional[str] = None
    tx_person: Optional[str] = None
    tx_due_date: Optional[date] = None


class ReceiptPage(ApiModel):
    items: list[ReceiptOut]
    total: int
    page: int
    page_size: int
