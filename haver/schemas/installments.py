from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import Field

from haver.schemas.base import ApiModel
from haver.schemas.obligations import ObligationOut
from haver.schemas.receipts import ReceiptOut


class InstallmentPlanIn(ApiModel):
    total: Decimal = Field(gt=0)
    installments: int = Field(ge=1, le=60)
    entrada: Decimal = Field(default=Decimal("0.00"), ge=0)
    entrada_method: str = Field(default="cash", min_length=1, max_length=30)

    person: Optional[str] = Field(default=None, max_length=140)
    sale_ref: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = Field(default=None, max_length=120)
    first_due_date: Optional[date] = None


class InstallmentPlanOut(ApiModel):
    sale_ref: str
    installments: list[ObligationOut]
    entrada: Optional[ObligationOut] = None
    entrada_receipt: Optional[ReceiptOut] = None
