from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, Field

from haver.infra.models import ObligationStatus
from haver.schemas.base import ApiModel


class ObligationCreate(ApiModel):
    # algumas telas mandam `amount` no lugar de `value`
    value: Decimal = Field(gt=0, validation_alias=AliasChoices("value", "amount"))
    due_date: date
    category: str = Field(default="Vendas", min_length=1, max_length=60)
    description: Optional[str] = Field(default=None, max_length=200)
    person: Optional[str] = Field(default=None, max_length=140)
    notes: Optional[str] = None
    sale_ref: Optional[str] = Field(default=None, max_length=64)
    installment_number: Optional[int] = Field(default=None, ge=1)
    installment_count: Optional[int] = Field(default=None, ge=1)
    payment_method: Optional[str] = Field(default=None, max_length=30)


class ObligationOut(ApiModel):
    id: int
    category: str
    description: Optional[str]
    person: Optional[str]

    value: Decimal
    value_due: Decimal
    status: ObligationStatus
    due_date: date

    notes: Optional[str]
    sale_ref: Optional[str]
    installment_number: Optional[int]
    installment_count: Optional[int]

    payment_method: Optional[str]
    payment_date: Optional[datetime]
    parent_id: Optional[int]

    created_at: datetime


class ObligationPage(ApiModel):
    items: list[ObligationOut]
    total: int
    page: int
    page_size: int


class OutstandingSummaryOut(ApiModel):
    person: Optional[str]
    open_count: int
    outstanding: Decimal


class MarkOverdueOut(ApiModel):
    updated: int
