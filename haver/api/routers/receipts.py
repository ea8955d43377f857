from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query
from sqlalchemy.orm import Session

from haver.api.deps import DBSession, http_error
from haver.schemas.receipts import ReceiptOut, ReceiptPage
from haver.services.errors import SettlementError
from haver.services.ledger import PaymentLedger

router = APIRouter()


@router.get("", response_model=ReceiptPage)
def list_receipts(
    db: Session = DBSession,
    transaction_id: Optional[int] = Query(default=None, alias="transactionId"),
    person: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=500, alias="pageSize"),
):
    items, total = PaymentLedger(db).list(
        transaction_id=transaction_id, person=person, page=page, page_size=page_size
    )
    return ReceiptPage(items=items, total=total, page=page, page_size=page_size)


@router.get("/{receipt_id}", response_model=ReceiptOut)
def get_receipt(receipt_id: int, db: Session = DBSession):
    try:
        return PaymentLedger(db).get(receipt_id)
    except SettlementError as e:
        raise http_error(e)
