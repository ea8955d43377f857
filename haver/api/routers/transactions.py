from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from sqlalchemy.orm import Session

from haver.api.deps import DBSession, http_error
from haver.infra.models import ObligationStatus
from haver.schemas.obligations import (
    MarkOverdueOut,
    ObligationCreate,
    ObligationOut,
    ObligationPage,
    OutstandingSummaryOut,
)
from haver.schemas.receipts import ReceiptOut
from haver.schemas.settlement import (
    BulkReceiveIn,
    BulkReceiveOut,
    ReceiveIn,
    ReceiveOut,
)
from haver.services.batch import SettlementRequest, settle_batch
from haver.services.errors import SettlementError
from haver.services.obligations import ObligationStore
from haver.services.settlement import settle

router = APIRouter()


def _parse_status(status: Optional[str]) -> Optional[ObligationStatus]:
    if not status:
        return None
    try:
        return ObligationStatus(status.strip().upper())
    except ValueError:
        raise HTTPException(status_code=400, detail="status inválido (PENDING|PARTIAL|PAID|OVERDUE).")


@router.post("", response_model=ObligationOut, status_code=201)
def create_transaction(payload: ObligationCreate, db: Session = DBSession):
    try:
        row = ObligationStore(db).create(**payload.model_dump())
        db.commit()
    except SettlementError as e:
        db.rollback()
        raise http_error(e)
    return row


@router.get("", response_model=ObligationPage)
def list_transactions(
    db: Session = DBSession,
    status: Optional[str] = Query(default=None, description="PENDING|PARTIAL|PAID|OVERDUE"),
    person: Optional[str] = Query(default=None),
    sale_ref: Optional[str] = Query(default=None, alias="saleRef"),
    due_from: Optional[date] = Query(default=None, alias="dueFrom"),
    due_to: Optional[date] = Query(default=None, alias="dueTo"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=500, alias="pageSize"),
):
    items, total = ObligationStore(db).list(
        status=_parse_status(status),
        person=person,
        sale_ref=sale_ref,
        due_from=due_from,
        due_to=due_to,
        page=page,
        page_size=page_size,
    )
    return ObligationPage(items=items, total=total, page=page, page_size=page_size)


@router.get("/summary", response_model=list[OutstandingSummaryOut])
def outstanding_summary(db: Session = DBSession, person: Optional[str] = Query(default=None)):
    return ObligationStore(db).summary(person=person)


@router.post("/mark-overdue", response_model=MarkOverdueOut)
def mark_overdue(db: Session = DBSession, today: Optional[date] = Query(default=None)):
    updated = ObligationStore(db).mark_overdue(today)
    db.commit()
    return MarkOverdueOut(updated=updated)


# Recebimento em lote: cada item é baixado sozinho, só na própria parcela
@router.post("/bulk-receive", response_model=BulkReceiveOut, status_code=201)
def bulk_receive(payload: BulkReceiveIn, db: Session = DBSession):
    if not payload.items:
        raise HTTPException(status_code=400, detail="Nenhum item fornecido.")

    result = settle_batch(
        db,
        [
            SettlementRequest(
                obligation_id=it.id,
                amount=it.amount,
                method=it.method,
                note=it.note,
                created_by=it.created_by,
            )
            for it in payload.items
        ],
        allow_overpayment=payload.allow_overpayment,
    )
    return BulkReceiveOut(receipts=result.receipts, errors=result.errors, summary=result.summary)


@router.get("/{tx_id}", response_model=ObligationOut)
def get_transaction(tx_id: int, db: Session = DBSession):
    try:
        return ObligationStore(db).get(tx_id)
    except SettlementError as e:
        raise http_error(e)


# Registrar recebimento (haver) para uma parcela e gerar recibo
@router.post("/{tx_id}/receive", response_model=ReceiveOut, status_code=201)
def receive(tx_id: int, payload: ReceiveIn, db: Session = DBSession):
    try:
        result = settle(
            db,
            tx_id,
            payload.amount,
            payload.method,
            payload.note,
            created_by=payload.created_by,
            carry_forward=payload.carry_forward,
            allow_overpayment=payload.allow_overpayment,
        )
    except SettlementError as e:
        raise http_error(e)

    return ReceiveOut(
        id=result.receipt_id,
        receipt=ReceiptOut.model_validate(result.receipt),
        transaction=ObligationOut.model_validate(result.obligation),
        applied=result.applied,
        unused_amount=result.unused_amount,
        remaining_transaction_id=result.remaining_obligation_id,
    )
