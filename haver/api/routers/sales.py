from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy.orm import Session

from haver.api.deps import DBSession, http_error
from haver.schemas.installments import InstallmentPlanIn, InstallmentPlanOut
from haver.services.errors import SettlementError
from haver.services.installments import create_installment_plan

router = APIRouter()


@router.post("/installments", response_model=InstallmentPlanOut, status_code=201)
def create_installments_endpoint(payload: InstallmentPlanIn, db: Session = DBSession):
    """
    Venda a prazo: gera as parcelas já com a entrada abatida do total.
    """
    try:
        plan = create_installment_plan(
            db,
            total=payload.total,
            count=payload.installments,
            entrada=payload.entrada,
            person=payload.person,
            sale_ref=payload.sale_ref,
            first_due_date=payload.first_due_date,
            description=payload.description,
            entrada_method=payload.entrada_method,
        )
        db.commit()
    except SettlementError as e:
        db.rollback()
        raise http_error(e)

    return InstallmentPlanOut(
        sale_ref=plan.sale_ref,
        installments=plan.installments,
        entrada=plan.entrada,
        entrada_receipt=plan.entrada_receipt,
    )
