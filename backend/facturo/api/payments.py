"""Payment endpoints: history listing, recording and manual status changes."""

from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.facturo.core.errors import ConcurrentUpdateError, PaymentRejected
from backend.facturo.db.session import get_db
from backend.facturo.dependencies.auth import get_current_user
from backend.facturo.models.user import User
from backend.facturo.schemas.common import DataResponse
from backend.facturo.schemas.invoice import InvoiceRead
from backend.facturo.schemas.payment import (
    InvoiceStatusUpdate,
    PaymentCreate,
    PaymentListItem,
    PaymentReceiptRead,
)
from backend.facturo.services.invoices import list_payment_history, record_payment, set_invoice_status

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/", response_model=DataResponse[List[PaymentListItem]])
def list_payments(
    invoice_id: int | None = None,
    method: str | None = None,
    min_amount: Decimal | None = None,
    max_amount: Decimal | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    payments = list_payment_history(
        db,
        current_user.id,
        invoice_id=invoice_id,
        method=method,
        min_amount=min_amount,
        max_amount=max_amount,
    )
    return DataResponse(data=payments)


@router.post("/", response_model=DataResponse[PaymentReceiptRead], status_code=status.HTTP_201_CREATED)
def create_payment(
    payment_in: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        receipt = record_payment(
            db,
            payment_in.invoice_id,
            current_user.id,
            payment_in.amount,
            payment_in.method,
            payment_in.note,
        )
    except PaymentRejected as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except ConcurrentUpdateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if receipt is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")

    return DataResponse(
        data=PaymentReceiptRead(
            payment=receipt.payment,
            invoice=InvoiceRead.model_validate(receipt.invoice),
            paid_until_now=receipt.paid_until_now,
            remaining=receipt.remaining,
        )
    )


@router.put("/", response_model=DataResponse[InvoiceRead])
def update_invoice_status(
    update: InvoiceStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        invoice = set_invoice_status(db, update.invoice_id, current_user.id, update.status)
    except ConcurrentUpdateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if invoice is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return DataResponse(data=InvoiceRead.model_validate(invoice))
