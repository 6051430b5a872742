"""Invoice routes for the signed-in owner."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.facturo.core.errors import ConcurrentUpdateError, ContactNotFound, InvoiceUpdateRejected
from backend.facturo.db.session import get_db
from backend.facturo.dependencies.auth import get_current_user
from backend.facturo.models.invoice import Invoice, InvoiceStatus
from backend.facturo.models.user import User
from backend.facturo.schemas.common import DataResponse, MessageResponse
from backend.facturo.schemas.invoice import InvoiceCreate, InvoiceRead, InvoiceSummary, InvoiceUpdate
from backend.facturo.services.invoices import (
    create_invoice,
    delete_invoice,
    get_invoice_summary,
    get_owned_invoice,
    update_invoice,
)

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("/summary", response_model=DataResponse[InvoiceSummary])
def read_invoice_summary(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return DataResponse(data=get_invoice_summary(db, current_user.id))


@router.get("/", response_model=DataResponse[List[InvoiceRead]])
def list_invoices(
    status: str | None = None,
    contact_id: int | None = None,
    skip: int = 0,
    limit: int = 50,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Invoice).filter(Invoice.owner_id == current_user.id)
    if status:
        if status not in {s.value for s in InvoiceStatus}:
            raise HTTPException(status_code=400, detail="Invalid status value")
        query = query.filter(Invoice.status == status)
    if contact_id:
        query = query.filter(Invoice.contact_id == contact_id)

    supported_sort_fields = {
        "created_at": Invoice.created_at,
        "created_date": Invoice.created_date,
        "due_date": Invoice.due_date,
        "status": Invoice.status,
        "total_amount": Invoice.total_amount,
        "invoice_number": Invoice.invoice_number,
    }
    if sort_by not in supported_sort_fields:
        raise HTTPException(status_code=400, detail="Invalid sort_by value")
    sort_order_normalized = (sort_order or "desc").lower()
    if sort_order_normalized not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="Invalid sort_order value")
    sort_column = supported_sort_fields[sort_by]
    if sort_order_normalized == "asc":
        order_by_clause = [sort_column.asc(), Invoice.id.asc()]
    else:
        order_by_clause = [sort_column.desc(), Invoice.id.desc()]

    invoices = query.order_by(*order_by_clause).offset(skip).limit(limit).all()
    return DataResponse(data=[InvoiceRead.model_validate(invoice) for invoice in invoices])


@router.post("/", response_model=DataResponse[InvoiceRead], status_code=status.HTTP_201_CREATED)
def create_invoice_endpoint(
    invoice_in: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        invoice = create_invoice(db, current_user.id, invoice_in)
    except ContactNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except InvoiceUpdateRejected as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return DataResponse(data=InvoiceRead.model_validate(invoice))


@router.get("/{invoice_id}", response_model=DataResponse[InvoiceRead])
def get_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    invoice = get_owned_invoice(db, invoice_id, current_user.id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return DataResponse(data=InvoiceRead.model_validate(invoice))


@router.put("/{invoice_id}", response_model=DataResponse[InvoiceRead])
def update_invoice_endpoint(
    invoice_id: int,
    invoice_in: InvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        invoice = update_invoice(db, invoice_id, current_user.id, invoice_in)
    except ContactNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except InvoiceUpdateRejected as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except ConcurrentUpdateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return DataResponse(data=InvoiceRead.model_validate(invoice))


@router.delete("/{invoice_id}", response_model=MessageResponse)
def delete_invoice_endpoint(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    if not delete_invoice(db, invoice_id, current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return MessageResponse(message="Invoice deleted")
