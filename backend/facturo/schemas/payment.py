"""Payment schemas."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from backend.facturo.models.invoice import InvoiceStatus
from backend.facturo.schemas.invoice import InvoiceRead, PaymentRecordRead


class PaymentCreate(BaseModel):
    invoice_id: int
    amount: Decimal
    method: str = Field(min_length=1)
    note: Optional[str] = None


class InvoiceStatusUpdate(BaseModel):
    invoice_id: int
    status: InvoiceStatus


class PaymentReceiptRead(BaseModel):
    payment: PaymentRecordRead
    invoice: InvoiceRead
    paid_until_now: Decimal
    remaining: Decimal


class PaymentListItem(BaseModel):
    invoice_id: int
    invoice_number: str
    client_name: str
    id: str
    amount: Decimal
    date: date
    method: str
    note: str = ""
