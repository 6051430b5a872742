"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from backend.facturo.models.invoice import InvoiceStatus

DiscountType = Literal["percentage", "fixed"]
MAX_PERCENTAGE_DISCOUNT = Decimal("100")


def _check_percentage_discount(discount_type, discount_amount) -> None:
    if discount_type == "percentage" and discount_amount is not None and discount_amount > MAX_PERCENTAGE_DISCOUNT:
        raise ValueError("Percentage discount cannot exceed 100")


class InvoiceItemIn(BaseModel):
    id: Optional[str] = None
    description: str = ""
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(ge=0)


class InvoiceItemRead(BaseModel):
    id: str
    description: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal


class PaymentRecordRead(BaseModel):
    id: str
    amount: Decimal
    date: date
    method: str
    note: str = ""


class InvoiceCreate(BaseModel):
    invoice_number: Optional[str] = None
    contact_id: Optional[int] = None
    client_name: str = Field(min_length=1)
    client_company: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    status: InvoiceStatus = InvoiceStatus.PENDING
    items: List[InvoiceItemIn] = Field(min_length=1)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0)
    discount_type: DiscountType = "percentage"
    currency: str = "EUR"
    created_date: Optional[date] = None
    due_date: Optional[date] = None
    vat_number: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_discount(self):
        _check_percentage_discount(self.discount_type, self.discount_amount)
        return self


class InvoiceUpdate(BaseModel):
    contact_id: Optional[int] = None
    client_name: Optional[str] = Field(default=None, min_length=1)
    client_company: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    status: Optional[InvoiceStatus] = None
    items: Optional[List[InvoiceItemIn]] = Field(default=None, min_length=1)
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    discount_amount: Optional[Decimal] = Field(default=None, ge=0)
    discount_type: Optional[DiscountType] = None
    currency: Optional[str] = None
    due_date: Optional[date] = None
    vat_number: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_discount(self):
        _check_percentage_discount(self.discount_type, self.discount_amount)
        return self


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_number: str
    owner_id: int
    contact_id: Optional[int]
    client_name: str
    client_company: Optional[str]
    client_email: Optional[str]
    client_phone: Optional[str]

    status: str
    subtotal_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    discount_type: str
    discount_total: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    currency: str

    created_date: date
    due_date: date
    items: List[InvoiceItemRead]
    payment_history: List[PaymentRecordRead]
    vat_number: Optional[str]
    notes: Optional[str]

    created_at: datetime
    updated_at: datetime


class InvoiceSummary(BaseModel):
    counts: dict[str, int]
    total_invoiced: Decimal
    total_paid: Decimal
    total_outstanding: Decimal
