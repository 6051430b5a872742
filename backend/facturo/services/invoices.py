"""Invoice persistence: creation, edits, payments and the journal summary."""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.facturo.core.errors import ContactNotFound, InvoiceUpdateRejected
from backend.facturo.core.time import utc_today
from backend.facturo.models.contact import Contact
from backend.facturo.models.invoice import Invoice, InvoiceStatus
from backend.facturo.schemas.invoice import InvoiceCreate, InvoiceUpdate
from backend.facturo.services.concurrency import run_with_retry
from backend.facturo.services.ledger import (
    AUTO_STATUSES,
    PaymentReceipt,
    apply_payment,
    build_line_items,
    compute_totals,
    derive_status,
    fallback_invoice_number,
    generate_invoice_number,
    override_status,
    quantize_money,
)
from backend.facturo.services.user_settings import load_invoice_settings

logger = logging.getLogger(__name__)

TOTAL_FIELDS = ("items", "tax_rate", "discount_amount", "discount_type")
NOT_NULL_FIELDS = ("client_name", "currency", "due_date")


def get_owned_invoice(db: Session, invoice_id: int, owner_id: int) -> Optional[Invoice]:
    return db.query(Invoice).filter(Invoice.id == invoice_id, Invoice.owner_id == owner_id).first()


def _ensure_owned_contact(db: Session, contact_id: Optional[int], owner_id: int) -> None:
    if contact_id is None:
        return
    exists = db.query(Contact.id).filter(Contact.id == contact_id, Contact.owner_id == owner_id).first()
    if not exists:
        raise ContactNotFound("Contact not found")


def next_invoice_number(db: Session, owner_id: int, prefix: str = "INV") -> str:
    """Owner-scoped sequential number; falls back to a timestamp suffix if the lookup fails."""
    try:
        rows = (
            db.query(Invoice.invoice_number)
            .filter(Invoice.owner_id == owner_id, Invoice.invoice_number.like(f"{prefix}-%"))
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Invoice number lookup failed for owner %s, using timestamp fallback", owner_id)
        db.rollback()
        return fallback_invoice_number(prefix)
    return generate_invoice_number((row[0] for row in rows), prefix=prefix)


def _apply_totals(invoice: Invoice, items, tax_rate, discount_amount, discount_type) -> None:
    totals = compute_totals(items, tax_rate, discount_amount, discount_type)
    invoice.items = build_line_items(items)
    invoice.tax_rate = quantize_money(tax_rate)
    invoice.discount_amount = quantize_money(discount_amount)
    invoice.discount_type = discount_type
    invoice.subtotal_amount = totals.subtotal
    invoice.discount_total = totals.discount
    invoice.tax_amount = totals.tax
    invoice.total_amount = totals.total


def create_invoice(db: Session, owner_id: int, payload: InvoiceCreate) -> Invoice:
    _ensure_owned_contact(db, payload.contact_id, owner_id)
    invoice_settings = load_invoice_settings(db, owner_id)
    prefix = invoice_settings.invoice_number_prefix or "INV"

    created_date = payload.created_date or utc_today()
    due_date = payload.due_date
    if due_date is None:
        try:
            due_days = int(invoice_settings.due_date_days)
        except ValueError:
            due_days = 0
        due_date = created_date + timedelta(days=due_days)

    invoice = Invoice(
        invoice_number=payload.invoice_number or next_invoice_number(db, owner_id, prefix),
        owner_id=owner_id,
        contact_id=payload.contact_id,
        client_name=payload.client_name,
        client_company=payload.client_company,
        client_email=payload.client_email,
        client_phone=payload.client_phone,
        status=payload.status.value,
        paid_amount=Decimal("0.00"),
        currency=payload.currency,
        created_date=created_date,
        due_date=due_date,
        payment_history=[],
        vat_number=payload.vat_number,
        notes=payload.notes,
    )
    _apply_totals(invoice, payload.items, payload.tax_rate, payload.discount_amount, payload.discount_type)
    if quantize_money(invoice.total_amount) < Decimal("0.00"):
        raise InvoiceUpdateRejected("Discount cannot exceed the invoice subtotal")
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    logger.info("Created invoice %s for owner %s", invoice.invoice_number, owner_id)
    return invoice


def _pick(value, current):
    return current if value is None else value


def update_invoice(db: Session, invoice_id: int, owner_id: int, payload: InvoiceUpdate) -> Optional[Invoice]:
    data = payload.model_dump(exclude_unset=True)
    if "contact_id" in data:
        _ensure_owned_contact(db, data["contact_id"], owner_id)

    def _update() -> Optional[Invoice]:
        invoice = get_owned_invoice(db, invoice_id, owner_id)
        if invoice is None:
            return None
        new_status = data.get("status")
        for field, value in data.items():
            if field in TOTAL_FIELDS or field == "status":
                continue
            if value is None and field in NOT_NULL_FIELDS:
                continue
            setattr(invoice, field, value)

        if any(data.get(field) is not None for field in TOTAL_FIELDS):
            _apply_totals(
                invoice,
                payload.items if payload.items is not None else invoice.items,
                _pick(payload.tax_rate, invoice.tax_rate),
                _pick(payload.discount_amount, invoice.discount_amount),
                _pick(payload.discount_type, invoice.discount_type),
            )
            if quantize_money(invoice.total_amount) < quantize_money(invoice.paid_amount):
                db.rollback()
                raise InvoiceUpdateRejected("Invoice total cannot be lower than the amount already paid")
            if new_status is None and InvoiceStatus(invoice.status) in AUTO_STATUSES | {InvoiceStatus.PAID}:
                # A paid invoice whose total grew is owed money again.
                invoice.status = derive_status(InvoiceStatus.PENDING.value, invoice.paid_amount, invoice.total_amount)

        if new_status is not None:
            override_status(invoice, new_status)
        return invoice

    invoice = run_with_retry(db, _update)
    if invoice is not None:
        db.refresh(invoice)
    return invoice


def delete_invoice(db: Session, invoice_id: int, owner_id: int) -> bool:
    invoice = get_owned_invoice(db, invoice_id, owner_id)
    if invoice is None:
        return False
    db.delete(invoice)
    db.commit()
    return True


def record_payment(
    db: Session,
    invoice_id: int,
    owner_id: int,
    amount,
    method: str,
    note: Optional[str] = None,
) -> Optional[PaymentReceipt]:
    """Persist a payment with a compare-and-swap on the invoice version.

    Returns None when the invoice does not exist for this owner. Rejected
    amounts raise ``PaymentRejected`` and leave the row untouched.
    """

    def _pay() -> Optional[PaymentReceipt]:
        invoice = get_owned_invoice(db, invoice_id, owner_id)
        if invoice is None:
            return None
        return apply_payment(invoice, amount, method, note)

    receipt = run_with_retry(db, _pay)
    if receipt is not None:
        db.refresh(receipt.invoice)
        logger.info("Recorded payment %s on invoice %s", receipt.payment["id"], invoice_id)
    return receipt


def set_invoice_status(db: Session, invoice_id: int, owner_id: int, status: str) -> Optional[Invoice]:
    def _set() -> Optional[Invoice]:
        invoice = get_owned_invoice(db, invoice_id, owner_id)
        if invoice is None:
            return None
        return override_status(invoice, status)

    invoice = run_with_retry(db, _set)
    if invoice is not None:
        db.refresh(invoice)
    return invoice


def list_payment_history(
    db: Session,
    owner_id: int,
    invoice_id: Optional[int] = None,
    method: Optional[str] = None,
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None,
) -> List[dict]:
    """Flatten the embedded payment lists of the owner's invoices, newest first."""
    query = db.query(Invoice).filter(Invoice.owner_id == owner_id)
    if invoice_id is not None:
        query = query.filter(Invoice.id == invoice_id)

    payments = []
    for invoice in query.all():
        for record in invoice.payment_history or []:
            amount = Decimal(str(record.get("amount", "0")))
            if method and record.get("method") != method:
                continue
            if min_amount is not None and amount < min_amount:
                continue
            if max_amount is not None and amount > max_amount:
                continue
            payments.append(
                {
                    **record,
                    "invoice_id": invoice.id,
                    "invoice_number": invoice.invoice_number,
                    "client_name": invoice.client_name,
                }
            )
    payments.sort(key=lambda p: (p.get("date", ""), p.get("id", "")), reverse=True)
    return payments


def get_invoice_summary(db: Session, owner_id: int) -> dict:
    """Status counts and money totals for the owner's journal."""
    counts = {status.value: 0 for status in InvoiceStatus}
    total_invoiced = Decimal("0.00")
    total_paid = Decimal("0.00")
    total_outstanding = Decimal("0.00")

    for invoice in db.query(Invoice).filter(Invoice.owner_id == owner_id).all():
        counts[invoice.status] = counts.get(invoice.status, 0) + 1
        if invoice.status == InvoiceStatus.CANCELLED.value:
            continue
        total = quantize_money(invoice.total_amount)
        paid = quantize_money(invoice.paid_amount)
        total_invoiced += total
        total_paid += paid
        if invoice.status != InvoiceStatus.REFUNDED.value:
            total_outstanding += total - paid

    return {
        "counts": counts,
        "total_invoiced": total_invoiced,
        "total_paid": total_paid,
        "total_outstanding": total_outstanding,
    }
