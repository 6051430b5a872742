"""Invoice ledger rules: totals, payments, status transitions and numbering.

Everything here works on plain values or on an already loaded ``Invoice`` and
never touches the database session; persistence lives in ``services.invoices``.
"""

import re
import time
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, List, Optional

from backend.facturo.core.errors import PaymentRejected
from backend.facturo.core.time import utc_today
from backend.facturo.models.invoice import Invoice, InvoiceStatus

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

# Statuses the payment path is allowed to recompute; anything else was set by
# hand (or is already settled) and stays as it is.
AUTO_STATUSES = frozenset({InvoiceStatus.PENDING, InvoiceStatus.PARTIAL})


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def quantize_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _item_value(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal


def compute_totals(
    items: Iterable[Any],
    tax_rate: Any = 0,
    discount_amount: Any = 0,
    discount_type: str = "percentage",
) -> InvoiceTotals:
    """Compute invoice totals from line items.

    Items may be dicts or objects exposing ``quantity`` and ``unit_price``.
    Intermediate sums are exact and only the final figures are rounded to
    cents, so the result does not depend on item order. Signs are not checked.
    """
    subtotal = sum(
        (to_decimal(_item_value(item, "quantity")) * to_decimal(_item_value(item, "unit_price")) for item in items),
        Decimal("0"),
    )
    if discount_type == "percentage":
        discount = subtotal * to_decimal(discount_amount) / HUNDRED
    else:
        discount = to_decimal(discount_amount)
    taxable = subtotal - discount
    tax = taxable * to_decimal(tax_rate) / HUNDRED

    subtotal_q = quantize_money(subtotal)
    discount_q = quantize_money(discount)
    tax_q = quantize_money(tax)
    return InvoiceTotals(
        subtotal=subtotal_q,
        discount=discount_q,
        tax=tax_q,
        total=subtotal_q - discount_q + tax_q,
    )


def build_line_items(items: Iterable[Any]) -> List[dict]:
    """Normalize incoming items into the JSON shape stored on the invoice."""
    line_items = []
    for index, item in enumerate(items, start=1):
        quantity = to_decimal(_item_value(item, "quantity"))
        unit_price = to_decimal(_item_value(item, "unit_price"))
        line_items.append(
            {
                "id": _item_value(item, "id") or f"ITEM-{index}",
                "description": _item_value(item, "description") or "",
                "quantity": str(quantity),
                "unit_price": str(unit_price),
                "total_price": str(quantize_money(quantity * unit_price)),
            }
        )
    return line_items


def derive_status(current: str, paid: Any, total: Any) -> str:
    """Status after a payment; only pending/partial invoices are recomputed."""
    status = InvoiceStatus(current)
    if status not in AUTO_STATUSES:
        return status.value
    paid_amount = to_decimal(paid)
    if paid_amount >= to_decimal(total):
        return InvoiceStatus.PAID.value
    if paid_amount > 0:
        return InvoiceStatus.PARTIAL.value
    return InvoiceStatus.PENDING.value


def override_status(invoice: Invoice, new_status: str) -> Invoice:
    """Manual status change (refund, cancellation, reset); amounts are untouched."""
    invoice.status = InvoiceStatus(new_status).value
    return invoice


def new_payment_id() -> str:
    return f"PAY-{int(time.time() * 1000)}"


@dataclass
class PaymentReceipt:
    payment: dict
    invoice: Invoice
    paid_until_now: Decimal
    remaining: Decimal


def apply_payment(
    invoice: Invoice,
    amount: Any,
    method: str,
    note: Optional[str] = None,
    today: Optional[date] = None,
) -> PaymentReceipt:
    """Record a payment on ``invoice`` in memory.

    Raises ``PaymentRejected`` before touching the invoice when the amount is
    not positive or larger than the remaining balance.
    """
    payment_amount = quantize_money(amount)
    total = quantize_money(invoice.total_amount)
    paid = quantize_money(invoice.paid_amount)
    remaining = total - paid

    if payment_amount <= ZERO:
        raise PaymentRejected("Payment amount must be greater than zero")
    if payment_amount > remaining:
        raise PaymentRejected("Payment amount cannot exceed remaining balance")

    record = {
        "id": new_payment_id(),
        "amount": str(payment_amount),
        "date": (today or utc_today()).isoformat(),
        "method": method,
        "note": note or "",
    }
    new_paid = paid + payment_amount
    # Reassign so the JSON column is flagged dirty.
    invoice.payment_history = [*(invoice.payment_history or []), record]
    invoice.paid_amount = new_paid
    invoice.status = derive_status(invoice.status, new_paid, total)
    return PaymentReceipt(payment=record, invoice=invoice, paid_until_now=new_paid, remaining=total - new_paid)


def _number_pattern(prefix: str) -> re.Pattern:
    return re.compile(rf"^{re.escape(prefix)}-\d{{4}}-(\d+)$")


def generate_invoice_number(prior_numbers: Iterable[Optional[str]], prefix: str = "INV", today: Optional[date] = None) -> str:
    """Next ``PREFIX-YEAR-NNN`` number after the highest matching suffix."""
    pattern = _number_pattern(prefix)
    suffixes = []
    for number in prior_numbers:
        match = pattern.match(number or "")
        if match:
            suffixes.append(int(match.group(1)))
    next_number = max(suffixes, default=0) + 1
    year = (today or utc_today()).year
    return f"{prefix}-{year}-{next_number:03d}"


def fallback_invoice_number(prefix: str = "INV", today: Optional[date] = None) -> str:
    year = (today or utc_today()).year
    return f"{prefix}-{year}-{str(int(time.time() * 1000))[-6:]}"
