from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from backend.facturo.core.errors import PaymentRejected
from backend.facturo.services.ledger import (
    apply_payment,
    build_line_items,
    compute_totals,
    derive_status,
    fallback_invoice_number,
    generate_invoice_number,
    override_status,
)


def make_invoice(total="200.00", paid="0.00", status="pending"):
    return SimpleNamespace(
        total_amount=Decimal(total),
        paid_amount=Decimal(paid),
        status=status,
        payment_history=[],
    )


def test_totals_with_tax():
    totals = compute_totals([{"quantity": 2, "unit_price": "50"}], tax_rate=10)
    assert totals.subtotal == Decimal("100.00")
    assert totals.tax == Decimal("10.00")
    assert totals.total == Decimal("110.00")


def test_percentage_discount_is_applied_before_tax():
    totals = compute_totals(
        [{"quantity": 1, "unit_price": "200"}],
        tax_rate=20,
        discount_amount=10,
        discount_type="percentage",
    )
    assert totals.discount == Decimal("20.00")
    assert totals.tax == Decimal("36.00")
    assert totals.total == Decimal("216.00")


def test_fixed_discount():
    totals = compute_totals([{"quantity": 3, "unit_price": "10"}], discount_amount="5", discount_type="fixed")
    assert totals.discount == Decimal("5.00")
    assert totals.total == Decimal("25.00")


def test_totals_do_not_depend_on_item_order():
    items = [
        {"quantity": "3", "unit_price": "0.333"},
        {"quantity": "1", "unit_price": "19.99"},
        {"quantity": "7", "unit_price": "1.005"},
    ]
    forward = compute_totals(items, tax_rate="7.5")
    backward = compute_totals(list(reversed(items)), tax_rate="7.5")
    assert forward == backward


def test_build_line_items_assigns_ids_and_line_totals():
    items = build_line_items([{"description": "Work", "quantity": 2, "unit_price": "12.50"}, {"id": "X", "quantity": 1, "unit_price": 1}])
    assert items[0]["id"] == "ITEM-1"
    assert items[0]["total_price"] == "25.00"
    assert items[1]["id"] == "X"


def test_partial_then_full_payment():
    invoice = make_invoice(total="200.00")

    receipt = apply_payment(invoice, "50", "cash", today=date(2030, 1, 1))
    assert invoice.status == "partial"
    assert receipt.paid_until_now == Decimal("50.00")
    assert receipt.remaining == Decimal("150.00")
    assert receipt.payment["date"] == "2030-01-01"
    assert receipt.payment["id"].startswith("PAY-")

    receipt = apply_payment(invoice, "150", "bank transfer")
    assert invoice.status == "paid"
    assert receipt.remaining == Decimal("0.00")
    assert len(invoice.payment_history) == 2


@pytest.mark.parametrize("amount", ["0", "-5"])
def test_non_positive_payment_is_rejected_without_mutation(amount):
    invoice = make_invoice()
    with pytest.raises(PaymentRejected):
        apply_payment(invoice, amount, "cash")
    assert invoice.paid_amount == Decimal("0.00")
    assert invoice.payment_history == []
    assert invoice.status == "pending"


def test_overpayment_is_rejected_without_mutation():
    invoice = make_invoice(total="200.00", paid="150.00", status="partial")
    with pytest.raises(PaymentRejected):
        apply_payment(invoice, "50.01", "cash")
    assert invoice.paid_amount == Decimal("150.00")
    assert invoice.status == "partial"


@pytest.mark.parametrize("status", ["refunded", "cancelled", "paid"])
def test_manual_statuses_are_sticky(status):
    assert derive_status(status, Decimal("10"), Decimal("200")) == status


def test_payment_on_cancelled_invoice_keeps_status():
    invoice = make_invoice(status="cancelled")
    apply_payment(invoice, "20", "cash")
    assert invoice.status == "cancelled"
    assert invoice.paid_amount == Decimal("20.00")


def test_derive_status_auto_path():
    assert derive_status("pending", 0, 100) == "pending"
    assert derive_status("pending", 40, 100) == "partial"
    assert derive_status("partial", 100, 100) == "paid"


def test_override_status_leaves_amounts_alone():
    invoice = make_invoice(total="100.00", paid="40.00", status="partial")
    override_status(invoice, "refunded")
    assert invoice.status == "refunded"
    assert invoice.paid_amount == Decimal("40.00")


def test_override_status_rejects_unknown_value():
    with pytest.raises(ValueError):
        override_status(make_invoice(), "archived")


def test_first_invoice_number_of_year():
    assert generate_invoice_number([], today=date(2030, 5, 1)) == "INV-2030-001"


def test_invoice_number_follows_highest_suffix():
    prior = ["INV-2030-001", "INV-2030-007", "INV-2029-003", "OTHER-2030-050", None]
    assert generate_invoice_number(prior, today=date(2030, 5, 1)) == "INV-2030-008"


def test_invoice_number_custom_prefix():
    assert generate_invoice_number(["FAC-2030-009"], prefix="FAC", today=date(2030, 1, 1)) == "FAC-2030-010"


def test_fallback_invoice_number_shape():
    number = fallback_invoice_number("INV", today=date(2030, 1, 1))
    prefix, year, suffix = number.split("-")
    assert (prefix, year) == ("INV", "2030")
    assert len(suffix) == 6 and suffix.isdigit()
