"""Invoice model; line items and payment history are embedded JSON lists."""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from backend.facturo.db.base_class import Base


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(64), nullable=False, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True, index=True)

    client_name = Column(String(255), nullable=False)
    client_company = Column(String(255), nullable=True)
    client_email = Column(String(255), nullable=True)
    client_phone = Column(String(50), nullable=True)

    status = Column(String(20), default=InvoiceStatus.PENDING.value, nullable=False)
    subtotal_amount = Column(Numeric(12, 2), default=0, nullable=False)
    tax_rate = Column(Numeric(5, 2), default=0, nullable=False)
    tax_amount = Column(Numeric(12, 2), default=0, nullable=False)
    discount_amount = Column(Numeric(12, 2), default=0, nullable=False)
    discount_type = Column(String(20), default="percentage", nullable=False)
    discount_total = Column(Numeric(12, 2), default=0, nullable=False)
    total_amount = Column(Numeric(12, 2), default=0, nullable=False)
    paid_amount = Column(Numeric(12, 2), default=0, nullable=False)
    currency = Column(String(8), default="EUR", nullable=False)

    created_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    items = Column(JSON, nullable=False, default=list)
    payment_history = Column(JSON, nullable=False, default=list)
    vat_number = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    owner = relationship("User", back_populates="invoices")
    contact = relationship("Contact", back_populates="invoices")

    # Every UPDATE is guarded by "WHERE version = <read version>" and bumps it.
    __mapper_args__ = {"version_id_col": version}

    @property
    def remaining_amount(self):
        return self.total_amount - self.paid_amount
