from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.facturo.core.time import utc_now
from backend.facturo.db.base_class import Base


class StockItem(Base):
    __tablename__ = "stock_items"
    __table_args__ = (UniqueConstraint("owner_id", "name", name="uq_stock_items_owner_name"),)

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    my_product = Column(Boolean, nullable=False, default=True)
    quantity = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(8), nullable=False, default="EUR")
    supplier = Column(String(255), nullable=True)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    owner = relationship("User", back_populates="stock_items")

    @property
    def stock_status(self) -> str:
        if self.quantity <= 0:
            return "out_of_stock"
        if self.quantity <= self.min_stock:
            return "low_stock"
        return "in_stock"
