"""CRUD operations for stock items."""

from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.facturo.models.stock_item import StockItem
from backend.facturo.schemas.stock import StockItemCreate, StockItemUpdate


class CRUDStockItem:
    def get(self, db: Session, *, item_id: int, owner_id: int) -> Optional[StockItem]:
        return db.query(StockItem).filter(StockItem.id == item_id, StockItem.owner_id == owner_id).first()

    def get_by_name(self, db: Session, *, name: str, owner_id: int) -> Optional[StockItem]:
        return db.query(StockItem).filter(StockItem.owner_id == owner_id, StockItem.name == name).first()

    def get_multi(self, db: Session, *, owner_id: int, search: Optional[str] = None) -> List[StockItem]:
        query = db.query(StockItem).filter(StockItem.owner_id == owner_id)
        if search:
            query = query.filter(StockItem.name.ilike(f"%{search}%"))
        return query.order_by(StockItem.name.asc()).all()

    def create_or_update(self, db: Session, *, obj_in: StockItemCreate, owner_id: int) -> Tuple[StockItem, bool]:
        """Insert a new item, or overwrite the owner's item with the same name.

        Returns ``(item, created)``.
        """
        existing = self.get_by_name(db, name=obj_in.name, owner_id=owner_id)
        if existing is not None:
            return self._overwrite(db, existing, obj_in), False

        obj = StockItem(owner_id=owner_id, **obj_in.model_dump())
        db.add(obj)
        try:
            db.commit()
        except IntegrityError:
            # Same name inserted concurrently.
            db.rollback()
            existing = self.get_by_name(db, name=obj_in.name, owner_id=owner_id)
            return self._overwrite(db, existing, obj_in), False
        db.refresh(obj)
        return obj, True

    def _overwrite(self, db: Session, db_obj: StockItem, obj_in: StockItemCreate) -> StockItem:
        for field, value in obj_in.model_dump().items():
            setattr(db_obj, field, value)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def update(self, db: Session, *, db_obj: StockItem, obj_in: StockItemUpdate) -> StockItem:
        update_data = obj_in.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is None and field != "supplier":
                continue
            setattr(db_obj, field, value)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def restock(self, db: Session, *, db_obj: StockItem, quantity: int) -> StockItem:
        db.query(StockItem).filter(StockItem.id == db_obj.id).update(
            {StockItem.quantity: StockItem.quantity + quantity}, synchronize_session=False
        )
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, *, db_obj: StockItem) -> StockItem:
        db.delete(db_obj)
        db.commit()
        return db_obj

    def summary(self, db: Session, *, owner_id: int) -> dict:
        items = self.get_multi(db, owner_id=owner_id)
        total_value = sum((Decimal(item.price) * item.quantity for item in items), Decimal("0.00"))
        return {
            "total_items": len(items),
            "low_stock": sum(1 for item in items if item.stock_status == "low_stock"),
            "out_of_stock": sum(1 for item in items if item.stock_status == "out_of_stock"),
            "total_value": total_value.quantize(Decimal("0.01")),
        }


stock_item_crud = CRUDStockItem()
