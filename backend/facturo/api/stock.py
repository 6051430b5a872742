"""Stock (inventory) endpoints, scoped to the signed-in owner."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from backend.facturo.crud.crud_stock_item import stock_item_crud
from backend.facturo.db.session import get_db
from backend.facturo.dependencies.auth import get_current_user
from backend.facturo.models.stock_item import StockItem
from backend.facturo.models.user import User
from backend.facturo.schemas.common import DataResponse, MessageResponse
from backend.facturo.schemas.stock import (
    RestockRequest,
    StockItemCreate,
    StockItemRead,
    StockItemUpdate,
    StockSummary,
)

router = APIRouter(prefix="/stock", tags=["stock"])


def _get_owned_item(db: Session, item_id: int, owner_id: int) -> StockItem:
    item = stock_item_crud.get(db, item_id=item_id, owner_id=owner_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Stock item not found")
    return item


@router.get("/", response_model=DataResponse[List[StockItemRead]])
def list_stock(
    search: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    items = stock_item_crud.get_multi(db, owner_id=current_user.id, search=search)
    return DataResponse(data=[StockItemRead.model_validate(item) for item in items])


@router.get("/summary", response_model=DataResponse[StockSummary])
def stock_summary(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return DataResponse(data=stock_item_crud.summary(db, owner_id=current_user.id))


@router.post("/", response_model=DataResponse[StockItemRead], status_code=status.HTTP_201_CREATED)
def create_stock_item(
    item_in: StockItemCreate,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item, created = stock_item_crud.create_or_update(db, obj_in=item_in, owner_id=current_user.id)
    if not created:
        response.status_code = status.HTTP_200_OK
    return DataResponse(data=StockItemRead.model_validate(item))


@router.put("/{item_id}", response_model=DataResponse[StockItemRead])
def update_stock_item(
    item_id: int,
    item_in: StockItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item = _get_owned_item(db, item_id, current_user.id)
    if item_in.name and item_in.name != item.name:
        clash = stock_item_crud.get_by_name(db, name=item_in.name, owner_id=current_user.id)
        if clash:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A stock item with this name already exists")
    item = stock_item_crud.update(db, db_obj=item, obj_in=item_in)
    return DataResponse(data=StockItemRead.model_validate(item))


@router.post("/{item_id}/restock", response_model=DataResponse[StockItemRead])
def restock_item(
    item_id: int,
    restock: RestockRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item = _get_owned_item(db, item_id, current_user.id)
    item = stock_item_crud.restock(db, db_obj=item, quantity=restock.quantity)
    return DataResponse(data=StockItemRead.model_validate(item))


@router.delete("/{item_id}", response_model=MessageResponse)
def delete_stock_item(item_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    item = _get_owned_item(db, item_id, current_user.id)
    stock_item_crud.delete(db, db_obj=item)
    return MessageResponse(message="Stock item deleted")
