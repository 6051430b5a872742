"""Contact (client record) endpoints, scoped to the signed-in owner."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.facturo.crud.crud_contact import contact_crud
from backend.facturo.db.session import get_db
from backend.facturo.dependencies.auth import get_current_user
from backend.facturo.models.contact import Contact
from backend.facturo.models.user import User
from backend.facturo.schemas.common import DataResponse, MessageResponse
from backend.facturo.schemas.contact import ContactCreate, ContactRead, ContactUpdate

router = APIRouter(prefix="/contacts", tags=["contacts"])


def _get_owned_contact(db: Session, contact_id: int, owner_id: int) -> Contact:
    contact = contact_crud.get(db, contact_id=contact_id, owner_id=owner_id)
    if not contact:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return contact


@router.get("/", response_model=DataResponse[List[ContactRead]])
def list_contacts(
    search: str | None = None,
    status: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    contacts = contact_crud.get_multi(db, owner_id=current_user.id, search=search, status=status)
    return DataResponse(data=[ContactRead.model_validate(contact) for contact in contacts])


@router.post("/", response_model=DataResponse[ContactRead], status_code=status.HTTP_201_CREATED)
def create_contact(
    contact_in: ContactCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    contact = contact_crud.create(db, obj_in=contact_in, owner_id=current_user.id)
    return DataResponse(data=ContactRead.model_validate(contact))


@router.get("/{contact_id}", response_model=DataResponse[ContactRead])
def get_contact(contact_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return DataResponse(data=ContactRead.model_validate(_get_owned_contact(db, contact_id, current_user.id)))


@router.put("/{contact_id}", response_model=DataResponse[ContactRead])
def update_contact(
    contact_id: int,
    contact_in: ContactUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    contact = _get_owned_contact(db, contact_id, current_user.id)
    contact = contact_crud.update(db, db_obj=contact, obj_in=contact_in)
    return DataResponse(data=ContactRead.model_validate(contact))


@router.delete("/{contact_id}", response_model=MessageResponse)
def delete_contact(contact_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    contact = _get_owned_contact(db, contact_id, current_user.id)
    contact_crud.delete(db, db_obj=contact)
    return MessageResponse(message="Contact deleted")
