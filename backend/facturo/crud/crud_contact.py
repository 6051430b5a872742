"""CRUD operations for contacts."""

import re
from typing import List, Optional

from sqlalchemy.orm import Session

from backend.facturo.models.contact import Contact
from backend.facturo.schemas.contact import ContactCreate, ContactUpdate

CONTACT_CODE_PREFIX = "CMT"
_CODE_PATTERN = re.compile(rf"^{CONTACT_CODE_PREFIX}-(\d+)$")


def next_contact_code(existing_codes) -> str:
    highest = 0
    for code in existing_codes:
        match = _CODE_PATTERN.match(code or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{CONTACT_CODE_PREFIX}-{highest + 1:03d}"


class CRUDContact:
    def create(self, db: Session, *, obj_in: ContactCreate, owner_id: int) -> Contact:
        codes = db.query(Contact.contact_code).filter(Contact.owner_id == owner_id).all()
        obj = Contact(
            owner_id=owner_id,
            contact_code=next_contact_code(row[0] for row in codes),
            status="active",
            **obj_in.model_dump(),
        )
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def get(self, db: Session, *, contact_id: int, owner_id: int) -> Optional[Contact]:
        return db.query(Contact).filter(Contact.id == contact_id, Contact.owner_id == owner_id).first()

    def get_multi(
        self,
        db: Session,
        *,
        owner_id: int,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Contact]:
        query = db.query(Contact).filter(Contact.owner_id == owner_id)
        if status:
            query = query.filter(Contact.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                Contact.name.ilike(pattern) | Contact.email.ilike(pattern) | Contact.company.ilike(pattern)
            )
        return query.order_by(Contact.created_at.desc(), Contact.id.desc()).all()

    def update(self, db: Session, *, db_obj: Contact, obj_in: ContactUpdate) -> Contact:
        update_data = obj_in.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is None:
                continue
            setattr(db_obj, field, value)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, *, db_obj: Contact) -> Contact:
        db.delete(db_obj)
        db.commit()
        return db_obj


contact_crud = CRUDContact()
