# Overview: Typed CRUD accessors over each entity table; the only place rows are read and written.

"""
Entity Repository

One EntityRepository instance per table. Repositories own default-field
population and nothing else:

- create() stamps created_at/updated_at and forces lifecycle defaults
  (is_active=True, is_approved=False where the model has them)
- update() merges a patch and stamps updated_at; lifecycle flags are never
  merged (is_approved moves only via mark_approved(), is_active only via
  delete())
- delete() is soft (is_active=False) for soft-deletable kinds, hard otherwise
- missing ids give None/False, never an exception

Repositories flush but never commit. The calling service owns the
transaction so several repository calls can land in one atomic unit.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from ..extensions import db
from ..models import (
    ApprovalRequest,
    BilledEntity,
    Distributor,
    InvoiceTemplate,
    Product,
    Purchase,
    Retailer,
    Sale,
    Supplier,
    User,
    Vendor,
)
from ..time_utils import utcnow
from .concurrency import lock_for_update


ModelT = TypeVar("ModelT")

LIFECYCLE_FIELDS = {"is_active", "is_approved"}
PROTECTED_FIELDS = {"id", "created_at", "updated_at"} | LIFECYCLE_FIELDS


class EntityRepository(Generic[ModelT]):
    def __init__(self, model: type[ModelT], *, soft_delete: bool = False, newest_first: bool = False):
        self.model = model
        self.soft_delete = soft_delete
        self.newest_first = newest_first
        columns = model.__mapper__.columns
        self.has_active_flag = "is_active" in columns
        self.approvable = "is_approved" in columns

    def __repr__(self) -> str:
        return f"<EntityRepository {self.model.__tablename__}>"

    def _ordered(self, query):
        if self.newest_first:
            return query.order_by(self.model.created_at.desc(), self.model.id.desc())
        return query.order_by(self.model.id.asc())

    def get(self, entity_id: int, *, for_update: bool = False) -> ModelT | None:
        query = db.session.query(self.model).filter(self.model.id == entity_id)
        if for_update:
            query = lock_for_update(query)
        return query.first()

    def get_all(self) -> list[ModelT]:
        query = db.session.query(self.model)
        if self.has_active_flag:
            query = query.filter(self.model.is_active.is_(True))
        return self._ordered(query).all()

    def get_approved(self) -> list[ModelT]:
        if not self.approvable:
            raise TypeError(f"{self.model.__name__} has no approval flag")
        query = db.session.query(self.model).filter(
            self.model.is_active.is_(True),
            self.model.is_approved.is_(True),
        )
        return self._ordered(query).all()

    def filter_by(self, **criteria) -> list[ModelT]:
        return self._ordered(db.session.query(self.model).filter_by(**criteria)).all()

    def create(self, fields: dict) -> ModelT:
        values = {k: v for k, v in fields.items() if k not in PROTECTED_FIELDS}
        now = utcnow()
        obj = self.model(**values)
        obj.created_at = now
        obj.updated_at = now
        if self.has_active_flag:
            obj.is_active = True
        if self.approvable:
            obj.is_approved = False
        db.session.add(obj)
        db.session.flush()
        return obj

    def update(self, entity_id: int, fields: dict, *, obj: ModelT | None = None) -> ModelT | None:
        if obj is None:
            obj = self.get(entity_id)
        if obj is None:
            return None
        for key, value in fields.items():
            if key in PROTECTED_FIELDS:
                continue
            setattr(obj, key, value)
        obj.updated_at = utcnow()
        db.session.flush()
        return obj

    def mark_approved(self, entity_id: int) -> ModelT | None:
        """Set is_approved=True. Reserved for the approval workflow."""
        if not self.approvable:
            raise TypeError(f"{self.model.__name__} has no approval flag")
        obj = self.get(entity_id, for_update=True)
        if obj is None:
            return None
        obj.is_approved = True
        obj.updated_at = utcnow()
        db.session.flush()
        return obj

    def delete(self, entity_id: int) -> bool:
        obj = self.get(entity_id)
        if obj is None:
            return False
        if self.soft_delete:
            # Soft-delete only: preserve IDs and historical references.
            obj.is_active = False
            obj.updated_at = utcnow()
        else:
            db.session.delete(obj)
        db.session.flush()
        return True


users = EntityRepository(User)
products = EntityRepository(Product, soft_delete=True)
vendors = EntityRepository(Vendor)
suppliers = EntityRepository(Supplier, soft_delete=True)
distributors = EntityRepository(Distributor)
retailers = EntityRepository(Retailer)
billed_entities = EntityRepository(BilledEntity)
purchases = EntityRepository(Purchase, newest_first=True)
sales = EntityRepository(Sale, newest_first=True)
invoice_templates = EntityRepository(InvoiceTemplate)
approval_requests = EntityRepository(ApprovalRequest, newest_first=True)
