from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class PartnerMixin:
    """
    Columns shared by every business counterparty that needs admin approval.

    APPROVAL: is_approved starts False and is flipped only by
    approval_service.decide(). Partner update paths strip it from patches.

    SOFT DELETE: is_active=False hides the row from listings but keeps it
    resolvable by id so historical purchases/sales still point at something.
    """
    contact_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=False)
    address = db.Column(db.Text, nullable=False)
    gst_number = db.Column(db.String(32), nullable=True)

    is_approved = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Column used in human-readable notes ("New vendor Acme added by ...")
    display_field = "name"

    @property
    def display_name(self) -> str:
        return getattr(self, self.display_field)

    def _partner_dict(self) -> dict:
        return {
            "id": self.id,
            "contact_name": self.contact_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "gst_number": self.gst_number,
            "is_approved": self.is_approved,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Vendor(PartnerMixin, db.Model):
    """Manufacturer whose products we stock."""
    __tablename__ = "vendors"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    def to_dict(self) -> dict:
        return {"name": self.name, **self._partner_dict()}


class Supplier(PartnerMixin, db.Model):
    """Counterparty on purchases."""
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    company_name = db.Column(db.String(255), nullable=False)
    payment_terms = db.Column(db.String(255), nullable=False)
    pricing_info = db.Column(db.Text, nullable=False)

    display_field = "company_name"

    def to_dict(self) -> dict:
        return {
            "company_name": self.company_name,
            "payment_terms": self.payment_terms,
            "pricing_info": self.pricing_info,
            **self._partner_dict(),
        }


class Distributor(PartnerMixin, db.Model):
    __tablename__ = "distributors"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    region = db.Column(db.String(128), nullable=False)

    def to_dict(self) -> dict:
        return {"name": self.name, "region": self.region, **self._partner_dict()}


class Retailer(PartnerMixin, db.Model):
    """Store we sell into; optionally served through a distributor."""
    __tablename__ = "retailers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    store_name = db.Column(db.String(255), nullable=False)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=True, index=True)

    distributor = db.relationship("Distributor", backref=db.backref("retailers", lazy=True))

    display_field = "store_name"

    def to_dict(self) -> dict:
        return {
            "store_name": self.store_name,
            "distributor_id": self.distributor_id,
            **self._partner_dict(),
        }


class BilledEntity(PartnerMixin, db.Model):
    """Party an invoice is billed to (company, individual, government, ...)."""
    __tablename__ = "billed_entities"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(64), nullable=False)

    def to_dict(self) -> dict:
        return {"name": self.name, "type": self.type, **self._partner_dict()}
