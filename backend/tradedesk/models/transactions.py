"""
Purchase and sale documents.

Line items are stored inline as a JSON list:
    [{"product_id": 1, "quantity": 20, "unit_price_cents": 450, "tax_rate_bps": 1800}, ...]

quantity is always positive; the document kind decides the sign applied to
stock (purchase: +quantity, sale: -quantity). Stock effects are applied by
transaction_service in the same DB transaction as the row write.
"""

from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


PURCHASE_STATUSES = {"pending", "shipping", "packaging", "received"}
PAYMENT_STATUSES = {"pending", "paid", "partially paid"}


class Purchase(db.Model):
    __tablename__ = "purchases"
    __table_args__ = (
        db.Index("ix_purchases_supplier_created", "supplier_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_number = db.Column(db.String(64), nullable=False, unique=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False)

    order_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    expected_delivery = db.Column(db.DateTime, nullable=True)

    total_amount_cents = db.Column(db.Integer, nullable=False)
    total_tax_cents = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    items = db.Column(db.JSON, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    supplier = db.relationship("Supplier", backref=db.backref("purchases", lazy=True))

    def __repr__(self) -> str:
        return f"<Purchase id={self.id} po={self.purchase_order_number!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_order_number": self.purchase_order_number,
            "supplier_id": self.supplier_id,
            "order_date": to_utc_z(self.order_date),
            "expected_delivery": to_utc_z(self.expected_delivery),
            "total_amount_cents": self.total_amount_cents,
            "total_tax_cents": self.total_tax_cents,
            "status": self.status,
            "items": list(self.items or []),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Sale(db.Model):
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_salesperson_created", "salesperson_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(64), nullable=False, unique=True)

    salesperson_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    retailer_id = db.Column(db.Integer, db.ForeignKey("retailers.id"), nullable=False)
    billed_entity_id = db.Column(db.Integer, db.ForeignKey("billed_entities.id"), nullable=False)

    sale_date = db.Column(db.DateTime, nullable=False, default=utcnow)

    total_amount_cents = db.Column(db.Integer, nullable=False)
    total_tax_cents = db.Column(db.Integer, nullable=False)

    items = db.Column(db.JSON, nullable=False)
    payment_status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    payment_terms = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    signature = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    salesperson = db.relationship("User", backref=db.backref("sales", lazy=True))
    retailer = db.relationship("Retailer", backref=db.backref("sales", lazy=True))
    billed_entity = db.relationship("BilledEntity", backref=db.backref("sales", lazy=True))

    def __repr__(self) -> str:
        return f"<Sale id={self.id} invoice={self.invoice_number!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "salesperson_id": self.salesperson_id,
            "retailer_id": self.retailer_id,
            "billed_entity_id": self.billed_entity_id,
            "sale_date": to_utc_z(self.sale_date),
            "total_amount_cents": self.total_amount_cents,
            "total_tax_cents": self.total_tax_cents,
            "items": list(self.items or []),
            "payment_status": self.payment_status,
            "payment_terms": self.payment_terms,
            "notes": self.notes,
            "signature": self.signature,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
