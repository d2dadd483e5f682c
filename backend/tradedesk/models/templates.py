from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class InvoiceTemplate(db.Model):
    """
    Invoice layout (HTML or JSON body).

    At most one row may have is_default=True. template_service clears the
    previous default in the same transaction; the partial unique index makes
    the database reject a second default if two writers race.
    """
    __tablename__ = "invoice_templates"
    __table_args__ = (
        db.Index(
            "uq_invoice_templates_single_default",
            "is_default",
            unique=True,
            sqlite_where=db.text("is_default = 1"),
            postgresql_where=db.text("is_default"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    template = db.Column(db.Text, nullable=False)
    is_default = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "template": self.template,
            "is_default": self.is_default,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
