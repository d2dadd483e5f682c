from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class ApprovalRequest(db.Model):
    """
    Request to admit a partner entity into approved status.

    STATE MACHINE:
        pending -> approved   (target entity is_approved := True)
        pending -> rejected   (target untouched)

    approved and rejected are terminal. (entity_type, entity_id) points at a
    row in one of the partner tables; the tag is validated against
    approval_service.EntityType before it is stored.
    """
    __tablename__ = "approval_requests"
    __table_args__ = (
        db.Index("ix_approval_requests_entity", "entity_type", "entity_id"),
        db.Index("ix_approval_requests_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    entity_type = db.Column(db.String(32), nullable=False)
    entity_id = db.Column(db.Integer, nullable=False)

    requested_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending")
    notes = db.Column(db.Text, nullable=True)

    decided_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    decided_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return (
            f"<ApprovalRequest id={self.id} {self.entity_type}:{self.entity_id} "
            f"status={self.status}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "requested_by": self.requested_by,
            "status": self.status,
            "notes": self.notes,
            "decided_by": self.decided_by,
            "decided_at": to_utc_z(self.decided_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
