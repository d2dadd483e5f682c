# Overview: Invoice template CRUD; keeps at most one template marked as the default.

"""
Invoice Template Service

CRITICAL: At most one InvoiceTemplate has is_default=True.

When a create or update carries is_default=True, every other default is
cleared and flushed first, then the incoming row is written, all in one
commit. The partial unique index on is_default makes a concurrent second
default fail with IntegrityError; that attempt is rolled back and retried,
and on retry it clears the winner instead.

With is_default False or absent no other row is touched.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import InvoiceTemplate
from ..time_utils import utcnow
from . import repository
from .concurrency import lock_for_update, run_with_retry
from .notification_service import notify


def _clear_defaults(exclude_id: int | None = None) -> list[InvoiceTemplate]:
    query = db.session.query(InvoiceTemplate).filter(InvoiceTemplate.is_default.is_(True))
    if exclude_id is not None:
        query = query.filter(InvoiceTemplate.id != exclude_id)
    cleared = lock_for_update(query).all()
    now = utcnow()
    for template in cleared:
        template.is_default = False
        template.updated_at = now
    # Must reach the database before the new default is flushed.
    db.session.flush()
    return cleared


def _notify_all(action: str, template: InvoiceTemplate, cleared: list[InvoiceTemplate]) -> None:
    for previous in cleared:
        notify("invoiceTemplate", "updated", previous.to_dict())
    notify("invoiceTemplate", action, template.to_dict())


def create_template(fields: dict) -> InvoiceTemplate:
    values = dict(fields)

    def _op():
        cleared = _clear_defaults() if values.get("is_default") else []
        template = repository.invoice_templates.create(values)
        db.session.commit()
        return template, cleared

    template, cleared = run_with_retry(_op, retry_on=(IntegrityError,))
    _notify_all("created", template, cleared)
    return template


def update_template(template_id: int, fields: dict) -> InvoiceTemplate | None:
    values = dict(fields)

    def _op():
        template = repository.invoice_templates.get(template_id, for_update=True)
        if template is None:
            return None, []
        cleared = _clear_defaults(exclude_id=template_id) if values.get("is_default") else []
        repository.invoice_templates.update(template_id, values, obj=template)
        db.session.commit()
        return template, cleared

    template, cleared = run_with_retry(_op, retry_on=(IntegrityError,))
    if template is not None:
        _notify_all("updated", template, cleared)
    return template


def get_template(template_id: int) -> InvoiceTemplate | None:
    return repository.invoice_templates.get(template_id)


def list_templates() -> list[InvoiceTemplate]:
    return repository.invoice_templates.get_all()


def get_default_template() -> InvoiceTemplate | None:
    return (
        db.session.query(InvoiceTemplate)
        .filter(InvoiceTemplate.is_default.is_(True))
        .order_by(InvoiceTemplate.id.asc())
        .first()
    )
