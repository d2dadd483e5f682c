# Overview: Purchase and sale documents; keeps product stock in step with their line items.

"""
Transaction Service

WHY: Purchases and sales are the only things allowed to move stock. Every
write here is one atomic unit: the document row and all of its stock
deltas commit together or not at all.

- create: insert row, record deltas (+qty purchase, -qty sale)
- update: merge fields; if items change, apply the net per-product
  difference between old and new items
- delete: reverse the stored items, then hard-delete the row

Totals: when total_amount_cents / total_tax_cents are omitted they are
derived from the items (tax rounded half-up per line).
"""

from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..models import Purchase, Sale
from ..validation import ConflictError, ValidationError
from . import repository, stock_service
from .concurrency import run_with_retry
from .notification_service import notify
from .stock_service import TransactionKind


@dataclass(frozen=True)
class _DocumentKind:
    kind: TransactionKind
    model: type
    repo: repository.EntityRepository
    number_field: str
    notify_tag: str
    # field name -> repository holding the referenced row
    references: tuple[tuple[str, repository.EntityRepository], ...]


PURCHASE = _DocumentKind(
    kind=TransactionKind.PURCHASE,
    model=Purchase,
    repo=repository.purchases,
    number_field="purchase_order_number",
    notify_tag="purchase",
    references=(("supplier_id", repository.suppliers),),
)

SALE = _DocumentKind(
    kind=TransactionKind.SALE,
    model=Sale,
    repo=repository.sales,
    number_field="invoice_number",
    notify_tag="sale",
    references=(
        ("salesperson_id", repository.users),
        ("retailer_id", repository.retailers),
        ("billed_entity_id", repository.billed_entities),
    ),
)


def compute_totals(items: list[dict]) -> tuple[int, int]:
    """Return (total_amount_cents, total_tax_cents) for normalized line items."""
    amount = 0
    tax = 0
    for item in items:
        line = item["quantity"] * item.get("unit_price_cents", 0)
        amount += line
        # nearest-cent rounding (half-up)
        tax += (line * item.get("tax_rate_bps", 0) + 5_000) // 10_000
    return amount, tax


def _fill_totals(fields: dict) -> dict:
    if "items" not in fields:
        return fields
    amount, tax = compute_totals(fields["items"])
    fields.setdefault("total_amount_cents", amount)
    fields.setdefault("total_tax_cents", tax)
    return fields


def _check_references(doc: _DocumentKind, fields: dict) -> None:
    for field, repo in doc.references:
        if field in fields and repo.get(fields[field]) is None:
            raise ValidationError(f"{field} {fields[field]} not found")


def _check_number_unique(doc: _DocumentKind, number: str, exclude_id: int | None = None) -> None:
    column = getattr(doc.model, doc.number_field)
    query = db.session.query(doc.model.id).filter(column == number)
    if exclude_id is not None:
        query = query.filter(doc.model.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"{doc.number_field} '{number}' already exists")


def _record(doc: _DocumentKind, items: list[dict]) -> None:
    if doc.kind is TransactionKind.PURCHASE:
        stock_service.record_purchase(items)
    else:
        stock_service.record_sale(items)


def _create(doc: _DocumentKind, patch: dict):
    fields = _fill_totals(dict(patch))

    def _op():
        _check_references(doc, fields)
        _check_number_unique(doc, fields[doc.number_field])
        row = doc.repo.create(fields)
        _record(doc, row.items)
        db.session.commit()
        return row

    row = run_with_retry(_op)
    notify(doc.notify_tag, "created", row.to_dict())
    return row


def _update(doc: _DocumentKind, doc_id: int, patch: dict):
    fields = dict(patch)

    def _op():
        row = doc.repo.get(doc_id, for_update=True)
        if row is None:
            return None

        _check_references(doc, fields)
        number = fields.get(doc.number_field)
        if number is not None and number != getattr(row, doc.number_field):
            _check_number_unique(doc, number, exclude_id=row.id)

        if "items" in fields:
            deltas = stock_service.net_deltas(doc.kind, row.items or [], fields["items"])
            stock_service.apply_net_deltas(deltas)
            _fill_totals(fields)

        doc.repo.update(doc_id, fields, obj=row)
        db.session.commit()
        return row

    row = run_with_retry(_op)
    if row is not None:
        notify(doc.notify_tag, "updated", row.to_dict())
    return row


def _delete(doc: _DocumentKind, doc_id: int) -> bool:
    def _op():
        row = doc.repo.get(doc_id, for_update=True)
        if row is None:
            return False
        stock_service.reverse_transaction(doc.kind, row.items or [])
        doc.repo.delete(doc_id)
        db.session.commit()
        return True

    deleted = run_with_retry(_op)
    if deleted:
        notify(doc.notify_tag, "deleted", {"id": doc_id})
    return deleted


def create_purchase(patch: dict) -> Purchase:
    return _create(PURCHASE, patch)


def update_purchase(purchase_id: int, patch: dict) -> Purchase | None:
    return _update(PURCHASE, purchase_id, patch)


def delete_purchase(purchase_id: int) -> bool:
    return _delete(PURCHASE, purchase_id)


def get_purchase(purchase_id: int) -> Purchase | None:
    return repository.purchases.get(purchase_id)


def list_purchases() -> list[Purchase]:
    return repository.purchases.get_all()


def create_sale(patch: dict) -> Sale:
    return _create(SALE, patch)


def update_sale(sale_id: int, patch: dict) -> Sale | None:
    return _update(SALE, sale_id, patch)


def delete_sale(sale_id: int) -> bool:
    return _delete(SALE, sale_id)


def get_sale(sale_id: int) -> Sale | None:
    return repository.sales.get(sale_id)


def list_sales() -> list[Sale]:
    return repository.sales.get_all()


def list_sales_by_salesperson(user_id: int) -> list[Sale]:
    return repository.sales.filter_by(salesperson_id=user_id)
