# Overview: Request payload checks shared by every write route.

"""
Payload validation.

validate_payload() turns a JSON body into a patch dict using the target
model's column metadata (type, nullability, String length) and a
ModelValidationPolicy allowlist. Domain rules that columns cannot express
live in the enforce_rules_* functions below.

Money is integer cents; tax rates are integer basis points.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from tradedesk.time_utils import parse_iso_datetime


MAX_PRICE_CENTS = 999_999_999

# 1800 = 18.00%
MAX_TAX_RATE_BPS = 10_000

MAX_LINE_ITEMS = 500
MAX_LINE_QUANTITY = 1_000_000

# Integer columns are 32-bit on every supported backend
MAX_INT = 2_147_483_647

INT_PATTERN = re.compile(r"[+-]?[0-9]+")


class ValidationError(ValueError):
    """Bad input; routes answer 400."""


class ConflictError(ValueError):
    """Input clashes with stored state (duplicate SKU, document number); 409."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)


def _coerce_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    if isinstance(value, str):
        text = value.strip()
        # int() would also accept "1_000"
        if not INT_PATTERN.fullmatch(text):
            raise ValidationError(f"{key} must be an integer")
        value = int(text)
    if not isinstance(value, int):
        raise ValidationError(f"{key} must be an integer")
    if abs(value) > MAX_INT:
        raise ValidationError(f"{key} is out of range")
    return value


def _coerce_datetime(key: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_iso_datetime(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    raise ValidationError(f"{key} must be an ISO-8601 datetime")


def _clean_value(column, value: Any):
    key, coltype = column.key, column.type

    if isinstance(coltype, Boolean):
        if not isinstance(value, bool):
            raise ValidationError(f"{key} must be a boolean")
        return value
    if isinstance(coltype, Integer):
        return _coerce_int(key, value)
    if isinstance(coltype, DateTime):
        return _coerce_datetime(key, value)
    if isinstance(coltype, (String, Text)):
        text = str(value).strip()
        if not text and not column.nullable:
            raise ValidationError(f"{key} cannot be blank")
        limit = getattr(coltype, "length", None)
        if limit and len(text) > limit:
            raise ValidationError(f"{key} exceeds max length {limit}")
        return text
    # JSON (line items) is shape-checked by enforce_rules_transaction
    if isinstance(coltype, JSON):
        return value
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Return a cleaned patch containing only allowlisted, type-checked keys.

    partial=False (create) also requires every policy.required_on_create key.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(policy.required_on_create - set(payload))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}
    for key in payload:
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        if key not in columns:
            raise ValidationError(f"Unknown field: {key}")

    patch: dict = {}
    for key, raw in payload.items():
        column = columns[key]
        if raw is None:
            if not column.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
        else:
            patch[key] = _clean_value(column, raw)
    return patch


def _check_price(key: str, value) -> None:
    if value is None:
        return
    if value < 0:
        raise ValidationError(f"{key} must be >= 0")
    if value > MAX_PRICE_CENTS:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE_CENTS}")


def _check_tax_rate(key: str, value) -> None:
    if value is None:
        return
    if value < 0 or value > MAX_TAX_RATE_BPS:
        raise ValidationError(f"{key} must be between 0 and {MAX_TAX_RATE_BPS} basis points")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_price("price_cents", patch.get("price_cents"))
    _check_tax_rate("gst_rate_bps", patch.get("gst_rate_bps"))

    if patch.get("min_stock") is not None and patch["min_stock"] < 0:
        raise ValidationError("min_stock must be >= 0")
    if patch.get("stock") is not None and patch["stock"] < 0:
        raise ValidationError("initial stock must be >= 0")


def normalize_line_items(raw) -> list[dict]:
    """
    Validate a transaction's item list and return a clean copy.

    Each item needs product_id and a positive integer quantity;
    unit_price_cents and tax_rate_bps default to 0.
    """
    if not isinstance(raw, list):
        raise ValidationError("items must be a list")
    if not raw:
        raise ValidationError("items must contain at least one line")
    if len(raw) > MAX_LINE_ITEMS:
        raise ValidationError(f"items cannot exceed {MAX_LINE_ITEMS} lines")

    allowed = {"product_id", "quantity", "unit_price_cents", "tax_rate_bps"}
    items: list[dict] = []
    for idx, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{idx}] must be an object")
        unknown = set(item) - allowed
        if unknown:
            raise ValidationError(f"items[{idx}] has unknown fields: {', '.join(sorted(unknown))}")
        if "product_id" not in item or "quantity" not in item:
            raise ValidationError(f"items[{idx}] requires product_id and quantity")

        product_id = _coerce_int(f"items[{idx}].product_id", item["product_id"])
        quantity = _coerce_int(f"items[{idx}].quantity", item["quantity"])
        if quantity <= 0:
            raise ValidationError(f"items[{idx}].quantity must be > 0")
        if quantity > MAX_LINE_QUANTITY:
            raise ValidationError(f"items[{idx}].quantity cannot exceed {MAX_LINE_QUANTITY}")

        unit_price = _coerce_int(f"items[{idx}].unit_price_cents", item.get("unit_price_cents", 0))
        tax_rate = _coerce_int(f"items[{idx}].tax_rate_bps", item.get("tax_rate_bps", 0))
        _check_price(f"items[{idx}].unit_price_cents", unit_price)
        _check_tax_rate(f"items[{idx}].tax_rate_bps", tax_rate)

        items.append({
            "product_id": product_id,
            "quantity": quantity,
            "unit_price_cents": unit_price,
            "tax_rate_bps": tax_rate,
        })
    return items


def enforce_rules_transaction(patch: dict, *, allowed_statuses: set[str], status_field: str) -> None:
    """Shared purchase/sale rules: item shape, status vocabulary, non-negative totals."""
    if "items" in patch:
        patch["items"] = normalize_line_items(patch["items"])

    status = patch.get(status_field)
    if status is not None and status not in allowed_statuses:
        raise ValidationError(
            f"{status_field} must be one of: {', '.join(sorted(allowed_statuses))}"
        )

    for key in ("total_amount_cents", "total_tax_cents"):
        if patch.get(key) is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")
