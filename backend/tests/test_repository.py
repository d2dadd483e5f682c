"""Entity repository tests: default population, lifecycle flags, soft vs hard delete."""

import pytest

from tradedesk.extensions import db
from tradedesk.models import Product, Supplier
from tradedesk.services import repository


CONTACT = {
    "contact_name": "Pat Contact",
    "email": "pat@example.com",
    "phone": "555-0100",
    "address": "1 Market St",
}


class TestCreate:
    def test_stamps_timestamps_and_lifecycle_defaults(self, db_session):
        vendor = repository.vendors.create({"name": "V", "is_approved": True, "is_active": False, **CONTACT})

        assert vendor.id is not None
        assert vendor.created_at is not None
        assert vendor.updated_at == vendor.created_at
        assert vendor.is_approved is False
        assert vendor.is_active is True


class TestUpdate:
    def test_merges_patch_and_skips_protected_fields(self, db_session):
        vendor = repository.vendors.create({"name": "V", **CONTACT})
        db.session.commit()

        updated = repository.vendors.update(vendor.id, {"name": "W", "is_approved": True, "id": 99})

        assert updated.id == vendor.id
        assert updated.name == "W"
        assert updated.is_approved is False

    def test_missing_id_returns_none(self, db_session):
        assert repository.vendors.update(12345, {"name": "W"}) is None


class TestDelete:
    def test_supplier_delete_is_soft(self, supplier):
        assert repository.suppliers.delete(supplier.id) is True
        db.session.commit()

        row = db.session.get(Supplier, supplier.id)
        assert row is not None
        assert row.is_active is False
        assert repository.suppliers.get_all() == []

    def test_product_delete_is_soft(self, make_product):
        p = make_product()
        repository.products.delete(p.id)
        db.session.commit()

        assert db.session.get(Product, p.id).is_active is False

    def test_vendor_delete_is_hard(self, db_session):
        vendor = repository.vendors.create({"name": "V", **CONTACT})
        db.session.commit()

        assert repository.vendors.delete(vendor.id) is True
        db.session.commit()
        assert repository.vendors.get(vendor.id) is None

    def test_missing_id_returns_false(self, db_session):
        assert repository.purchases.delete(8080) is False


class TestQueries:
    def test_get_approved(self, db_session):
        a = repository.vendors.create({"name": "A", **CONTACT})
        repository.vendors.create({"name": "B", **CONTACT})
        repository.vendors.mark_approved(a.id)
        db.session.commit()

        assert [v.name for v in repository.vendors.get_approved()] == ["A"]

    def test_get_approved_requires_approvable_kind(self, db_session):
        with pytest.raises(TypeError):
            repository.purchases.get_approved()

    def test_mark_approved_missing_returns_none(self, db_session):
        assert repository.retailers.mark_approved(777) is None
