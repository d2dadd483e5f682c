"""
Invoice template tests.

Verifies at most one default template after any sequence of creates and
updates, and that non-default writes leave other rows alone.
"""

import pytest
from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError

from tradedesk.extensions import db
from tradedesk.models import InvoiceTemplate
from tradedesk.services import template_service


def _defaults() -> list[int]:
    rows = db.session.query(InvoiceTemplate).filter(InvoiceTemplate.is_default.is_(True)).all()
    return [t.id for t in rows]


def _create(name: str, is_default: bool = False) -> InvoiceTemplate:
    return template_service.create_template({"name": name, "template": f"<h1>{name}</h1>", "is_default": is_default})


class TestDefaultExclusivity:
    def test_second_default_replaces_first(self, db_session):
        first = _create("Classic", is_default=True)
        second = _create("Modern", is_default=True)

        assert _defaults() == [second.id]
        assert db.session.get(InvoiceTemplate, first.id).is_default is False
        assert template_service.get_default_template().id == second.id

    def test_non_default_create_leaves_default(self, db_session):
        first = _create("Classic", is_default=True)
        _create("Draft")

        assert _defaults() == [first.id]

    def test_update_to_default_moves_flag(self, db_session):
        first = _create("Classic", is_default=True)
        second = _create("Modern")

        template_service.update_template(second.id, {"is_default": True})

        assert _defaults() == [second.id]
        assert db.session.get(InvoiceTemplate, first.id).is_default is False

    def test_reasserting_current_default_keeps_it(self, db_session):
        first = _create("Classic", is_default=True)

        template_service.update_template(first.id, {"is_default": True, "name": "Classic v2"})

        assert _defaults() == [first.id]
        assert template_service.get_template(first.id).name == "Classic v2"

    def test_unsetting_default_leaves_none(self, db_session):
        first = _create("Classic", is_default=True)
        template_service.update_template(first.id, {"is_default": False})

        assert _defaults() == []
        assert template_service.get_default_template() is None

    def test_long_sequence_keeps_single_default(self, db_session):
        ids = [_create(f"T{i}", is_default=(i % 2 == 0)).id for i in range(6)]
        for template_id in reversed(ids):
            template_service.update_template(template_id, {"is_default": True})
            assert len(_defaults()) == 1

        assert _defaults() == [ids[0]]

    def test_update_missing_returns_none(self, db_session):
        assert template_service.update_template(555, {"is_default": True}) is None

    def test_previous_default_change_is_published(self, db_session, events):
        first = _create("Classic", is_default=True)
        events()

        second = _create("Modern", is_default=True)
        published = events()

        assert [(m["action"], m["data"]["id"]) for m in published] == [
            ("updated", first.id),
            ("created", second.id),
        ]
        assert all(m["type"] == "invoiceTemplate" for m in published)


class TestConcurrentDefaults:
    def test_index_rejects_second_default(self, db_session):
        _create("Classic", is_default=True)

        with pytest.raises(IntegrityError):
            db.session.execute(insert(InvoiceTemplate).values(name="Rogue", template="x", is_default=True))
            db.session.flush()
        db.session.rollback()

        assert len(_defaults()) == 1

    def test_create_retries_when_a_default_appears_concurrently(self, db_session, monkeypatch):
        """First attempt misses the other writer's default; the index rejects it and the retry clears it."""
        first = _create("Classic", is_default=True)
        real_clear = template_service._clear_defaults
        calls = []

        def clear_after_first_attempt(exclude_id=None):
            calls.append(exclude_id)
            if len(calls) == 1:
                return []
            return real_clear(exclude_id)

        monkeypatch.setattr(template_service, "_clear_defaults", clear_after_first_attempt)

        second = _create("Modern", is_default=True)

        assert len(calls) == 2
        assert _defaults() == [second.id]
        assert db.session.get(InvoiceTemplate, first.id).is_default is False

    def test_update_retries_when_a_default_appears_concurrently(self, db_session, monkeypatch):
        first = _create("Classic", is_default=True)
        second = _create("Modern")
        real_clear = template_service._clear_defaults
        calls = []

        def clear_after_first_attempt(exclude_id=None):
            calls.append(exclude_id)
            return [] if len(calls) == 1 else real_clear(exclude_id)

        monkeypatch.setattr(template_service, "_clear_defaults", clear_after_first_attempt)

        template_service.update_template(second.id, {"is_default": True})

        assert calls == [second.id, second.id]
        assert _defaults() == [second.id]
        assert db.session.get(InvoiceTemplate, first.id).is_default is False


class TestTemplateApi:
    def test_admin_only_writes(self, client, sales_headers):
        resp = client.post("/api/invoice-templates", json={"name": "X", "template": "x"}, headers=sales_headers)
        assert resp.status_code == 403

    def test_scenario_two_defaults(self, client, admin_headers, sales_headers):
        client.post("/api/invoice-templates", json={"name": "A", "template": "a", "is_default": True}, headers=admin_headers)
        second = client.post("/api/invoice-templates", json={"name": "B", "template": "b", "is_default": True}, headers=admin_headers).json

        listing = client.get("/api/invoice-templates", headers=sales_headers).json
        assert [t["is_default"] for t in listing["items"]] == [False, True]

        default = client.get("/api/invoice-templates/default", headers=sales_headers)
        assert default.json["id"] == second["id"]

    def test_no_default_is_404(self, client, sales_headers):
        assert client.get("/api/invoice-templates/default", headers=sales_headers).status_code == 404
