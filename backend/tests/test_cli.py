"""Flask CLI command tests (users, stock, sessions, system)."""

from tradedesk.extensions import db
from tradedesk.models import User


def _invoke(app, *args):
    return app.test_cli_runner().invoke(args=list(args))


class TestUsersCommands:
    def test_create_user(self, app, db_session):
        result = _invoke(
            app, "users", "create",
            "--username", "carol",
            "--email", "carol@tradedesk.test",
            "--full-name", "Carol Clerk",
            "--password", "Str0ng!Pass",
            "--role", "manager",
        )

        assert result.exit_code == 0, result.output
        assert "PASS Created user: carol" in result.output
        assert db.session.query(User).filter_by(username="carol").one().role == "manager"

    def test_weak_password_fails(self, app, db_session):
        result = _invoke(
            app, "users", "create",
            "--username", "weak",
            "--email", "weak@tradedesk.test",
            "--full-name", "Weak",
            "--password", "weak",
        )

        assert result.exit_code == 1
        assert "FAIL" in result.output

    def test_list_users(self, app, sales_user):
        result = _invoke(app, "users", "list")
        assert "sam" in result.output


class TestStockCommands:
    def test_low_stock(self, app, make_product):
        low = make_product(stock=2, min_stock=5)
        make_product(stock=50, min_stock=5)

        result = _invoke(app, "stock", "low")

        assert result.exit_code == 0
        assert low.sku in result.output
        assert "SKU-002" not in result.output

    def test_low_stock_empty(self, app, db_session):
        assert "No low-stock products." in _invoke(app, "stock", "low", "--threshold", "0").output


def test_sessions_cleanup(app, db_session):
    result = _invoke(app, "sessions", "cleanup")
    assert "PASS Deleted 0 sessions" in result.output


def test_reset_db_requires_confirmation(app, db_session):
    result = _invoke(app, "system", "reset-db")
    assert result.exit_code == 1
    assert "Refusing" in result.output
