import pytest

from milkchain.auth import AuthManager
from milkchain.config import config


@pytest.fixture
def auth(repository, clock):
    return AuthManager(repository, clock=clock)


def test_admin_uses_configured_credentials(auth, monkeypatch):
    monkeypatch.setitem(config.app_config, "ADMIN_EMAIL", "root@dairy.in")
    monkeypatch.setitem(config.app_config, "ADMIN_PASSWORD", "s3cret")

    ok, user = auth.authenticate("admin", "root@dairy.in", "s3cret")
    assert ok
    assert user["role"] == "admin"

    ok, result = auth.authenticate("admin", "root@dairy.in", "wrong")
    assert not ok
    assert result["error"] == "Invalid email or password"


def test_supplier_logs_in_by_username_or_email(auth, dairy):
    for identifier in ("greenvalley", "orders@greenvalley.in"):
        ok, user = auth.authenticate("supplier", identifier, "gv-secret")
        assert ok
        assert user["id"] == dairy.supplier.id
        assert user["supplier_id"] == dairy.supplier.id


def test_unapproved_supplier_is_refused(auth, directory):
    directory.add_supplier("New Dairy", "hello@newdairy.in", "newdairy", "pw")

    ok, result = auth.authenticate("supplier", "newdairy", "pw")

    assert not ok
    assert result["error"].startswith("Supplier account is pending")


def test_supplier_wrong_password(auth, dairy):
    ok, result = auth.authenticate("supplier", "greenvalley", "nope")

    assert not ok
    assert result["error"] == "Invalid username or password"


def test_delivery_partner_login_and_pause(auth, directory, dairy):
    ok, user = auth.authenticate("delivery_partner", "ravi@greenvalley.in", "ravi123")
    assert ok
    assert user["id"] == dairy.partner.id
    assert user["supplier_id"] == dairy.supplier.id

    directory.update_delivery_partner_status(dairy.partner.id, "paused")
    ok, result = auth.authenticate("delivery_partner", "ravi@greenvalley.in", "ravi123")
    assert not ok
    assert "paused" in result["error"]


def test_farmer_logs_in_by_user_id_or_phone(auth, directory, dairy):
    farmer = directory.add_farmer(dairy.supplier.id, "Lakshmi", "91234 56789", "farm123").data["farmer"]

    assert auth.authenticate("farmer", "9123456789", "farm123")[1]["id"] == farmer.id
    assert auth.authenticate("farmer", "91234-56789", "farm123")[0]
    assert not auth.authenticate("farmer", "9123456789", "wrong")[0]


def test_customer_logs_in_with_phone_only(auth, dairy):
    ok, user = auth.authenticate("customer", "9000000002")

    assert ok
    assert user["id"] == dairy.customers[1].id
    assert user["full_name"] == "Customer 2"


def test_unknown_role_and_blank_identifier(auth):
    assert auth.authenticate("milkman", "x")[1]["error"] == "Unknown role: milkman"
    assert auth.authenticate("supplier", "   ", "pw")[1]["error"] == "Please enter your login details"


def test_login_time_comes_from_the_clock(auth, clock, dairy):
    ok, user = auth.authenticate("delivery_partner", "ravi@greenvalley.in", "ravi123")

    assert user["login_time"] == clock.now
