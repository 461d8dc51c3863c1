from milkchain.directory import DirectoryValidator, normalize_phone

from conftest import TODAY


def _supplier(directory, **overrides):
    kwargs = dict(name="Green Valley Dairy", email="orders@greenvalley.in",
                  username="greenvalley", password="gv-secret")
    kwargs.update(overrides)
    return directory.add_supplier(**kwargs)


def test_normalize_phone_keeps_digits():
    assert normalize_phone("+91 98765-43210") == "919876543210"
    assert normalize_phone(None) == ""


def test_new_supplier_waits_for_approval(directory):
    result = _supplier(directory)

    assert result.success
    supplier = result.data["supplier"]
    assert supplier.status == "pending"
    assert supplier.registration_date == TODAY
    assert [s.id for s in directory.get_pending_suppliers()] == [supplier.id]


def test_supplier_registration_requires_login_fields(directory):
    result = _supplier(directory, username="", email="not-an-email")

    assert not result.success
    assert "Username is required" in result.errors
    assert any("Invalid email" in e for e in result.errors)
    assert directory.get_suppliers() == []


def test_supplier_approval(directory):
    supplier = _supplier(directory).data["supplier"]

    assert directory.update_supplier_status(supplier.id, "approved").success
    assert directory.get_supplier(supplier.id).status == "approved"
    assert directory.get_pending_suppliers() == []


def test_supplier_status_only_moves_to_approved_or_rejected(directory):
    supplier = _supplier(directory).data["supplier"]

    assert not directory.update_supplier_status(supplier.id, "pending").success
    assert not directory.update_supplier_status("supplier-missing", "approved").success


def test_delete_supplier(directory):
    supplier = _supplier(directory).data["supplier"]

    assert directory.delete_supplier(supplier.id).success
    assert not directory.delete_supplier(supplier.id).success


def test_add_customer_with_partner_creates_assignment(directory, service, dairy):
    result = directory.add_customer(dairy.supplier.id, "Meena", "90000 00009", "9 MG Road", 2.5,
                                    assigned_partner_id=dairy.partner.id)

    assert result.success
    customer = result.data["customer"]
    assert customer.daily_quantity == 2.5
    assert customer.status == "active"
    assert service.get_assigned_customer_ids(dairy.partner.id)[-1] == customer.id


def test_customer_requires_name_phone_and_address(directory, dairy):
    result = directory.add_customer(dairy.supplier.id, "", "", "", -1)

    assert not result.success
    assert len(result.errors) == 4


def test_customer_pause_and_delete(directory, dairy):
    customer = dairy.customers[0]

    assert directory.update_customer_status(customer.id, "paused").message == "Customer paused"
    assert directory.get_customer(customer.id).status == "paused"
    assert not directory.update_customer_status(customer.id, "deleted").success

    assert directory.delete_customer(customer.id).success
    assert directory.get_customer(customer.id) is None


def test_deleting_customer_removes_its_assignments(directory, service, dairy):
    removed = dairy.customers[0]

    directory.delete_customer(removed.id)

    assert service.get_assigned_customer_ids(dairy.partner.id) == [c.id for c in dairy.customers[1:]]


def test_deleting_partner_removes_its_assignments(directory, service, repository, dairy):
    assert directory.delete_delivery_partner(dairy.partner.id).success

    assert repository.read("customer_assignments") == []
    assert service.load_customer_assignments() == {}
    assert not directory.delete_delivery_partner(dairy.partner.id).success


def test_get_customers_by_ids(directory, dairy):
    wanted = [dairy.customers[0].id, dairy.customers[2].id]

    assert {c.id for c in directory.get_customers(ids=wanted)} == set(wanted)
    assert directory.get_customers(ids=[]) == []


def test_paused_partner_is_stored_inactive(directory, dairy):
    result = directory.update_delivery_partner_status(dairy.partner.id, "paused")

    assert result.success
    assert directory.get_delivery_partners(dairy.supplier.id)[0].status == "inactive"

    directory.update_delivery_partner_status(dairy.partner.id, "active")
    assert directory.get_delivery_partners(dairy.supplier.id)[0].status == "active"


def test_partner_starts_without_allocation(dairy):
    assert dairy.partner.daily_allocation == 0
    assert dairy.partner.remaining_quantity == 0


def test_farmer_user_id_defaults_to_phone_digits(directory, dairy):
    farmer = directory.add_farmer(dairy.supplier.id, "Lakshmi", "91234 56789", "farm123").data["farmer"]

    assert farmer.user_id == "9123456789"
    assert directory.get_farmer(farmer.id).name == "Lakshmi"
    assert [f.id for f in directory.get_farmers(dairy.supplier.id)] == [farmer.id]


def test_pickup_log_totals_and_date_filters(directory, dairy):
    farmer = directory.add_farmer(dairy.supplier.id, "Lakshmi", "91234 56789", "farm123").data["farmer"]
    directory.add_pickup_log(farmer.id, dairy.supplier.id, 12.5, 40, pickup_date="2025-03-12")
    directory.add_pickup_log(farmer.id, dairy.supplier.id, 10, 41.25, pickup_date=TODAY)

    pickups = directory.get_pickup_logs(supplier_id=dairy.supplier.id, start_date="2025-03-13")

    assert len(pickups) == 1
    assert pickups[0].total_amount == 412.5
    assert pickups[0].status == "completed"
    assert len(directory.get_pickup_logs(end_date="2025-03-12")) == 1


def test_directory_validator_status_rule():
    validator = DirectoryValidator()

    assert validator.validate_status("active", DirectoryValidator.CUSTOMER_STATUSES).is_valid
    assert not validator.validate_status("gone", DirectoryValidator.CUSTOMER_STATUSES).is_valid
