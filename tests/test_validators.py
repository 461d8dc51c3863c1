from datetime import date

from milkchain.reconciliation import DeliveryValidator


validator = DeliveryValidator()


def test_dates_must_be_iso_formatted():
    assert validator.validate_date("2025-03-14").is_valid
    assert validator.validate_date(date(2025, 3, 14)).is_valid
    assert not validator.validate_date("14/03/2025").is_valid


def test_only_known_delivery_statuses_are_accepted():
    for status in ("pending", "completed", "cancelled"):
        assert validator.validate_status(status).is_valid
    assert not validator.validate_status("in_progress").is_valid


def test_allocation_rules():
    assert validator.validate_allocation("dp-1", 0, "2025-03-14").is_valid

    result = validator.validate_allocation("", -5, "tomorrow")

    assert len(result.errors) == 3


def test_pickup_rules():
    assert validator.validate_pickup("farmer-1", 20, 42.5, "B").is_valid

    result = validator.validate_pickup("", 0, 0, "D")

    assert result.errors == [
        "Please select a farmer",
        "Quantity must be greater than 0",
        "Price per liter must be greater than 0",
        "Quality grade must be one of A, B, C",
    ]


def test_delivery_quantity_must_be_positive():
    assert validator.validate_quantity(0.5).is_valid
    assert validator.validate_quantity(0).errors == ["Please enter a valid quantity greater than 0"]
    assert not validator.validate_quantity(None).is_valid


def test_cancellation_needs_a_short_reason():
    assert validator.validate_cancellation("Customer not available").is_valid
    assert not validator.validate_cancellation("   ").is_valid
    assert not validator.validate_cancellation("x" * 501).is_valid


def test_temporary_delivery_requires_name_and_phone():
    result = validator.validate_temporary_delivery("", "99999 11111", 0)

    assert result.errors == [
        "Please fill in all required fields",
        "Please enter a valid quantity greater than 0",
    ]
