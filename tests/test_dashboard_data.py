import pytest

from milkchain.reconciliation import DashboardData

from conftest import TODAY


@pytest.fixture
def data(service):
    return DashboardData(service)


def test_empty_frames_keep_their_columns(data, dairy):
    deliveries = data.deliveries_frame(dairy.partner.id, TODAY)

    assert deliveries.empty
    assert "is_temporary" in deliveries.columns
    assert data.allocations_frame(dairy.partner.id).empty
    assert data.pickup_summary(dairy.supplier.id).empty


def test_deliveries_frame_joins_customers_and_flags_temporary(data, service, dairy):
    service.add_daily_allocation(dairy.partner.id, dairy.supplier.id, TODAY, 100)
    service.record_temporary_delivery(dairy.partner.id, "Walk-in", "99999 11111", 5)

    df = data.deliveries_frame(dairy.partner.id, TODAY)

    assert len(df) == 4
    assert set(df[~df["is_temporary"]]["customer"]) == {"Customer 1", "Customer 2", "Customer 3"}
    temporary = df[df["is_temporary"]].iloc[0]
    assert temporary["customer"] == "Walk-in"
    assert temporary["status"] == "completed"


def test_allocations_frame_marks_effective_row(data, service, dairy):
    service.add_daily_allocation(dairy.partner.id, dairy.supplier.id, TODAY, 100)
    service.add_daily_allocation(dairy.partner.id, dairy.supplier.id, TODAY, 80)
    service.add_daily_allocation(dairy.partner.id, dairy.supplier.id, "2025-03-10", 50)

    df = data.allocations_frame(dairy.partner.id, date_from="2025-03-12")

    assert list(df["allocated_quantity"]) == [80, 100]
    assert list(df["is_effective"]) == [True, False]
    assert (df["partner"] == "Ravi Kumar").all()


def test_pickup_summary_groups_by_farmer(data, directory, dairy):
    lakshmi = directory.add_farmer(dairy.supplier.id, "Lakshmi", "91234 56789", "farm123").data["farmer"]
    gopal = directory.add_farmer(dairy.supplier.id, "Gopal", "91234 00000", "farm456").data["farmer"]
    directory.add_pickup_log(lakshmi.id, dairy.supplier.id, 10, 40, fat_content=4.0, pickup_date=TODAY)
    directory.add_pickup_log(lakshmi.id, dairy.supplier.id, 20, 43, fat_content=5.0, pickup_date=TODAY)
    directory.add_pickup_log(gopal.id, dairy.supplier.id, 12, 40, pickup_date=TODAY)

    summary = data.pickup_summary(dairy.supplier.id, TODAY, TODAY)

    assert list(summary["farmer"]) == ["Lakshmi", "Gopal"]
    first = summary.iloc[0]
    assert first["pickups"] == 2
    assert first["quantity"] == 30
    assert first["total_amount"] == 1260
    assert first["avg_price"] == pytest.approx(41.5)
    assert first["avg_fat"] == pytest.approx(4.5)


def test_partner_overview_reports_drift(data, service, dairy):
    service.add_daily_allocation(dairy.partner.id, dairy.supplier.id, TODAY, 100)
    delivery = service.get_deliveries(customer_id=dairy.customers[0].id)[0]
    service.update_delivery_status(delivery.id, "completed")
    service.update_delivery_status(delivery.id, "completed")

    row = data.partner_overview(dairy.supplier.id, TODAY).iloc[0]

    assert row["partner"] == "Ravi Kumar"
    assert row["customers"] == 3
    assert row["allocated"] == 100
    assert row["expected_remaining"] == 90
    assert row["recorded_remaining"] == 80
    assert row["drift"] == -10


def test_dashboard_statistics(data, service, dairy):
    service.add_daily_allocation(dairy.partner.id, dairy.supplier.id, TODAY, 100)
    deliveries = service.get_deliveries(dairy.partner.id, TODAY)
    service.update_delivery_status(deliveries[0].id, "completed")
    service.update_delivery_status(deliveries[1].id, "cancelled", "away")

    stats = data.get_dashboard_statistics(dairy.supplier.id, TODAY)

    assert stats == {
        "partners": 1,
        "customers": 3,
        "deliveries": 3,
        "pending": 1,
        "completed": 1,
        "cancelled": 1,
        "allocated": 100,
        "delivered": deliveries[0].quantity,
    }
