from milkchain.models import DailyAllocation, Delivery, DeliveryKey, DeliveryPartner
from milkchain.reconciliation import (
    AllocationGranted, AllocationLedger, DeliveryCancelled, DeliveryCompleted,
    ReconciliationReport, latest_allocation,
)
from milkchain.reconciliation.ledger import LedgerBalance


def _allocation(allocated, remaining, created_at, partner="dp-1", date="2025-03-14"):
    return DailyAllocation(id=f"a-{created_at}", supplier_id="s-1", delivery_partner_id=partner,
                           date=date, allocated_quantity=allocated, remaining_quantity=remaining,
                           created_at=created_at)


def _delivery(quantity, status, partner="dp-1", date="2025-03-14", delivery_id="d-1"):
    return Delivery(id=delivery_id, customer_id="c-1", delivery_partner_id=partner, supplier_id="s-1",
                    quantity=quantity, suggested_quantity=quantity, date=date, status=status)


# ==================== Models ====================

def test_delivery_key_round_trips_ids_with_underscores():
    key = DeliveryKey("cust_a_1", "dp_north", "2025-03-14")

    parsed = DeliveryKey.parse(key.delivery_id, ["cust_a", "cust_a_1"], ["dp_north", "north"])

    assert key.delivery_id == "cust_a_1_dp_north_2025-03-14"
    assert parsed == key


def test_delivery_key_parse_rejects_unknown_ids():
    assert DeliveryKey.parse("c-1_dp-1_2025-03-14", ["c-2"], ["dp-1"]) is None
    assert DeliveryKey.parse("no-separator", ["c-1"], ["dp-1"]) is None


def test_row_conversion_maps_aliased_columns():
    allocation = _allocation(100, 80, "2025-03-14T08:00:00.000000")

    row = allocation.to_row()

    assert row["allocation_date"] == "2025-03-14"
    assert "date" not in row
    assert DailyAllocation.from_row(row) == allocation


def test_virtual_fields_are_not_stored():
    partner = DeliveryPartner(id="dp-1", supplier_id="s-1", name="Ravi", assigned_customers=["c-1"])

    assert "assigned_customers" not in partner.to_row()


def test_from_row_coerces_numeric_strings_to_float():
    row = _delivery(10, "pending").to_row()
    row["quantity"] = "12.5"

    assert Delivery.from_row(row).quantity == 12.5


# ==================== Latest allocation ====================

def test_latest_allocation_prefers_newest_timestamp():
    older = _allocation(100, 100, "2025-03-14T08:00:00.000000")
    newer = _allocation(120, 120, "2025-03-14T09:00:00.000000")

    assert latest_allocation([newer, older]) is newer
    assert latest_allocation([]) is None


def test_latest_allocation_breaks_ties_by_position():
    first = _allocation(100, 100, "2025-03-14T08:00:00.000000")
    second = _allocation(90, 90, "2025-03-14T08:00:00.000000")

    assert latest_allocation([first, second]) is second


# ==================== Ledger ====================

def test_snapshots_become_grant_deltas():
    ledger = AllocationLedger.from_records([
        _allocation(100, 100, "2025-03-14T08:00:00.000000"),
        _allocation(125, 115, "2025-03-14T10:00:00.000000"),
    ], [])

    grants = [e.quantity for e in ledger.events_for("dp-1", "2025-03-14")]

    assert grants == [100, 25]
    assert ledger.balance("dp-1", "2025-03-14").granted == 125


def test_balance_counts_completed_and_cancelled_deliveries():
    ledger = AllocationLedger.from_records(
        [_allocation(100, 100, "2025-03-14T08:00:00.000000")],
        [_delivery(10, "completed", delivery_id="d-1"),
         _delivery(20, "cancelled", delivery_id="d-2"),
         _delivery(30, "pending", delivery_id="d-3")],
    )

    balance = ledger.balance("dp-1", "2025-03-14")

    assert balance.delivered == 10
    assert balance.remaining == 90
    assert balance.completed_count == 1
    assert balance.cancelled_count == 1


def test_balances_are_kept_per_partner_and_day():
    ledger = AllocationLedger([
        AllocationGranted("dp-1", "2025-03-14", 50),
        AllocationGranted("dp-2", "2025-03-14", 70),
        AllocationGranted("dp-1", "2025-03-15", 90),
        DeliveryCompleted("dp-1", "2025-03-14", "d-1", 20),
        DeliveryCancelled("dp-2", "2025-03-14", "d-2"),
    ])

    assert ledger.balance("dp-1", "2025-03-14").remaining == 30
    assert ledger.balance("dp-2", "2025-03-14").cancelled_count == 1
    assert ledger.balance("dp-1", "2025-03-15").remaining == 90
    assert ledger.balance("dp-9", "2025-03-14").granted == 0


def test_over_delivery_floors_remaining_at_zero():
    balance = LedgerBalance(granted=15, delivered=30)

    assert balance.remaining == 0
    assert balance.over_delivered == 15


def test_report_drift_is_recorded_minus_expected():
    report = ReconciliationReport("dp-1", "2025-03-14", allocated=100, expected_remaining=90,
                                  recorded_remaining=80, balance=LedgerBalance(100, 10, 1, 0))

    assert report.drift == -10
    assert not report.is_consistent


def test_report_without_recorded_allocation_has_no_drift():
    report = ReconciliationReport("dp-1", "2025-03-14", 0, 0, None, LedgerBalance())

    assert report.drift == 0
    assert report.is_consistent
