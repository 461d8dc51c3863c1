from datetime import date

from milkchain.reconciliation import formatters as fmt


def test_liters_drop_trailing_zeros():
    assert fmt.format_liters(100) == "100L"
    assert fmt.format_liters(10.5) == "10.5L"
    assert fmt.format_liters(1250.25) == "1,250.25L"
    assert fmt.format_liters(None) == "-"


def test_currency_and_numbers():
    assert fmt.format_currency(1062.5) == "₹1,062.50"
    assert fmt.format_number(12345.6) == "12,346"
    assert fmt.format_number(2.5, 2) == "2.50"
    assert fmt.format_number("abc") == "-"
    assert fmt.format_percentage(12.345) == "12.3%"


def test_dates():
    assert fmt.format_date("2025-03-14") == "14/03/2025"
    assert fmt.format_date("2025-03-14T08:00:00.000123") == "14/03/2025"
    assert fmt.format_date(date(2025, 3, 14), "%d %b") == "14 Mar"
    assert fmt.format_date("") == "-"
    assert fmt.format_date("yesterday") == "yesterday"


def test_status_badges():
    assert fmt.format_delivery_status("cancelled") == "❌ Failed"
    assert fmt.format_allocation_status("in_progress") == "🚚 In progress"
    assert fmt.format_supplier_status("approved") == "✅ Approved"
    assert fmt.format_delivery_status("unknown") == "unknown"


def test_remaining_icon_thresholds():
    assert fmt.format_remaining_icon(0, 0) == "⚫"
    assert fmt.format_remaining_icon(60, 100) == "🟢"
    assert fmt.format_remaining_icon(10, 100) == "🟡"
    assert fmt.format_remaining_icon(0, 100) == "🔴"


def test_drift():
    assert fmt.format_drift(0) == "✅ In sync"
    assert fmt.format_drift(-10) == "⚠️ -10L"
    assert fmt.format_drift(2.5) == "⚠️ +2.5L"
