"""
Formatting utilities for the dashboards
Liters, rupees, dates and status badges
"""
import pandas as pd
from datetime import datetime, date
from typing import Union
import logging

logger = logging.getLogger(__name__)


def format_number(value: Union[int, float, None], decimals: int = 0) -> str:
    """
    Format number with thousand separator

    Args:
        value: Number to format
        decimals: Number of decimal places

    Returns:
        Formatted string
    """
    try:
        if value is None or pd.isna(value):
            return "-"

        if decimals == 0:
            return f"{int(round(float(value))):,}"
        else:
            return f"{float(value):,.{decimals}f}"

    except (ValueError, TypeError):
        return "-"


def format_liters(value: Union[int, float, None]) -> str:
    """Quantities keep up to two decimals, without trailing zeros"""
    try:
        if value is None or pd.isna(value):
            return "-"
        return f"{float(value):,.2f}".rstrip('0').rstrip('.') + "L"
    except (ValueError, TypeError):
        return "-"


def format_currency(value: Union[int, float, None]) -> str:
    try:
        if value is None or pd.isna(value):
            return "-"
        return f"₹{float(value):,.2f}"
    except (ValueError, TypeError):
        return "-"


def format_date(value: Union[str, datetime, date, None],
                format_str: str = "%d/%m/%Y") -> str:
    """
    Format date consistently

    Args:
        value: Date value to format
        format_str: Output format string

    Returns:
        Formatted date string
    """
    if value is None:
        return "-"

    if isinstance(value, (datetime, date)):
        return value.strftime(format_str)

    value = str(value).strip()
    if not value:
        return "-"

    for fmt in ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]:
        try:
            return datetime.strptime(value.split('.')[0], fmt).strftime(format_str)
        except ValueError:
            continue

    logger.debug(f"Could not parse date {value}")
    return value


def format_percentage(value: Union[int, float, None], decimals: int = 1) -> str:
    try:
        if value is None or pd.isna(value):
            return "-"
        return f"{float(value):.{decimals}f}%"
    except (ValueError, TypeError):
        return "-"


def format_delivery_status(status: str) -> str:
    """
    Format delivery status with icon

    Args:
        status: pending, completed or cancelled

    Returns:
        Formatted status string
    """
    status_map = {
        'pending': '⏳ Pending',
        'completed': '✅ Completed',
        'cancelled': '❌ Failed',
    }

    return status_map.get(status, status)


def format_allocation_status(status: str) -> str:
    status_map = {
        'allocated': '📦 Allocated',
        'in_progress': '🚚 In progress',
        'completed': '✅ Completed',
    }
    return status_map.get(status, status)


def format_supplier_status(status: str) -> str:
    status_map = {
        'pending': '🕒 Pending',
        'approved': '✅ Approved',
        'rejected': '⛔ Rejected',
    }
    return status_map.get(status, status)


def format_remaining_icon(remaining: float, allocated: float) -> str:
    """
    Get status icon based on the share of the allocation still on hand

    Args:
        remaining: Liters left
        allocated: Liters allocated for the day

    Returns:
        Status icon
    """
    if not allocated:
        return "⚫"  # No allocation

    percent = remaining / allocated * 100
    if percent >= 50:
        return "🟢"
    elif percent > 0:
        return "🟡"
    else:
        return "🔴"  # Used up


def format_drift(drift: float) -> str:
    if abs(drift) < 1e-9:
        return "✅ In sync"
    sign = "+" if drift > 0 else "-"
    return f"⚠️ {sign}{format_liters(abs(drift))}"
