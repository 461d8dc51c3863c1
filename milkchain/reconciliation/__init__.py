"""
Reconciliation Module
=====================
Daily allocations, delivery generation and remaining-quantity tracking
for delivery partners.

Components:
- ledger: allocation events and drift reports
- reconciliation_service: allocation and delivery operations
- validators: input rules for the delivery forms
- dashboard_data: DataFrames for the dashboards
- formatters: display helpers
"""

from ..models import (
    Supplier, Customer, DeliveryPartner, Farmer, DailyAllocation, Delivery,
    PickupLog, CustomerAssignment, DeliveryKey,
)
from .ledger import (
    AllocationGranted, DeliveryCompleted, DeliveryCancelled,
    AllocationLedger, LedgerBalance, ReconciliationReport, latest_allocation,
)
from .reconciliation_service import (
    ReconciliationService, ReconciliationError,
    InsufficientQuantityError, DeliveryNotFoundError,
)
from .validators import DeliveryValidator
from .dashboard_data import DashboardData

__all__ = [
    'Supplier', 'Customer', 'DeliveryPartner', 'Farmer', 'DailyAllocation',
    'Delivery', 'PickupLog', 'CustomerAssignment', 'DeliveryKey',
    'AllocationGranted', 'DeliveryCompleted', 'DeliveryCancelled',
    'AllocationLedger', 'LedgerBalance', 'ReconciliationReport', 'latest_allocation',
    'ReconciliationService', 'ReconciliationError',
    'InsufficientQuantityError', 'DeliveryNotFoundError',
    'DeliveryValidator',
    'DashboardData',
]
