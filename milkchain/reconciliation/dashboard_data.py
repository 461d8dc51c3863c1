"""
Dashboard Data Layer
====================
DataFrames for the delivery partner, supplier and admin dashboards.

Built from the repository through the reconciliation and directory
services; the pages only render what comes back from here.
"""

import pandas as pd
import logging
from typing import Dict, List, Any, Optional

from ..models import DELIVERY_COMPLETED, DELIVERY_PENDING, DELIVERY_CANCELLED
from .reconciliation_service import ReconciliationService, TEMP_CUSTOMER_PREFIX

logger = logging.getLogger(__name__)

DELIVERY_COLUMNS = [
    'delivery_id', 'customer_id', 'customer', 'phone', 'address', 'quantity',
    'suggested_quantity', 'status', 'scheduled_time', 'completed_time', 'notes', 'is_temporary',
]
ALLOCATION_COLUMNS = [
    'allocation_id', 'partner_id', 'partner', 'date', 'allocated_quantity',
    'remaining_quantity', 'status', 'created_at', 'is_effective',
]
PICKUP_SUMMARY_COLUMNS = [
    'farmer_id', 'farmer', 'pickups', 'quantity', 'total_amount', 'avg_price', 'avg_fat',
]
PARTNER_OVERVIEW_COLUMNS = [
    'partner_id', 'partner', 'status', 'customers', 'allocated', 'delivered',
    'expected_remaining', 'recorded_remaining', 'drift',
]


class DashboardData:
    """Data access layer for the dashboards"""

    def __init__(self, service: ReconciliationService):
        self.service = service
        self.directory = service.directory

    # ================================================================
    # DELIVERY PARTNER
    # ================================================================

    def deliveries_frame(self, partner_id: str, date: Optional[str] = None) -> pd.DataFrame:
        """A partner's deliveries for one day, with customer details"""
        date = date or self.service.today()
        deliveries = self.service.get_deliveries(partner_id, date)
        if not deliveries:
            return pd.DataFrame(columns=DELIVERY_COLUMNS)

        customers = {c.id: c for c in self.directory.get_customers(ids=[d.customer_id for d in deliveries])}
        records: List[Dict[str, Any]] = []
        for delivery in deliveries:
            customer = customers.get(delivery.customer_id)
            name = customer.name if customer else 'Unknown'
            records.append({
                'delivery_id': delivery.id,
                'customer_id': delivery.customer_id,
                'customer': name.replace(TEMP_CUSTOMER_PREFIX, '', 1),
                'phone': customer.phone if customer else '',
                'address': customer.address if customer else '',
                'quantity': delivery.quantity,
                'suggested_quantity': delivery.suggested_quantity,
                'status': delivery.status,
                'scheduled_time': delivery.scheduled_time,
                'completed_time': delivery.completed_time,
                'notes': delivery.notes,
                'is_temporary': name.startswith(TEMP_CUSTOMER_PREFIX),
            })
        return pd.DataFrame(records, columns=DELIVERY_COLUMNS)

    def allocations_frame(self, partner_id: Optional[str] = None,
                          date_from: Optional[str] = None,
                          date_to: Optional[str] = None) -> pd.DataFrame:
        """Allocation history, newest first, flagging the effective row per day"""
        allocations = self.service.get_daily_allocations(partner_id)
        if date_from:
            allocations = [a for a in allocations if a.date >= date_from]
        if date_to:
            allocations = [a for a in allocations if a.date <= date_to]
        if not allocations:
            return pd.DataFrame(columns=ALLOCATION_COLUMNS)

        effective_ids = set()
        for key in {(a.delivery_partner_id, a.date) for a in allocations}:
            effective = self.service.get_daily_allocation(*key)
            if effective:
                effective_ids.add(effective.id)

        partners = {p.id: p.name for p in self.directory.get_delivery_partners()}
        df = pd.DataFrame([{
            'allocation_id': a.id,
            'partner_id': a.delivery_partner_id,
            'partner': partners.get(a.delivery_partner_id, 'Unknown'),
            'date': a.date,
            'allocated_quantity': a.allocated_quantity,
            'remaining_quantity': a.remaining_quantity,
            'status': a.status,
            'created_at': a.created_at,
            'is_effective': a.id in effective_ids,
        } for a in allocations], columns=ALLOCATION_COLUMNS)

        return df.sort_values('created_at', ascending=False, kind='stable').reset_index(drop=True)

    # ================================================================
    # SUPPLIER
    # ================================================================

    def pickup_summary(self, supplier_id: Optional[str] = None,
                       start_date: Optional[str] = None,
                       end_date: Optional[str] = None) -> pd.DataFrame:
        """Milk collected per farmer over a date range"""
        pickups = self.directory.get_pickup_logs(supplier_id, start_date=start_date, end_date=end_date)
        if not pickups:
            return pd.DataFrame(columns=PICKUP_SUMMARY_COLUMNS)

        farmers = {f.id: f.name for f in self.directory.get_farmers(supplier_id)}
        df = pd.DataFrame([{
            'farmer_id': p.farmer_id,
            'quantity': p.quantity,
            'total_amount': p.total_amount,
            'price_per_liter': p.price_per_liter,
            'fat_content': p.fat_content,
        } for p in pickups])

        summary = df.groupby('farmer_id', sort=True).agg(
            pickups=('quantity', 'size'),
            quantity=('quantity', 'sum'),
            total_amount=('total_amount', 'sum'),
            avg_price=('price_per_liter', 'mean'),
            avg_fat=('fat_content', 'mean'),
        ).reset_index()
        summary['farmer'] = summary['farmer_id'].map(lambda fid: farmers.get(fid, 'Unknown'))

        return summary[PICKUP_SUMMARY_COLUMNS].sort_values('quantity', ascending=False).reset_index(drop=True)

    def partner_overview(self, supplier_id: Optional[str] = None,
                         date: Optional[str] = None) -> pd.DataFrame:
        """Every partner's figures for a day, with drift against the ledger"""
        date = date or self.service.today()
        partners = self.service.get_partners(supplier_id)
        if not partners:
            return pd.DataFrame(columns=PARTNER_OVERVIEW_COLUMNS)

        records = []
        for partner in partners:
            report = self.service.reconcile(partner.id, date)
            records.append({
                'partner_id': partner.id,
                'partner': partner.name,
                'status': partner.status,
                'customers': len(partner.assigned_customers),
                'allocated': report.allocated,
                'delivered': report.balance.delivered,
                'expected_remaining': report.expected_remaining,
                'recorded_remaining': report.recorded_remaining,
                'drift': report.drift,
            })
        return pd.DataFrame(records, columns=PARTNER_OVERVIEW_COLUMNS)

    # ================================================================
    # STATISTICS
    # ================================================================

    def get_dashboard_statistics(self, supplier_id: Optional[str] = None,
                                 date: Optional[str] = None) -> Dict[str, Any]:
        """Headline numbers for a supplier's day"""
        date = date or self.service.today()
        partner_ids = {p.id for p in self.directory.get_delivery_partners(supplier_id)}
        deliveries = [d for d in self.service.get_deliveries(date=date)
                      if d.delivery_partner_id in partner_ids]

        by_status = {status: 0 for status in (DELIVERY_PENDING, DELIVERY_COMPLETED, DELIVERY_CANCELLED)}
        for delivery in deliveries:
            by_status[delivery.status] = by_status.get(delivery.status, 0) + 1

        allocated = 0.0
        for partner_id in partner_ids:
            effective = self.service.get_daily_allocation(partner_id, date)
            if effective:
                allocated += effective.allocated_quantity

        return {
            'partners': len(partner_ids),
            'customers': len(self.directory.get_customers(supplier_id)),
            'deliveries': len(deliveries),
            'pending': by_status[DELIVERY_PENDING],
            'completed': by_status[DELIVERY_COMPLETED],
            'cancelled': by_status[DELIVERY_CANCELLED],
            'allocated': allocated,
            'delivered': sum(d.quantity for d in deliveries if d.status == DELIVERY_COMPLETED),
        }
