"""
Allocation Ledger - a partner's day as a sequence of events.

Allocation rows are append-only snapshots; the ledger turns them into grant
deltas and folds them together with delivery outcomes, so the remaining
quantity can be derived instead of trusted. The result is compared against
the stored (decremented) remaining quantity to detect drift.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union, Iterable

from ..models import (
    DailyAllocation, Delivery,
    DELIVERY_COMPLETED, DELIVERY_CANCELLED,
)

logger = logging.getLogger(__name__)

EPSILON = 1e-9


@dataclass(frozen=True)
class AllocationGranted:
    partner_id: str
    date: str
    quantity: float
    at: str = ''


@dataclass(frozen=True)
class DeliveryCompleted:
    partner_id: str
    date: str
    delivery_id: str
    quantity: float
    at: str = ''


@dataclass(frozen=True)
class DeliveryCancelled:
    partner_id: str
    date: str
    delivery_id: str
    at: str = ''


LedgerEvent = Union[AllocationGranted, DeliveryCompleted, DeliveryCancelled]


@dataclass
class LedgerBalance:
    """Reduction of one partner's events for one day"""
    granted: float = 0.0
    delivered: float = 0.0
    completed_count: int = 0
    cancelled_count: int = 0

    @property
    def remaining(self) -> float:
        return max(0.0, self.granted - self.delivered)

    @property
    def over_delivered(self) -> float:
        return max(0.0, self.delivered - self.granted)


@dataclass
class ReconciliationReport:
    """Stored remaining quantity versus the ledger-derived one"""
    partner_id: str
    date: str
    allocated: float
    expected_remaining: float
    recorded_remaining: Optional[float]
    balance: LedgerBalance

    @property
    def drift(self) -> float:
        if self.recorded_remaining is None:
            return 0.0
        return self.recorded_remaining - self.expected_remaining

    @property
    def is_consistent(self) -> bool:
        return abs(self.drift) < EPSILON


def latest_allocation(allocations: Iterable[DailyAllocation]) -> Optional[DailyAllocation]:
    """The effective allocation: latest ``created_at`` wins, later position breaks ties"""
    latest = None
    for allocation in allocations:
        if latest is None or (allocation.created_at or '') >= (latest.created_at or ''):
            latest = allocation
    return latest


class AllocationLedger:
    """Append-only event log keyed by (partner, date)"""

    def __init__(self, events: Iterable[LedgerEvent] = ()):
        self._events: Dict[Tuple[str, str], List[LedgerEvent]] = {}
        for event in events:
            self.append(event)

    def append(self, event: LedgerEvent) -> None:
        self._events.setdefault((event.partner_id, event.date), []).append(event)

    def events_for(self, partner_id: str, date: str) -> List[LedgerEvent]:
        return list(self._events.get((partner_id, date), []))

    def balance(self, partner_id: str, date: str) -> LedgerBalance:
        balance = LedgerBalance()
        for event in self._events.get((partner_id, date), []):
            if isinstance(event, AllocationGranted):
                balance.granted += event.quantity
            elif isinstance(event, DeliveryCompleted):
                balance.delivered += event.quantity
                balance.completed_count += 1
            elif isinstance(event, DeliveryCancelled):
                balance.cancelled_count += 1
        return balance

    @classmethod
    def from_records(cls, allocations: Iterable[DailyAllocation],
                     deliveries: Iterable[Delivery]) -> 'AllocationLedger':
        """Build the ledger from stored allocation snapshots and deliveries.

        Each allocation row records the partner's cumulative allocation at
        that moment, so consecutive rows of a day become grant deltas.
        """
        ledger = cls()

        by_day: Dict[Tuple[str, str], List[DailyAllocation]] = {}
        for allocation in allocations:
            by_day.setdefault((allocation.delivery_partner_id, allocation.date), []).append(allocation)

        for (partner_id, date), rows in by_day.items():
            # stable sort keeps store order for equal timestamps
            rows = sorted(rows, key=lambda a: a.created_at or '')
            previous = 0.0
            for row in rows:
                delta = row.allocated_quantity - previous
                previous = row.allocated_quantity
                ledger.append(AllocationGranted(partner_id, date, delta, row.created_at))

        for delivery in deliveries:
            if delivery.status == DELIVERY_COMPLETED:
                ledger.append(DeliveryCompleted(
                    delivery.delivery_partner_id, delivery.date, delivery.id,
                    delivery.quantity, delivery.completed_time or ''
                ))
            elif delivery.status == DELIVERY_CANCELLED:
                ledger.append(DeliveryCancelled(
                    delivery.delivery_partner_id, delivery.date, delivery.id
                ))

        return ledger
