"""
Reconciliation Service - daily allocations, deliveries and remaining quantity.

A delivery partner gets an allocation for a day. Each allocation event
generates pending deliveries for the partner's assigned customers; completing
a delivery decrements the remaining quantity of the effective allocation.
The ledger re-derives that remaining quantity from the stored records so any
drift can be reported.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Any

from ..config import config
from ..results import OperationResult
from ..store.repository import MirroredRepository
from ..directory.directory_service import DirectoryService
from ..models import (
    Customer, CustomerAssignment, DeliveryPartner, DailyAllocation, Delivery, DeliveryKey,
    ALLOCATION_ALLOCATED, ALLOCATION_IN_PROGRESS, ALLOCATION_COMPLETED,
    DELIVERY_PENDING, DELIVERY_COMPLETED, DELIVERY_CANCELLED,
)
from .ledger import AllocationLedger, LedgerBalance, ReconciliationReport, latest_allocation
from .validators import DeliveryValidator

logger = logging.getLogger(__name__)

ASSIGNMENTS_TABLE = CustomerAssignment.TABLE
TEMP_CUSTOMER_PREFIX = '[TEMP] '


# ==================== CUSTOM EXCEPTIONS ====================
class ReconciliationError(Exception):
    """Base exception for allocation and delivery errors"""
    pass


class InsufficientQuantityError(ReconciliationError):
    """Raised when a delivery needs more milk than the partner has left"""
    def __init__(self, requested: float, remaining: float):
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            f"Insufficient milk quantity! Trying to deliver: {requested:g}L, "
            f"Remaining: {remaining:g}L. Contact your supplier for more allocation."
        )


class DeliveryNotFoundError(ReconciliationError):
    """Raised when a delivery can neither be found nor synthesized"""
    pass


# ==================== RECONCILIATION SERVICE ====================
class ReconciliationService:
    """Allocation, delivery and remaining-quantity operations for delivery partners"""

    def __init__(self, repository: MirroredRepository,
                 directory: Optional[DirectoryService] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 dedupe_deliveries: Optional[bool] = None,
                 scheduled_time: Optional[str] = None):
        self.repository = repository
        self.clock = clock or datetime.now
        self.directory = directory or DirectoryService(repository, clock=self.clock)
        self.validator = DeliveryValidator()

        # Configuration
        if dedupe_deliveries is None:
            dedupe_deliveries = config.is_feature_enabled('DEDUPE_GENERATED_DELIVERIES')
        self.dedupe_deliveries = bool(dedupe_deliveries)
        self.scheduled_time = scheduled_time or config.get_app_setting('DEFAULT_SCHEDULED_TIME', '08:00 AM')

        self._last_timestamp: Optional[datetime] = None

    # ==================== CLOCK ====================

    def _next_timestamp(self) -> str:
        """Strictly increasing ISO timestamp for this service instance"""
        now = self.clock()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now.isoformat(timespec='microseconds')

    def today(self) -> str:
        return self.clock().date().isoformat()

    # ==================== READS ====================

    def load_customer_assignments(self) -> Dict[str, List[str]]:
        """Assignment sets keyed by delivery partner id"""
        assignments: Dict[str, List[str]] = {}
        for row in self.repository.read(ASSIGNMENTS_TABLE):
            assignments.setdefault(row['delivery_partner_id'], []).append(row['customer_id'])
        return assignments

    def get_assigned_customer_ids(self, partner_id: str) -> List[str]:
        rows = self.repository.read(ASSIGNMENTS_TABLE, {'delivery_partner_id': partner_id})
        return [row['customer_id'] for row in rows]

    def get_partner(self, partner_id: str) -> Optional[DeliveryPartner]:
        row = self.repository.get(DeliveryPartner.TABLE, partner_id)
        if not row:
            return None
        partner = DeliveryPartner.from_row(row)
        partner.assigned_customers = self.get_assigned_customer_ids(partner_id)
        return partner

    def get_partners(self, supplier_id: Optional[str] = None) -> List[DeliveryPartner]:
        assignments = self.load_customer_assignments()
        partners = self.directory.get_delivery_partners(supplier_id)
        for partner in partners:
            partner.assigned_customers = assignments.get(partner.id, [])
        return partners

    def get_assigned_customers(self, partner_id: str) -> List[Customer]:
        """Assigned customers that still exist, in assignment order"""
        assigned_ids = self.get_assigned_customer_ids(partner_id)
        if not assigned_ids:
            return []
        by_id = {c.id: c for c in self.directory.get_customers(ids=assigned_ids)}
        return [by_id[cid] for cid in assigned_ids if cid in by_id]

    def get_daily_allocations(self, partner_id: Optional[str] = None,
                              date: Optional[str] = None) -> List[DailyAllocation]:
        """Allocation rows in store order"""
        filters: Dict[str, Any] = {}
        if partner_id:
            filters['delivery_partner_id'] = partner_id
        if date:
            filters[DailyAllocation.column_for('date')] = date
        return DailyAllocation.from_rows(self.repository.read(DailyAllocation.TABLE, filters or None))

    def get_daily_allocation(self, partner_id: str, date: str) -> Optional[DailyAllocation]:
        """The effective allocation for a partner and day"""
        return latest_allocation(self.get_daily_allocations(partner_id, date))

    def get_deliveries(self, partner_id: Optional[str] = None, date: Optional[str] = None,
                       customer_id: Optional[str] = None,
                       status: Optional[str] = None) -> List[Delivery]:
        filters: Dict[str, Any] = {}
        if partner_id:
            filters['delivery_partner_id'] = partner_id
        if date:
            filters[Delivery.column_for('date')] = date
        if customer_id:
            filters['customer_id'] = customer_id
        if status:
            filters['status'] = status
        return Delivery.from_rows(self.repository.read(Delivery.TABLE, filters or None))

    def get_delivery(self, delivery_id: str) -> Optional[Delivery]:
        row = self.repository.get(Delivery.TABLE, delivery_id)
        return Delivery.from_row(row) if row else None

    def find_delivery(self, key: DeliveryKey) -> Optional[Delivery]:
        """Stored delivery for the key, preferring one that is still pending"""
        rows = self.get_deliveries(key.partner_id, key.date, key.customer_id)
        for delivery in rows:
            if delivery.status == DELIVERY_PENDING:
                return delivery
        return rows[0] if rows else None

    # ==================== ALLOCATION ====================

    def add_daily_allocation(self, partner_id: str, supplier_id: str, date: str,
                             allocated_quantity: float,
                             remaining_quantity: Optional[float] = None,
                             status: str = ALLOCATION_ALLOCATED) -> OperationResult:
        """Append an allocation snapshot and generate deliveries for it.

        Allocation rows are never updated in place by this call: the newest
        row for a (partner, date) becomes the effective one.
        """
        validation = self.validator.validate_allocation(partner_id, allocated_quantity, date)
        if not validation.is_valid:
            return OperationResult(success=False, message="Validation failed", errors=validation.errors)

        try:
            if remaining_quantity is None:
                remaining_quantity = allocated_quantity

            row = self.repository.insert(DailyAllocation.TABLE, DailyAllocation(
                id='',
                supplier_id=supplier_id,
                delivery_partner_id=partner_id,
                date=date,
                allocated_quantity=float(allocated_quantity),
                remaining_quantity=float(remaining_quantity),
                status=status,
                created_at=self._next_timestamp(),
            ).to_row())
            allocation = DailyAllocation.from_row(row)

            logger.info(
                f"Allocation {allocation.id}: partner {partner_id} on {date} "
                f"allocated {allocation.allocated_quantity:g}L, remaining {allocation.remaining_quantity:g}L"
            )

            if date == self.today():
                self._project_partner(partner_id, allocation)

        except Exception as e:
            logger.error(f"Error adding daily allocation: {e}", exc_info=True)
            return OperationResult.failed("Failed to add daily allocation", [str(e)])

        # the allocation row is stored; a generation failure does not undo it
        try:
            deliveries = self.generate_deliveries_from_allocation(allocation)
        except Exception as e:
            logger.error(f"Error generating deliveries for allocation {allocation.id}: {e}", exc_info=True)
            return OperationResult(
                success=True,
                message=f"Allocated {allocation.allocated_quantity:g}L, but deliveries could not be generated",
                data={'allocation': allocation, 'deliveries': [], 'warnings': [str(e)]}
            )

        return OperationResult(
            success=True,
            message=f"Allocated {allocation.allocated_quantity:g}L, {len(deliveries)} deliveries generated",
            data={'allocation': allocation, 'deliveries': deliveries}
        )

    def generate_deliveries_from_allocation(self, allocation: DailyAllocation) -> List[Delivery]:
        """One pending delivery per assigned customer for the allocation's day"""
        customers = self.get_assigned_customers(allocation.delivery_partner_id)
        if not customers:
            logger.info(f"No assigned customers for partner {allocation.delivery_partner_id}, no deliveries generated")
            return []

        if self.dedupe_deliveries:
            existing = {d.customer_id for d in self.get_deliveries(allocation.delivery_partner_id, allocation.date)}
            skipped = [c.id for c in customers if c.id in existing]
            if skipped:
                logger.info(f"Skipping {len(skipped)} customer(s) that already have a delivery on {allocation.date}")
            customers = [c for c in customers if c.id not in existing]

        new_deliveries = [
            Delivery(
                id='',
                customer_id=customer.id,
                delivery_partner_id=allocation.delivery_partner_id,
                supplier_id=allocation.supplier_id,
                quantity=customer.daily_quantity,
                suggested_quantity=customer.daily_quantity,
                date=allocation.date,
                status=DELIVERY_PENDING,
                scheduled_time=self.scheduled_time,
            ).to_row()
            for customer in customers
        ]
        rows = self.repository.insert_many(Delivery.TABLE, new_deliveries)

        logger.info(f"Generated {len(rows)} deliveries for allocation {allocation.id}")
        return Delivery.from_rows(rows)

    def record_pickup(self, partner_id: str, farmer_id: str, quantity: float,
                      price_per_liter: float, quality_grade: str = 'A',
                      fat_content: float = 0.0, notes: Optional[str] = None,
                      date: Optional[str] = None) -> OperationResult:
        """Milk collected from a farmer raises the partner's allocation for the day"""
        date = date or self.today()
        validation = self.validator.validate_pickup(farmer_id, quantity, price_per_liter, quality_grade)
        validation.merge(self.validator.validate_date(date))
        if not validation.is_valid:
            return OperationResult(success=False, message="Validation failed", errors=validation.errors)

        partner = self.get_partner(partner_id)
        if partner is None:
            return OperationResult.failed(f"Delivery partner {partner_id} not found")

        try:
            pickup = self.directory.add_pickup_log(
                farmer_id=farmer_id,
                supplier_id=partner.supplier_id,
                quantity=quantity,
                price_per_liter=price_per_liter,
                delivery_partner_id=partner_id,
                quality_grade=quality_grade,
                fat_content=fat_content,
                pickup_date=date,
                notes=notes,
            )

            current = self.get_daily_allocation(partner_id, date)
            allocated = (current.allocated_quantity if current else 0.0) + float(quantity)
            remaining = (current.remaining_quantity if current else 0.0) + float(quantity)

        except Exception as e:
            logger.error(f"Error recording pickup: {e}", exc_info=True)
            return OperationResult.failed("Failed to record milk intake", [str(e)])

        result = self.add_daily_allocation(
            partner_id, partner.supplier_id, date, allocated, remaining, ALLOCATION_ALLOCATED
        )
        if not result.success:
            return result

        return OperationResult(
            success=True,
            message=f"Milk intake recorded, allocation increased by {float(quantity):g}L",
            data={'pickup': pickup, **result.data}
        )

    def allocate_stock(self, supplier_id: str, partner_id: str, quantity: float,
                       date: Optional[str] = None) -> OperationResult:
        """Supplier hands a partner a fresh absolute allocation"""
        if self.get_partner(partner_id) is None:
            return OperationResult.failed(f"Delivery partner {partner_id} not found")
        return self.add_daily_allocation(partner_id, supplier_id, date or self.today(), quantity)

    # ==================== REMAINING QUANTITY ====================

    def update_remaining_quantity(self, partner_id: str, date: str,
                                  delivered_quantity: float) -> Optional[DailyAllocation]:
        """Deduct a delivered quantity from the effective allocation.

        Returns the updated allocation, or None when the partner has no
        allocation for the day.
        """
        allocation = self.get_daily_allocation(partner_id, date)
        if allocation is None:
            logger.info(f"No allocation for partner {partner_id} on {date}, nothing to deduct")
            return None

        new_remaining = max(0.0, allocation.remaining_quantity - float(delivered_quantity))
        new_status = ALLOCATION_COMPLETED if new_remaining <= 0 else ALLOCATION_IN_PROGRESS

        self.repository.update(
            DailyAllocation.TABLE, {'id': allocation.id},
            {'remaining_quantity': new_remaining, 'status': new_status}
        )
        self.repository.update(
            DeliveryPartner.TABLE, {'id': partner_id}, {'remaining_quantity': new_remaining}
        )

        allocation.remaining_quantity = new_remaining
        allocation.status = new_status
        logger.info(f"Updated remaining quantity for partner {partner_id} on {date}: {new_remaining:g}L")
        return allocation

    def _project_partner(self, partner_id: str, allocation: DailyAllocation) -> None:
        self.repository.update(DeliveryPartner.TABLE, {'id': partner_id}, {
            'daily_allocation': allocation.allocated_quantity,
            'remaining_quantity': allocation.remaining_quantity,
        })

    def refresh_partner_projections(self, date: Optional[str] = None) -> int:
        """Recompute every partner's denormalized allocation figures for a day"""
        date = date or self.today()
        updated = 0
        for partner in self.directory.get_delivery_partners():
            allocation = self.get_daily_allocation(partner.id, date)
            if allocation is None:
                self.repository.update(DeliveryPartner.TABLE, {'id': partner.id},
                                       {'daily_allocation': 0.0, 'remaining_quantity': 0.0})
            else:
                self._project_partner(partner.id, allocation)
            updated += 1
        logger.info(f"Refreshed allocation projections for {updated} partner(s) on {date}")
        return updated

    # ==================== DELIVERY STATUS ====================

    def _synthesize_delivery(self, delivery_id: str, status: str,
                             notes: Optional[str], quantity: Optional[float]) -> Delivery:
        key = DeliveryKey.parse(
            delivery_id,
            (row['id'] for row in self.repository.read(Customer.TABLE)),
            (row['id'] for row in self.repository.read(DeliveryPartner.TABLE)),
        )
        if key is None:
            logger.warning(f"Delivery {delivery_id} not found and its id does not name a known customer and partner")
            raise DeliveryNotFoundError(f"Delivery not found: {delivery_id}")

        customer = self.directory.get_customer(key.customer_id)
        partner = self.get_partner(key.partner_id)

        delivery = Delivery(
            id=delivery_id,
            customer_id=key.customer_id,
            delivery_partner_id=key.partner_id,
            supplier_id=partner.supplier_id,
            quantity=float(quantity) if quantity is not None else customer.daily_quantity,
            suggested_quantity=customer.daily_quantity,
            date=key.date,
            status=status,
            scheduled_time=self.scheduled_time,
            notes=notes or '',
            completed_time=self._next_timestamp() if status == DELIVERY_COMPLETED else None,
        )
        self.repository.insert(Delivery.TABLE, delivery.to_row())
        logger.info(f"Created delivery {delivery_id} for customer {key.customer_id} on {key.date}")
        return delivery

    def update_delivery_status(self, delivery_id: str, status: str,
                               notes: Optional[str] = None,
                               quantity: Optional[float] = None) -> OperationResult:
        """Move a delivery to pending, completed or cancelled.

        A missing delivery is created from its ``{customer}_{partner}_{date}``
        identifier. Completing deducts the final quantity from the partner's
        remaining allocation; cancelling never does.
        """
        validation = self.validator.validate_status(status)
        if not validation.is_valid:
            return OperationResult(success=False, message="Validation failed", errors=validation.errors)

        try:
            existing = self.get_delivery(delivery_id)

            if existing is None:
                delivery = self._synthesize_delivery(delivery_id, status, notes, quantity)
            else:
                if status == DELIVERY_COMPLETED and existing.status == DELIVERY_COMPLETED:
                    logger.warning(
                        f"Delivery {delivery_id} is already completed, its quantity will be deducted again"
                    )

                patch: Dict[str, Any] = {'status': status, 'notes': notes}
                if quantity is not None:
                    patch['quantity'] = float(quantity)
                if status == DELIVERY_COMPLETED:
                    patch['completed_time'] = self._next_timestamp()
                self.repository.update(Delivery.TABLE, {'id': delivery_id}, patch)

                delivery = existing
                delivery.status = status
                delivery.notes = notes
                delivery.quantity = patch.get('quantity', existing.quantity)
                delivery.completed_time = patch.get('completed_time', existing.completed_time)

            allocation = None
            if status == DELIVERY_COMPLETED:
                final_quantity = float(quantity) if quantity is not None else delivery.quantity
                allocation = self.update_remaining_quantity(
                    delivery.delivery_partner_id, delivery.date, final_quantity
                )

            logger.info(f"Delivery {delivery_id} marked {status}")
            return OperationResult(
                success=True,
                message=f"Delivery {status}",
                data={'delivery': delivery, 'allocation': allocation}
            )

        except DeliveryNotFoundError as e:
            return OperationResult.failed("Delivery not found", [str(e)])
        except Exception as e:
            logger.error(f"Error updating delivery status: {e}", exc_info=True)
            return OperationResult.failed("Failed to update delivery status", [str(e)])

    def upsert_delivery(self, key: DeliveryKey, quantity: Optional[float] = None,
                        status: str = DELIVERY_PENDING,
                        notes: Optional[str] = None) -> Delivery:
        """Return the delivery for the key, creating it when absent"""
        existing = self.find_delivery(key)
        if existing is not None:
            return existing

        customer = self.directory.get_customer(key.customer_id)
        partner = self.get_partner(key.partner_id)
        if customer is None or partner is None:
            raise DeliveryNotFoundError(f"Unknown customer or partner for delivery {key.delivery_id}")

        delivery = Delivery(
            id=key.delivery_id,
            customer_id=key.customer_id,
            delivery_partner_id=key.partner_id,
            supplier_id=partner.supplier_id,
            quantity=float(quantity) if quantity is not None else customer.daily_quantity,
            suggested_quantity=customer.daily_quantity,
            date=key.date,
            status=status,
            scheduled_time=self.scheduled_time,
            notes=notes,
        )
        self.repository.insert(Delivery.TABLE, delivery.to_row())
        logger.info(f"Created delivery {delivery.id}")
        return delivery

    def update_delivery_status_for(self, customer_id: str, partner_id: str, date: str,
                                   status: str, notes: Optional[str] = None,
                                   quantity: Optional[float] = None) -> OperationResult:
        """Status update addressed by customer, partner and day"""
        key = DeliveryKey(customer_id, partner_id, date)
        existing = self.find_delivery(key)
        delivery_id = existing.id if existing else key.delivery_id
        return self.update_delivery_status(delivery_id, status, notes, quantity)

    # ==================== DASHBOARD ACTIONS ====================

    def complete_delivery(self, partner_id: str, customer_id: str,
                          quantity: Optional[float] = None,
                          date: Optional[str] = None) -> OperationResult:
        """Deliver to an assigned customer, defaulting to their daily quantity"""
        date = date or self.today()
        customer = self.directory.get_customer(customer_id)
        if customer is None:
            return OperationResult.failed(f"Customer {customer_id} not found")

        if quantity is None:
            quantity = customer.daily_quantity

        validation = self.validator.validate_quantity(quantity)
        if not validation.is_valid:
            return OperationResult(success=False, message="Validation failed", errors=validation.errors)

        try:
            remaining = self._check_remaining(partner_id, date, quantity)
        except InsufficientQuantityError as e:
            return OperationResult.failed(str(e))

        result = self.update_delivery_status_for(
            customer_id, partner_id, date, DELIVERY_COMPLETED,
            f"Delivered {quantity:g}L to {customer.name} on {date}", quantity
        )
        if result.success:
            result.message = f"Delivered {quantity:g}L to {customer.name}. Remaining: {remaining - quantity:g}L"
        return result

    def fail_delivery(self, partner_id: str, customer_id: str, reason: str,
                      date: Optional[str] = None) -> OperationResult:
        """Cancel a delivery; nothing is deducted from the allocation"""
        validation = self.validator.validate_cancellation(reason)
        if not validation.is_valid:
            return OperationResult(success=False, message="Validation failed", errors=validation.errors)

        customer = self.directory.get_customer(customer_id)
        if customer is None:
            return OperationResult.failed(f"Customer {customer_id} not found")

        result = self.update_delivery_status_for(
            customer_id, partner_id, date or self.today(), DELIVERY_CANCELLED,
            f"Failed delivery to {customer.name}: {reason}"
        )
        if result.success:
            result.message = f"Delivery to {customer.name} marked as failed. No milk deducted."
        return result

    def record_temporary_delivery(self, partner_id: str, customer_name: str,
                                  customer_phone: str, quantity: float,
                                  customer_address: str = '', notes: str = '',
                                  date: Optional[str] = None) -> OperationResult:
        """One-off delivery to someone outside the assignment list"""
        validation = self.validator.validate_temporary_delivery(customer_name, customer_phone, quantity)
        if not validation.is_valid:
            return OperationResult(success=False, message="Validation failed", errors=validation.errors)

        partner = self.get_partner(partner_id)
        if partner is None:
            return OperationResult.failed(f"Delivery partner {partner_id} not found")

        date = date or self.today()
        try:
            self._check_remaining(partner_id, date, quantity)
        except InsufficientQuantityError as e:
            return OperationResult.failed(str(e))

        stamp = self._next_timestamp()
        customer_result = self.directory.add_customer(
            supplier_id=partner.supplier_id,
            name=f"{TEMP_CUSTOMER_PREFIX}{customer_name}",
            phone=customer_phone,
            address=customer_address or 'Temporary address',
            daily_quantity=0.0,
            email=f"temp_{self.clock().strftime('%Y%m%d%H%M%S%f')}@temporary.com",
        )
        if not customer_result.success:
            return customer_result
        customer = customer_result.data['customer']

        try:
            row = self.repository.insert(Delivery.TABLE, Delivery(
                id='',
                customer_id=customer.id,
                delivery_partner_id=partner_id,
                supplier_id=partner.supplier_id,
                quantity=float(quantity),
                suggested_quantity=float(quantity),
                date=date,
                status=DELIVERY_COMPLETED,
                scheduled_time=stamp,
                completed_time=stamp,
                notes=f"TEMPORARY DELIVERY - {notes or 'One-time delivery'}",
            ).to_row())
            allocation = self.update_remaining_quantity(partner_id, date, quantity)

        except Exception as e:
            logger.error(f"Error recording temporary delivery: {e}", exc_info=True)
            return OperationResult.failed("Failed to record temporary delivery", [str(e)])

        logger.info(f"Temporary delivery of {float(quantity):g}L to {customer_name} by partner {partner_id}")
        return OperationResult(
            success=True,
            message=f"Temporary delivery recorded: {float(quantity):g}L to {customer_name}",
            data={'delivery': Delivery.from_row(row), 'customer': customer, 'allocation': allocation}
        )

    def _check_remaining(self, partner_id: str, date: str, quantity: float) -> float:
        remaining = self.ledger_for(partner_id, date).balance(partner_id, date).remaining
        if remaining < quantity:
            raise InsufficientQuantityError(float(quantity), remaining)
        if remaining == quantity:
            logger.info(f"Partner {partner_id} is delivering the last of the allocation for {date}")
        return remaining

    # ==================== ASSIGNMENTS ====================

    def assign_customers_to_partner(self, partner_id: str, customer_ids: List[str]) -> OperationResult:
        """Replace the partner's assignment set"""
        try:
            self.repository.delete(ASSIGNMENTS_TABLE, {'delivery_partner_id': partner_id})

            unique_ids = list(dict.fromkeys(customer_ids))
            now = self._next_timestamp()
            self.repository.insert_many(ASSIGNMENTS_TABLE, [
                {'delivery_partner_id': partner_id, 'customer_id': customer_id, 'created_at': now}
                for customer_id in unique_ids
            ])

            logger.info(f"Assigned {len(unique_ids)} customer(s) to partner {partner_id}")
            return OperationResult(
                success=True,
                message=f"{len(unique_ids)} customer(s) assigned",
                data={'customer_ids': unique_ids}
            )

        except Exception as e:
            logger.error(f"Error assigning customers to partner {partner_id}: {e}", exc_info=True)
            return OperationResult.failed("Failed to assign customers", [str(e)])

    # ==================== LEDGER ====================

    def ledger_for(self, partner_id: str, date: str) -> AllocationLedger:
        return AllocationLedger.from_records(
            self.get_daily_allocations(partner_id, date),
            self.get_deliveries(partner_id, date),
        )

    def partner_progress(self, partner_id: str, date: Optional[str] = None) -> Dict[str, Any]:
        """Figures for the partner's day: allocated, delivered, remaining, completed, customers"""
        date = date or self.today()
        balance: LedgerBalance = self.ledger_for(partner_id, date).balance(partner_id, date)
        return {
            'allocated': balance.granted,
            'delivered': balance.delivered,
            'remaining': balance.remaining,
            'completed_deliveries': balance.completed_count,
            'cancelled_deliveries': balance.cancelled_count,
            'total_customers': len(self.get_assigned_customers(partner_id)),
        }

    def reconcile(self, partner_id: str, date: Optional[str] = None) -> ReconciliationReport:
        """Compare the stored remaining quantity with the ledger-derived one"""
        date = date or self.today()
        balance = self.ledger_for(partner_id, date).balance(partner_id, date)
        effective = self.get_daily_allocation(partner_id, date)

        report = ReconciliationReport(
            partner_id=partner_id,
            date=date,
            allocated=balance.granted,
            expected_remaining=balance.remaining,
            recorded_remaining=effective.remaining_quantity if effective else None,
            balance=balance,
        )
        if not report.is_consistent:
            logger.warning(
                f"Remaining quantity drift for partner {partner_id} on {date}: "
                f"recorded {report.recorded_remaining:g}L, expected {report.expected_remaining:g}L"
            )
        return report
