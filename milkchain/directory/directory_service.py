"""
Directory Service
=================
Registration and status management for the people the supply chain runs on.

Operations:
- Suppliers: register, approve/reject, delete
- Customers: add (optionally assigned to a partner), pause/activate, delete
- Delivery partners: add, pause/activate, delete
- Farmers: add
- Pickup logs: record milk collected from a farmer
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..results import OperationResult
from ..models import (
    Supplier, Customer, CustomerAssignment, DeliveryPartner, Farmer, PickupLog,
)
from ..store.repository import MirroredRepository
from .directory_validators import DirectoryValidator

logger = logging.getLogger(__name__)


def normalize_phone(phone: str) -> str:
    """Digits only, as customers and farmers log in by phone"""
    return ''.join(ch for ch in (phone or '') if ch.isdigit())


class DirectoryService:
    """CRUD for suppliers, customers, delivery partners, farmers and pickups"""

    def __init__(self, repository: MirroredRepository,
                 clock: Optional[Callable[[], datetime]] = None):
        self.repository = repository
        self.clock = clock or datetime.now
        self.validator = DirectoryValidator()

    def _today(self) -> str:
        return self.clock().date().isoformat()

    def _now(self) -> str:
        return self.clock().isoformat()

    # ================================================================
    # SUPPLIERS
    # ================================================================

    def add_supplier(self, name: str, email: str, username: str, password: str,
                     phone: str = '', address: str = '', license_number: str = '',
                     total_capacity: float = 0.0, status: str = 'pending') -> OperationResult:
        data = {
            'name': name, 'email': email, 'username': username, 'password': password,
            'phone': phone, 'address': address, 'license_number': license_number,
            'total_capacity': float(total_capacity or 0), 'status': status,
        }
        validation = self.validator.validate_supplier(data)
        validation.merge(self.validator.validate_status(status, DirectoryValidator.SUPPLIER_STATUSES))
        if not validation.is_valid:
            return OperationResult(success=False, message="Validation failed", errors=validation.errors)

        row = self.repository.insert(Supplier.TABLE, {
            **data, 'registration_date': self._today()
        })
        supplier = Supplier.from_row(row)
        logger.info(f"Supplier {supplier.name} ({supplier.id}) registered with status {status}")
        return OperationResult(success=True, message="Supplier registered", data={'supplier': supplier})

    def update_supplier_status(self, supplier_id: str, status: str) -> OperationResult:
        validation = self.validator.validate_status(status, ('approved', 'rejected'))
        if not validation.is_valid:
            return OperationResult(success=False, message="Validation failed", errors=validation.errors)

        if not self.repository.get(Supplier.TABLE, supplier_id):
            return OperationResult.failed(f"Supplier {supplier_id} not found")

        self.repository.update(Supplier.TABLE, {'id': supplier_id}, {'status': status})
        logger.info(f"Supplier {supplier_id} status updated to {status}")
        return OperationResult(success=True, message=f"Supplier {status}")

    def delete_supplier(self, supplier_id: str) -> OperationResult:
        removed = self.repository.delete(Supplier.TABLE, {'id': supplier_id})
        if not removed:
            return OperationResult.failed(f"Supplier {supplier_id} not found")
        logger.info(f"Supplier {supplier_id} deleted")
        return OperationResult(success=True, message="Supplier deleted")

    def get_suppliers(self, status: Optional[str] = None) -> List[Supplier]:
        filters = {'status': status} if status else None
        return Supplier.from_rows(self.repository.read(Supplier.TABLE, filters))

    def get_pending_suppliers(self) -> List[Supplier]:
        return self.get_suppliers('pending')

    def get_supplier(self, supplier_id: str) -> Optional[Supplier]:
        row = self.repository.get(Supplier.TABLE, supplier_id)
        return Supplier.from_row(row) if row else None

    # ================================================================
    # CUSTOMERS
    # ================================================================

    def add_customer(self, supplier_id: str, name: str, phone: str, address: str,
                     daily_quantity: float = 1.0, email: str = '',
                     assigned_partner_id: Optional[str] = None) -> OperationResult:
        data = {
            'supplier_id': supplier_id, 'name': name, 'email': email, 'phone': phone,
            'address': address, 'daily_quantity': daily_quantity,
        }
        validation = self.validator.validate_customer(data)
        if not validation.is_valid:
            return OperationResult(success=False, message="Validation failed", errors=validation.errors)

        row = self.repository.insert(Customer.TABLE, {
            **data, 'daily_quantity': float(daily_quantity), 'status': 'active'
        })
        customer = Customer.from_row(row)

        if assigned_partner_id:
            self.repository.insert(CustomerAssignment.TABLE, {
                'delivery_partner_id': assigned_partner_id,
                'customer_id': customer.id,
                'created_at': self._now(),
            })
            logger.info(f"Customer {customer.id} assigned to partner {assigned_partner_id}")

        logger.info(f"Customer {customer.name} ({customer.id}) added for supplier {supplier_id}")
        return OperationResult(success=True, message="Customer added", data={'customer': customer})

    def update_customer_status(self, customer_id: str, status: str) -> OperationResult:
        validation = self.validator.validate_status(status, DirectoryValidator.CUSTOMER_STATUSES)
        if not validation.is_valid:
            return OperationResult(success=False, message="Validation failed", errors=validation.errors)

        updated = self.repository.update(Customer.TABLE, {'id': customer_id}, {'status': status})
        if not updated:
            return OperationResult.failed(f"Customer {customer_id} not found")
        logger.info(f"Customer {customer_id} status updated to {status}")
        return OperationResult(success=True, message=f"Customer {'paused' if status == 'paused' else 'activated'}")

    def delete_customer(self, customer_id: str) -> OperationResult:
        removed = self.repository.delete(Customer.TABLE, {'id': customer_id})
        if not removed:
            return OperationResult.failed(f"Customer {customer_id} not found")
        self.repository.delete(CustomerAssignment.TABLE, {'customer_id': customer_id})
        logger.info(f"Customer {customer_id} deleted")
        return OperationResult(success=True, message="Customer deleted")

    def get_customers(self, supplier_id: Optional[str] = None,
                      ids: Optional[List[str]] = None) -> List[Customer]:
        filters: Dict = {}
        if supplier_id:
            filters['supplier_id'] = supplier_id
        if ids is not None:
            filters['id'] = list(ids)
        return Customer.from_rows(self.repository.read(Customer.TABLE, filters or None))

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        row = self.repository.get(Customer.TABLE, customer_id)
        return Customer.from_row(row) if row else None

    # ================================================================
    # DELIVERY PARTNERS
    # ================================================================

    def add_delivery_partner(self, supplier_id: str, name: str, email: str, phone: str,
                             password: str, vehicle_number: str = '',
                             status: str = 'active') -> OperationResult:
        data = {
            'supplier_id': supplier_id, 'name': name, 'email': email, 'phone': phone,
            'password': password, 'vehicle_number': vehicle_number, 'status': status,
        }
        validation = self.validator.validate_delivery_partner(data)
        if not validation.is_valid:
            return OperationResult(success=False, message="Validation failed", errors=validation.errors)

        row = self.repository.insert(DeliveryPartner.TABLE, {
            **data, 'daily_allocation': 0.0, 'remaining_quantity': 0.0,
        })
        partner = DeliveryPartner.from_row(row)
        logger.info(f"Delivery partner {partner.name} ({partner.id}) added for supplier {supplier_id}")
        return OperationResult(success=True, message="Delivery partner added", data={'partner': partner})

    def update_delivery_partner_status(self, partner_id: str, status: str) -> OperationResult:
        validation = self.validator.validate_status(status, DirectoryValidator.PARTNER_STATUSES)
        if not validation.is_valid:
            return OperationResult(success=False, message="Validation failed", errors=validation.errors)

        stored_status = 'active' if status == 'active' else 'inactive'
        updated = self.repository.update(DeliveryPartner.TABLE, {'id': partner_id}, {'status': stored_status})
        if not updated:
            return OperationResult.failed(f"Delivery partner {partner_id} not found")
        logger.info(f"Delivery partner {partner_id} status updated to {stored_status}")
        return OperationResult(success=True, message=f"Delivery partner {'paused' if status == 'paused' else 'activated'}")

    def delete_delivery_partner(self, partner_id: str) -> OperationResult:
        removed = self.repository.delete(DeliveryPartner.TABLE, {'id': partner_id})
        if not removed:
            return OperationResult.failed(f"Delivery partner {partner_id} not found")
        self.repository.delete(CustomerAssignment.TABLE, {'delivery_partner_id': partner_id})
        logger.info(f"Delivery partner {partner_id} deleted")
        return OperationResult(success=True, message="Delivery partner deleted")

    def get_delivery_partners(self, supplier_id: Optional[str] = None) -> List[DeliveryPartner]:
        filters = {'supplier_id': supplier_id} if supplier_id else None
        return DeliveryPartner.from_rows(self.repository.read(DeliveryPartner.TABLE, filters))

    # ================================================================
    # FARMERS
    # ================================================================

    def add_farmer(self, supplier_id: str, name: str, phone: str, password: str,
                   email: str = '', address: str = '', user_id: Optional[str] = None,
                   status: str = 'active') -> OperationResult:
        data = {
            'supplier_id': supplier_id, 'name': name, 'phone': phone, 'password': password,
            'email': email, 'address': address, 'status': status or 'active',
        }
        validation = self.validator.validate_farmer(data)
        if not validation.is_valid:
            return OperationResult(success=False, message="Validation failed", errors=validation.errors)

        row = self.repository.insert(Farmer.TABLE, {
            **data, 'user_id': user_id or normalize_phone(phone),
        })
        farmer = Farmer.from_row(row)
        logger.info(f"Farmer {farmer.name} ({farmer.id}) added for supplier {supplier_id}")
        return OperationResult(success=True, message="Farmer added", data={'farmer': farmer})

    def get_farmers(self, supplier_id: Optional[str] = None) -> List[Farmer]:
        filters = {'supplier_id': supplier_id} if supplier_id else None
        return Farmer.from_rows(self.repository.read(Farmer.TABLE, filters))

    def get_farmer(self, farmer_id: str) -> Optional[Farmer]:
        row = self.repository.get(Farmer.TABLE, farmer_id)
        return Farmer.from_row(row) if row else None

    # ================================================================
    # PICKUP LOGS
    # ================================================================

    def add_pickup_log(self, farmer_id: str, supplier_id: str, quantity: float,
                       price_per_liter: float, delivery_partner_id: Optional[str] = None,
                       quality_grade: str = 'A', fat_content: float = 0.0,
                       pickup_date: Optional[str] = None, notes: Optional[str] = None) -> PickupLog:
        """Record milk collected from a farmer. Callers validate first."""
        now = self._now()
        row = self.repository.insert(PickupLog.TABLE, {
            'farmer_id': farmer_id,
            'supplier_id': supplier_id,
            'delivery_partner_id': delivery_partner_id,
            'quantity': float(quantity),
            'quality_grade': quality_grade or 'A',
            'fat_content': float(fat_content or 0),
            'price_per_liter': float(price_per_liter),
            'total_amount': round(float(quantity) * float(price_per_liter), 2),
            'pickup_date': pickup_date or self._today(),
            'pickup_time': now,
            'status': 'completed',
            'notes': notes,
            'created_at': now,
        })
        pickup = PickupLog.from_row(row)
        logger.info(
            f"Pickup {pickup.id}: {pickup.quantity:g}L from farmer {farmer_id}, "
            f"total {pickup.total_amount:.2f}"
        )
        return pickup

    def get_pickup_logs(self, supplier_id: Optional[str] = None,
                        partner_id: Optional[str] = None,
                        start_date: Optional[str] = None,
                        end_date: Optional[str] = None) -> List[PickupLog]:
        filters: Dict = {}
        if supplier_id:
            filters['supplier_id'] = supplier_id
        if partner_id:
            filters['delivery_partner_id'] = partner_id

        pickups = PickupLog.from_rows(self.repository.read(PickupLog.TABLE, filters or None, 'pickup_date'))
        if start_date:
            pickups = [p for p in pickups if p.date >= start_date]
        if end_date:
            pickups = [p for p in pickups if p.date <= end_date]
        return pickups
