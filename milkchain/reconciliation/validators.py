"""
Validation rules for allocation and delivery operations.

These run before anything is written. Failures are returned as
``ValidationResult`` so the dashboards can show them next to the form.
"""
import logging
from datetime import date, datetime
from typing import Optional

from ..results import ValidationResult
from ..models import DELIVERY_STATUSES

logger = logging.getLogger(__name__)


class DeliveryValidator:
    """Validator for allocation, pickup and delivery operations"""

    def __init__(self):
        self.MIN_QUANTITY = 0.0
        self.MAX_REASON_LENGTH = 500
        self.VALID_QUALITY_GRADES = ['A', 'B', 'C']

    # ==================== Shared rules ====================

    def validate_date(self, value: str) -> ValidationResult:
        result = ValidationResult()
        if isinstance(value, (date, datetime)):
            return result
        try:
            datetime.strptime(str(value), '%Y-%m-%d')
        except ValueError:
            result.add_error(f"Invalid date '{value}'. Expected YYYY-MM-DD")
        return result

    def validate_status(self, status: str) -> ValidationResult:
        result = ValidationResult()
        if status not in DELIVERY_STATUSES:
            result.add_error(
                f"Invalid delivery status '{status}'. Must be one of {', '.join(DELIVERY_STATUSES)}"
            )
        return result

    # ==================== Allocation ====================

    def validate_allocation(self, partner_id: str, allocated_quantity: float,
                            allocation_date: str) -> ValidationResult:
        result = ValidationResult()
        if not partner_id:
            result.add_error("Delivery partner is required")
        if allocated_quantity is None or allocated_quantity < 0:
            result.add_error("Allocated quantity cannot be negative")
        result.merge(self.validate_date(allocation_date))
        return result

    def validate_pickup(self, farmer_id: str, quantity: float,
                        price_per_liter: float, quality_grade: str = 'A') -> ValidationResult:
        """Rules from the milk intake form"""
        result = ValidationResult()
        if not farmer_id:
            result.add_error("Please select a farmer")
        if quantity is None or quantity <= 0:
            result.add_error("Quantity must be greater than 0")
        if price_per_liter is None or price_per_liter <= 0:
            result.add_error("Price per liter must be greater than 0")
        if quality_grade not in self.VALID_QUALITY_GRADES:
            result.add_error(f"Quality grade must be one of {', '.join(self.VALID_QUALITY_GRADES)}")
        return result

    # ==================== Delivery ====================

    def validate_quantity(self, quantity: float) -> ValidationResult:
        result = ValidationResult()
        if quantity is None or quantity <= self.MIN_QUANTITY:
            result.add_error("Please enter a valid quantity greater than 0")
        return result

    def validate_cancellation(self, reason: Optional[str]) -> ValidationResult:
        result = ValidationResult()
        if not reason or not reason.strip():
            result.add_error("A reason is required to mark a delivery as failed")
        elif len(reason) > self.MAX_REASON_LENGTH:
            result.add_error(f"Reason must be at most {self.MAX_REASON_LENGTH} characters")
        return result

    def validate_temporary_delivery(self, customer_name: str, customer_phone: str,
                                    quantity: float) -> ValidationResult:
        result = ValidationResult()
        if not customer_name or not customer_phone:
            result.add_error("Please fill in all required fields")
        result.merge(self.validate_quantity(quantity))
        return result
