"""
Directory Validators
====================
Required-field rules for the registration forms.
"""

import re
import logging
from typing import Dict, Any

from ..results import ValidationResult

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class DirectoryValidator:
    """Validator for supplier, customer, partner and farmer records"""

    SUPPLIER_STATUSES = ('pending', 'approved', 'rejected')
    CUSTOMER_STATUSES = ('active', 'paused')
    PARTNER_STATUSES = ('active', 'paused')

    def _require(self, data: Dict[str, Any], fields, result: ValidationResult):
        for name in fields:
            value = data.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                result.add_error(f"{name.replace('_', ' ').capitalize()} is required")

    def _check_email(self, data: Dict[str, Any], result: ValidationResult):
        email = data.get('email')
        if email and not EMAIL_PATTERN.match(email):
            result.add_error(f"Invalid email address: {email}")

    def validate_supplier(self, data: Dict[str, Any]) -> ValidationResult:
        result = ValidationResult()
        self._require(data, ['name', 'email', 'username', 'password'], result)
        self._check_email(data, result)
        capacity = data.get('total_capacity') or 0
        if capacity < 0:
            result.add_error("Total capacity cannot be negative")
        return result

    def validate_customer(self, data: Dict[str, Any]) -> ValidationResult:
        result = ValidationResult()
        self._require(data, ['name', 'phone', 'address'], result)
        self._check_email(data, result)
        quantity = data.get('daily_quantity')
        if quantity is None or quantity < 0:
            result.add_error("Daily quantity cannot be negative")
        return result

    def validate_delivery_partner(self, data: Dict[str, Any]) -> ValidationResult:
        result = ValidationResult()
        self._require(data, ['name', 'email', 'phone', 'password'], result)
        self._check_email(data, result)
        return result

    def validate_farmer(self, data: Dict[str, Any]) -> ValidationResult:
        result = ValidationResult()
        self._require(data, ['name', 'phone', 'password'], result)
        self._check_email(data, result)
        return result

    def validate_status(self, status: str, allowed) -> ValidationResult:
        result = ValidationResult()
        if status not in allowed:
            result.add_error(f"Invalid status '{status}'. Must be one of {', '.join(allowed)}")
        return result
