"""
Result objects returned across service boundaries.
"""
from typing import Dict, List
from dataclasses import dataclass, field


@dataclass
class ValidationResult:
    """Result of validation check"""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str):
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str):
        self.warnings.append(message)

    def merge(self, other: 'ValidationResult'):
        """Merge another validation result into this one"""
        if not other.is_valid:
            self.is_valid = False
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


@dataclass
class OperationResult:
    """Result of a service operation"""
    success: bool
    message: str
    data: Dict = None
    errors: List[str] = None

    def __post_init__(self):
        if self.errors is None:
            self.errors = []
        if self.data is None:
            self.data = {}

    @classmethod
    def failed(cls, message: str, errors: List[str] = None) -> 'OperationResult':
        return cls(success=False, message=message, errors=errors or [message])
