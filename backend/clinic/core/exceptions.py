"""
Custom exceptions for the application.

Every error a service can raise derives from ClinicError and carries the
HTTP status the error handler should answer with.
"""

from typing import Dict, Optional


class ClinicError(Exception):
    """Base class for all domain and application errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ClinicError):
    """Input failed schema validation. `errors` maps field name to reason."""

    status_code = 400

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.errors = errors or {}


class NotFoundError(ClinicError):
    status_code = 404

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        if resource_id is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} {resource_id} not found"
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class DomainRuleError(ClinicError):
    """A business invariant rejected the operation."""

    status_code = 400


class InsufficientStockError(DomainRuleError):
    def __init__(self, item_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {item_name}: "
            f"{available} available, {requested} requested"
        )
        self.available = available
        self.requested = requested


class InvalidStateTransitionError(DomainRuleError):
    def __init__(self, resource: str, current: str, target: str):
        super().__init__(f"{resource} cannot move from '{current}' to '{target}'")
        self.current = current
        self.target = target


class ConcurrencyConflictError(ClinicError):
    """The record changed underneath us and the retry also lost the race."""

    status_code = 409


class PaymentProviderError(ClinicError):
    status_code = 502
