"""
Customer Service Errors
-----------------------
The error taxonomy surfaced by the reconciliation core. Source-level failures
never appear here; adapters and the orchestrator degrade them to "absent".
"""


class CustomerServiceError(Exception):
    """Base class for all errors raised by the unified customer core."""


class CustomerNotFoundError(CustomerServiceError):
    """Neither system holds a record for the requested email."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Customer with email '{email}' not found in any system")


class InvariantViolation(CustomerServiceError):
    """Raised when the merge engine is called without any record (caller bug)."""


class InvalidIdentity(CustomerServiceError, ValueError):
    """The supplied email fails normalization or validation."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid email format: {value}")
