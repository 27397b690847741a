"""Exceptions raised by the loan tracker.

Validation problems are reported as :class:`ValidationError` before any data
reaches the amortization engine. Editing or deleting a month that is not in
the ledger raises :class:`PaymentNotFoundError` and leaves the store
untouched.
"""

from typing import Any, Optional


class LoanTrackerError(Exception):
    """Base class for loan tracker errors."""

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ValidationError(LoanTrackerError, ValueError):
    """Raised when loan settings or a payment entry fail validation."""


class PaymentNotFoundError(LoanTrackerError, KeyError):
    """Raised when a payment month is not present in the ledger."""

    def __init__(self, month: str) -> None:
        self.month = month
        super().__init__(f"No payment recorded for month {month}", details={"month": month})
