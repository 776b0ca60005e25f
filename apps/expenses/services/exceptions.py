"""
Domain-specific exceptions for expenses app.

Exception Hierarchy (within apps.common.exceptions):
    NotFoundError
    ├── ExpenseNotFoundError
    ├── ObligationNotFoundError
    └── PaymentProofNotFoundError
    ConflictError
    └── OverpaymentError
"""

from apps.common.exceptions import ConflictError, NotFoundError


class ExpenseNotFoundError(NotFoundError):
    """Raised when an expense does not exist."""

    default_message = 'Expense not found'


class ObligationNotFoundError(NotFoundError):
    """Raised when a participant has no obligation on an expense."""

    default_message = 'Participant not found on this expense'


class PaymentProofNotFoundError(NotFoundError):
    """Raised when none of the requested payment proofs belong to the expense."""

    default_message = 'payment_proofs_ids not found'


class OverpaymentError(ConflictError):
    """
    Raised when a payment exceeds the remaining amount_to_pay.

    Over-payments are rejected, never clamped; the caller must re-read the
    remaining balance.
    """

    default_message = 'Amount is greater than the remaining amount to pay'
