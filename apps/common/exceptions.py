"""
Domain exception hierarchy shared by all SplitBill apps.

Services raise these exceptions; they carry no HTTP knowledge. The DRF
exception handler in ``apps.common.exception_handler`` maps them to
responses.

Exception Hierarchy:
    SplitBillError (base)
    ├── ValidationError
    │   └── ReconciliationError
    ├── NotFoundError
    ├── ConflictError
    ├── PersistenceError
    └── StorageError

Usage:
    from apps.common.exceptions import ValidationError

    if amount <= 0:
        raise ValidationError("amount must be greater than 0", field='amount')
"""


class SplitBillError(Exception):
    """
    Base exception for all SplitBill service errors.

    Carries an optional ``field`` naming the offending input so callers can
    point at it.
    """

    default_message = 'An error occurred.'

    def __init__(self, message=None, *, field=None):
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)

    def to_dict(self):
        payload = {'error': self.message}
        if self.field:
            payload['field'] = self.field
        return payload


class ValidationError(SplitBillError):
    """Raised when input is missing or malformed. Nothing is written."""

    default_message = 'Invalid input.'


class ReconciliationError(ValidationError):
    """
    Raised when an expense split does not balance.

    Example:
        raise ReconciliationError(
            "Total percentage of amount_to_pay_percentage must be 100",
            field='participants',
        )
    """

    default_message = 'Expense split does not reconcile with the total amount.'


class NotFoundError(SplitBillError):
    """Raised when a referenced event, expense, participant or obligation is absent."""

    default_message = 'Resource not found.'


class ConflictError(SplitBillError):
    """
    Raised when an operation conflicts with current state.

    Typical causes are over-payment of an obligation or a slug collision
    that could not be resolved.
    """

    default_message = 'Operation conflicts with the current state.'


class PersistenceError(SplitBillError):
    """Raised when the database fails in a way the service cannot handle."""

    default_message = 'Persistence failure.'


class StorageError(SplitBillError):
    """Raised when the object storage backend fails."""

    default_message = 'Storage failure.'
