"""
Expenses app services layer.

Services own allocation of expense totals, the expense catalog, settlement
of obligations and payment proofs. All state-changing operations run in
transactions.
"""

from .exceptions import (
    ExpenseNotFoundError,
    ObligationNotFoundError,
    PaymentProofNotFoundError,
    OverpaymentError,
)

from .allocation import (
    Share,
    allocate,
    validate_allocation,
    validate_expense_fields,
    expense_total,
    split_cents,
)

from .expense_management import (
    create_expense,
    get_expense_by_id,
    update_expense,
    delete_expense,
    list_expenses,
    list_expense_participants,
    EXPENSE_SORT_FIELDS,
    EXPENSE_PARTICIPANT_SORT_FIELDS,
)

from .settlement import (
    PaymentResult,
    find_payable_obligation,
    explain_unpayable,
    record_payment,
    pay_expense,
    get_settlement_summary,
)

from .payment_proofs import (
    add_payment_proofs,
    list_payment_proofs,
    delete_payment_proofs,
)


__all__ = [
    # Exceptions
    'ExpenseNotFoundError',
    'ObligationNotFoundError',
    'PaymentProofNotFoundError',
    'OverpaymentError',

    # Allocation
    'Share',
    'allocate',
    'validate_allocation',
    'validate_expense_fields',
    'expense_total',
    'split_cents',

    # Expense Management
    'create_expense',
    'get_expense_by_id',
    'update_expense',
    'delete_expense',
    'list_expenses',
    'list_expense_participants',
    'EXPENSE_SORT_FIELDS',
    'EXPENSE_PARTICIPANT_SORT_FIELDS',

    # Settlement
    'PaymentResult',
    'find_payable_obligation',
    'explain_unpayable',
    'record_payment',
    'pay_expense',
    'get_settlement_summary',

    # Payment Proofs
    'add_payment_proofs',
    'list_payment_proofs',
    'delete_payment_proofs',
]
