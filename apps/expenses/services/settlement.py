"""
Settlement service.

Tracks how much each participant still owes on an expense and records
payments against those obligations.

Payment flow (``pay_expense``):
    1. Check the expense exists and the amount is positive
    2. Validate every proof file (nothing is uploaded if one is invalid)
    3. Find the obligation that can absorb the amount
    4. Upload proof files concurrently
    5. Decrement the obligation and attach the proofs in one transaction
    6. If step 5 fails, delete the files uploaded in step 4

``amount_to_pay`` holds the remaining balance and only ever decreases;
``paid_amount``/``paid_at`` describe the most recent payment.
"""

import logging
from decimal import Decimal
from typing import List, NamedTuple, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from apps.common.exceptions import ValidationError
from apps.common.storage import UploadResult, delete_files, upload_files, validate_uploads
from apps.expenses.models import Expense, ExpenseParticipant, ParticipantTag, PaymentProof

from .allocation import to_money
from .exceptions import ExpenseNotFoundError, ObligationNotFoundError, OverpaymentError

logger = logging.getLogger(__name__)

PAYMENT_PROOF_FOLDER = 'expense_participant'


class PaymentResult(NamedTuple):
    """Updated obligation plus the outcome of every proof upload."""

    obligation: ExpenseParticipant
    uploads: List[UploadResult]


def _positive_amount(amount) -> Decimal:
    amount = to_money(amount, 'amount')
    if amount is None or amount <= 0:
        raise ValidationError("amount must be greater than 0", field='amount')
    return amount


def find_payable_obligation(
    *,
    expense_id: UUID,
    participant_id: UUID,
    amount
) -> Optional[ExpenseParticipant]:
    """
    Find the participant's obligation on an expense if it can absorb ``amount``.

    Returns:
        ExpenseParticipant, or None when the participant has no obligation on
        the expense or ``amount`` exceeds the remaining balance.
        Use ``explain_unpayable`` to tell the two cases apart.
    """
    return (
        ExpenseParticipant.objects
        .filter(
            expense_id=expense_id,
            participant_id=participant_id,
            amount_to_pay__gte=amount,
        )
        .first()
    )


def explain_unpayable(*, expense_id: UUID, participant_id: UUID, amount) -> None:
    """
    Raise the reason ``find_payable_obligation`` found nothing.

    Returns quietly if the obligation exists and can absorb ``amount``.

    Raises:
        ObligationNotFoundError: If the participant has no obligation on the expense
        OverpaymentError: If amount is greater than the remaining amount to pay
    """
    obligation = (
        ExpenseParticipant.objects
        .filter(expense_id=expense_id, participant_id=participant_id)
        .first()
    )

    if obligation is None:
        raise ObligationNotFoundError(field='participant_id')

    if Decimal(amount) > obligation.amount_to_pay:
        raise OverpaymentError(
            f"Amount {amount} is greater than the remaining amount to pay "
            f"({obligation.amount_to_pay})",
            field='amount',
        )


def record_payment(*, obligation_id: UUID, amount, proofs=()) -> ExpenseParticipant:
    """
    Apply a payment to an obligation and attach its proofs.

    The decrement is guarded by ``amount_to_pay >= amount`` in the UPDATE
    itself, so two concurrent payments can never drive the balance below
    zero. Proof rows are written in the same transaction.

    Args:
        obligation_id: ExpenseParticipant ID
        amount: Amount paid (> 0, <= remaining amount_to_pay)
        proofs: Stored files (objects with ``path`` and ``url``)

    Returns:
        Refreshed ExpenseParticipant

    Raises:
        ValidationError: If amount <= 0
        ObligationNotFoundError: If the obligation doesn't exist
        OverpaymentError: If amount is greater than the remaining amount to pay
    """
    amount = _positive_amount(amount)

    with transaction.atomic():
        try:
            obligation = ExpenseParticipant.objects.select_for_update().get(id=obligation_id)
        except ExpenseParticipant.DoesNotExist:
            raise ObligationNotFoundError(f"Obligation with ID {obligation_id} not found")

        if amount > obligation.amount_to_pay:
            raise OverpaymentError(
                f"Amount {amount} is greater than the remaining amount to pay "
                f"({obligation.amount_to_pay})",
                field='amount',
            )

        now = timezone.now()
        updated = (
            ExpenseParticipant.objects
            .filter(id=obligation.id, amount_to_pay__gte=amount)
            .update(
                amount_to_pay=F('amount_to_pay') - amount,
                paid_amount=amount,
                paid_at=now,
                updated_at=now,
            )
        )
        if not updated:
            raise OverpaymentError(field='amount')

        PaymentProof.objects.bulk_create([
            PaymentProof(expense_participant=obligation, path=proof.path, url=proof.url)
            for proof in proofs
        ])

        obligation.refresh_from_db()

    logger.info(
        "Recorded payment of %s on obligation %s (remaining %s)",
        amount,
        obligation.id,
        obligation.amount_to_pay,
    )
    return obligation


def pay_expense(*, expense_id: UUID, participant_id: UUID, amount, files=()) -> PaymentResult:
    """
    Pay (part of) a participant's obligation on an expense, with proof files.

    Args:
        expense_id: Expense ID
        participant_id: Paying participant ID
        amount: Amount paid
        files: Uploaded proof files (jpg, jpeg, png or pdf, at most 2 MB each)

    Returns:
        PaymentResult with the updated obligation and one UploadResult per file

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        ValidationError: If amount <= 0 or a file is rejected
        ObligationNotFoundError: If the participant has no obligation on the expense
        OverpaymentError: If amount is greater than the remaining amount to pay
    """
    if not Expense.objects.filter(id=expense_id).exists():
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")

    amount = _positive_amount(amount)

    files = list(files)
    validate_uploads(files)

    obligation = find_payable_obligation(
        expense_id=expense_id,
        participant_id=participant_id,
        amount=amount,
    )
    if obligation is None:
        explain_unpayable(expense_id=expense_id, participant_id=participant_id, amount=amount)
        raise OverpaymentError(field='amount')

    uploads = upload_files(PAYMENT_PROOF_FOLDER, files)
    stored = [upload for upload in uploads if upload.ok]

    for upload in uploads:
        if not upload.ok:
            logger.warning("Payment proof %s was not stored: %s", upload.file_name, upload.error)

    try:
        obligation = record_payment(obligation_id=obligation.id, amount=amount, proofs=stored)
    except Exception:
        # Files without a proof row would never be cleaned up
        delete_files([upload.path for upload in stored])
        raise

    return PaymentResult(obligation=obligation, uploads=uploads)


def get_settlement_summary(*, expense_id: UUID) -> dict:
    """
    Summarise how much of an expense has been paid back.

    Returns:
        dict with:
            - expense (Expense)
            - total_amount (Decimal): amount + tax + service_fee - discount
            - outstanding_amount (Decimal): sum of remaining amount_to_pay
            - collected_amount (Decimal): total_amount - outstanding_amount
            - settled_count / unsettled_count (int): non-payer obligations
            - is_fully_settled (bool)
            - unsettled (list[ExpenseParticipant])

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
    """
    try:
        expense = Expense.objects.get(id=expense_id)
    except Expense.DoesNotExist:
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")

    obligations = (
        expense.expense_participants
        .filter(tag=ParticipantTag.PARTICIPANT)
        .select_related('participant')
    )

    outstanding = obligations.aggregate(total=Sum('amount_to_pay'))['total'] or Decimal('0.00')
    unsettled = [o for o in obligations if o.amount_to_pay > 0]
    total_amount = expense.total_amount

    return {
        'expense': expense,
        'total_amount': total_amount,
        'outstanding_amount': outstanding,
        'collected_amount': total_amount - outstanding,
        'settled_count': len(obligations) - len(unsettled),
        'unsettled_count': len(unsettled),
        'is_fully_settled': not unsettled,
        'unsettled': unsettled,
    }
