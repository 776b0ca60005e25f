"""
Payment proof service.

General proofs belong to the expense itself; proofs attached while paying
belong to one obligation (see ``settlement.pay_expense``).
"""

import logging
from typing import List, Tuple
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Q

from apps.common.exceptions import ValidationError
from apps.common.storage import DeleteResult, UploadResult, delete_files, upload_files, validate_uploads
from apps.expenses.models import Expense, PaymentProof

from .exceptions import ExpenseNotFoundError, PaymentProofNotFoundError

logger = logging.getLogger(__name__)

EXPENSE_PROOF_FOLDER = 'expenses'


def _get_expense(expense_id):
    try:
        return Expense.objects.get(id=expense_id)
    except Expense.DoesNotExist:
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")


def add_payment_proofs(*, expense_id: UUID, files) -> Tuple[List[PaymentProof], List[UploadResult]]:
    """
    Upload general payment proofs for an expense.

    Every file is validated before the first upload. Files that fail to
    upload are reported in the results and get no row.

    Returns:
        Tuple of (created PaymentProof list, one UploadResult per file)

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        ValidationError: If no file is given or a file is rejected
    """
    expense = _get_expense(expense_id)

    files = list(files)
    if not files:
        raise ValidationError("Missing required fields (payment_proofs)", field='payment_proofs')
    validate_uploads(files)

    uploads = upload_files(EXPENSE_PROOF_FOLDER, files)
    stored = [upload for upload in uploads if upload.ok]

    try:
        with transaction.atomic():
            proofs = PaymentProof.objects.bulk_create([
                PaymentProof(expense=expense, path=upload.path, url=upload.url)
                for upload in stored
            ])
    except Exception:
        delete_files([upload.path for upload in stored])
        raise

    logger.info(
        "Stored %d of %d payment proofs for expense %s",
        len(stored),
        len(uploads),
        expense.id,
    )
    return proofs, uploads


def list_payment_proofs(*, expense_id: UUID) -> List[PaymentProof]:
    """
    Get every proof of an expense: general ones and those attached to its
    obligations, oldest first.

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
    """
    expense = _get_expense(expense_id)

    return list(
        PaymentProof.objects
        .filter(Q(expense=expense) | Q(expense_participant__expense=expense))
        .select_related('expense_participant__participant')
        .order_by('created_at')
    )


def delete_payment_proofs(*, expense_id: UUID, proof_ids) -> Tuple[int, List[DeleteResult]]:
    """
    Delete general proofs of an expense and their stored files.

    Ids that do not belong to the expense are ignored. Rows are removed
    first; files are removed afterwards, one result per file.

    Returns:
        Tuple of (number of rows deleted, one DeleteResult per file)

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        ValidationError: If proof_ids is empty or malformed
        PaymentProofNotFoundError: If none of the ids belong to the expense
    """
    expense = _get_expense(expense_id)

    proof_ids = list(proof_ids or [])
    if not proof_ids:
        raise ValidationError("Missing required fields (payment_proofs_ids)", field='payment_proofs_ids')

    with transaction.atomic():
        try:
            proofs = list(
                PaymentProof.objects
                .select_for_update()
                .filter(expense=expense, id__in=proof_ids)
            )
        except DjangoValidationError:
            raise ValidationError("payment_proofs_ids must be valid UUIDs", field='payment_proofs_ids')

        if not proofs:
            raise PaymentProofNotFoundError(field='payment_proofs_ids')

        paths = [proof.path for proof in proofs]
        deleted, _ = PaymentProof.objects.filter(id__in=[proof.id for proof in proofs]).delete()

    results = delete_files(paths)

    logger.info("Deleted %d payment proofs from expense %s", deleted, expense.id)
    return deleted, results
