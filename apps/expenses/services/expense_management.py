"""
Expense management service.

Handles expense creation (with allocation of obligations), lookup, update,
deletion and listing.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction
from django.db.models import QuerySet

from apps.common.exceptions import PersistenceError, ValidationError
from apps.common.pagination import order_queryset
from apps.common.storage import DeleteResult, delete_files
from apps.common.validators import require_fields, validate_date_range
from apps.events.models import EventParticipant, Participant
from apps.events.services import ParticipantNotFoundError, get_event_by_id, get_event_by_slug
from apps.expenses.models import Expense, ExpenseParticipant, PaymentProof, SplittingMethod

from .allocation import allocate, validate_expense_fields
from .exceptions import ExpenseNotFoundError

logger = logging.getLogger(__name__)

# Sort keys accepted by list_expenses
EXPENSE_SORT_FIELDS = {
    'created_at': 'created_at',
    'name': 'name',
    'start_date': 'start_date',
    'end_date': 'end_date',
}

# Sort keys accepted by list_expense_participants
EXPENSE_PARTICIPANT_SORT_FIELDS = {
    'created_at': 'created_at',
    'name': 'participant__name',
}


def _check_sort(sort_by, allowed):
    if sort_by not in allowed:
        raise ValidationError(
            f"Invalid sort_by: '{sort_by}'. Valid options: {', '.join(allowed)}",
            field='sort_by',
        )


def _check_participants(event, participant_ids) -> None:
    """Every participant must exist and be a member of the event."""
    participant_ids = [str(pid) for pid in participant_ids]

    try:
        existing = {
            str(pid) for pid in
            Participant.objects.filter(id__in=participant_ids).values_list('id', flat=True)
        }
    except (ValueError, DjangoValidationError):
        raise ValidationError("participants.id must be a valid UUID", field='participants')

    missing = [pid for pid in participant_ids if pid not in existing]
    if missing:
        raise ParticipantNotFoundError(
            f"Participant {missing[0]} not found",
            field='participants',
        )

    members = {
        str(pid) for pid in
        EventParticipant.objects
        .filter(event=event, participant_id__in=participant_ids)
        .values_list('participant_id', flat=True)
    }
    outsiders = [pid for pid in participant_ids if pid not in members]
    if outsiders:
        raise ValidationError(
            f"Participant {outsiders[0]} is not a member of event {event.slug}",
            field='participants',
        )


def create_expense(
    *,
    event_id: UUID,
    name: str,
    amount,
    start_date: datetime,
    end_date: datetime,
    participants: List[dict],
    splitting_method: str = SplittingMethod.EQUAL,
    description: str = '',
    tax=0,
    service_fee=0,
    discount=0
) -> Expense:
    """
    Create an expense and one obligation per listed participant.

    This is a multi-step operation:
    1. Check the event exists
    2. Check required fields and the date range
    3. Allocate the total among the participants
    4. Check every participant exists and belongs to the event
    5. Write the expense and its obligations in one transaction

    Args:
        event_id: Event the expense belongs to
        name: Expense name
        amount: Base amount (> 0)
        start_date: Expense start (aware datetime)
        end_date: Expense end (aware datetime)
        participants: Mappings with ``id``, ``tag`` and optional
            ``amount_to_pay_percentage``/``amount_to_pay_nominal``
        splitting_method: EQUAL, PERCENTAGE or CUSTOM_AMOUNT
        description: Optional description
        tax: Tax (default 0)
        service_fee: Service fee (default 0)
        discount: Discount (default 0)

    Returns:
        Created Expense

    Raises:
        EventNotFoundError: If event doesn't exist
        ValidationError: If inputs are invalid or a participant is not an
            event member
        ReconciliationError: If the split does not balance
        ParticipantNotFoundError: If a listed participant doesn't exist
        PersistenceError: If the database rejects the write
    """
    event = get_event_by_id(event_id=event_id)

    validate_expense_fields(
        name=name,
        amount=amount,
        start_date=start_date,
        end_date=end_date,
        splitting_method=splitting_method,
        participants=participants,
    )

    shares = allocate(
        amount=amount,
        tax=tax,
        service_fee=service_fee,
        discount=discount,
        splitting_method=splitting_method,
        participants=participants,
    )

    _check_participants(event, [share.participant_id for share in shares])

    try:
        with transaction.atomic():
            expense = Expense.objects.create(
                event=event,
                name=name.strip(),
                description=description or '',
                start_date=start_date,
                end_date=end_date,
                amount=amount,
                tax=tax or 0,
                service_fee=service_fee or 0,
                discount=discount or 0,
                splitting_method=splitting_method,
            )
            ExpenseParticipant.objects.bulk_create([
                ExpenseParticipant(
                    expense=expense,
                    participant_id=share.participant_id,
                    tag=share.tag,
                    amount_to_pay=share.amount_to_pay,
                )
                for share in shares
            ])
    except DatabaseError as exc:
        logger.error("Failed to store expense %s for event %s: %s", name, event.slug, exc)
        raise PersistenceError("Failed to store expense") from exc

    logger.info(
        "Created expense %s (%s, %s) in event %s with %d participants",
        expense.id,
        expense.splitting_method,
        expense.total_amount,
        event.slug,
        len(shares),
    )
    return expense


def get_expense_by_id(*, expense_id: UUID) -> Expense:
    """
    Get an expense with its obligations and proofs.

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
    """
    try:
        return (
            Expense.objects
            .select_related('event')
            .prefetch_related('expense_participants__participant', 'payment_proofs')
            .get(id=expense_id)
        )
    except Expense.DoesNotExist:
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")


@transaction.atomic
def update_expense(
    *,
    expense_id: UUID,
    name: Optional[str] = None,
    description: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None
) -> Expense:
    """
    Update expense name, description or dates.

    Amounts, splitting method and participants are fixed once obligations
    exist; change them by deleting and re-creating the expense.

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        ValidationError: If the name is blank or the resulting dates are reversed
    """
    try:
        expense = Expense.objects.select_for_update().get(id=expense_id)
    except Expense.DoesNotExist:
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")

    update_fields = ['updated_at']

    if name is not None:
        require_fields(name=name)
        expense.name = name.strip()
        update_fields.append('name')

    if description is not None:
        expense.description = description
        update_fields.append('description')

    if start_date is not None or end_date is not None:
        new_start = start_date if start_date is not None else expense.start_date
        new_end = end_date if end_date is not None else expense.end_date
        validate_date_range(new_start, new_end)
        expense.start_date = new_start
        expense.end_date = new_end
        update_fields.extend(['start_date', 'end_date'])

    expense.save(update_fields=update_fields)

    logger.info("Updated expense %s (%s)", expense.id, ', '.join(update_fields[1:]) or 'no fields')
    return expense


def delete_expense(*, expense_id: UUID) -> List[DeleteResult]:
    """
    Delete an expense, its obligations and every stored proof file.

    Rows are removed first in one transaction; files are removed afterwards
    so a storage failure never leaves rows pointing at deleted files.

    Returns:
        One DeleteResult per stored file

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
    """
    with transaction.atomic():
        try:
            expense = Expense.objects.select_for_update().get(id=expense_id)
        except Expense.DoesNotExist:
            raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")

        paths = list(
            PaymentProof.objects
            .filter(expense=expense)
            .values_list('path', flat=True)
        ) + list(
            PaymentProof.objects
            .filter(expense_participant__expense=expense)
            .values_list('path', flat=True)
        )

        expense.delete()

    results = delete_files(paths)

    failed = [r for r in results if not r.ok]
    if failed:
        logger.warning("Deleted expense %s but %d proof files remain in storage", expense_id, len(failed))
    else:
        logger.info("Deleted expense %s and %d proof files", expense_id, len(results))

    return results


def list_expenses(
    *,
    event_slug: str,
    sort_by: str = 'created_at',
    order_by: str = 'desc'
) -> QuerySet:
    """
    Get an event's expenses, ordered for pagination.

    Raises:
        EventNotFoundError: If event doesn't exist
        ValidationError: If sort_by or order_by is invalid
    """
    _check_sort(sort_by, EXPENSE_SORT_FIELDS)
    event = get_event_by_slug(slug=event_slug)

    queryset = Expense.objects.filter(event=event)
    return order_queryset(queryset, sort_field=EXPENSE_SORT_FIELDS[sort_by], order_by=order_by)


def list_expense_participants(
    *,
    expense_id: UUID,
    sort_by: str = 'created_at',
    order_by: str = 'desc'
) -> QuerySet:
    """
    Get an expense's obligations with participant name and slug, ordered
    for pagination.

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        ValidationError: If sort_by or order_by is invalid
    """
    _check_sort(sort_by, EXPENSE_PARTICIPANT_SORT_FIELDS)

    if not Expense.objects.filter(id=expense_id).exists():
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")

    queryset = (
        ExpenseParticipant.objects
        .filter(expense_id=expense_id)
        .select_related('participant')
    )
    return order_queryset(
        queryset,
        sort_field=EXPENSE_PARTICIPANT_SORT_FIELDS[sort_by],
        order_by=order_by,
    )
