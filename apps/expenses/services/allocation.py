"""
Expense Allocation Engine
=========================

Pure computation that turns an expense's totals and its tagged participants
into per-participant obligations. Nothing here touches the database; the
expense catalog persists the result together with the expense.

The total to split is::

    total = amount + tax + service_fee - discount

Splitting methods:
    EQUAL: every non-payer owes ``total / N``.
    PERCENTAGE: every non-payer owes ``total * percentage / 100``;
        percentages must sum to exactly 100.
    CUSTOM_AMOUNT: every non-payer owes its nominal amount; nominals must
        sum to exactly ``total``.

Payers always owe 0, whatever fields they were given.

All amounts are Decimal with cent precision. Shares are computed in whole
cents and the rounding residue is handed out one cent at a time (largest
fractional part first, then input order), so shares always sum exactly to
the total.

Example:
    Equal split of 100.00 among three non-payers::

        shares = allocate(
            amount=Decimal('100.00'),
            splitting_method=SplittingMethod.EQUAL,
            participants=[
                {'id': alice.id, 'tag': ParticipantTag.PAYER},
                {'id': bob.id, 'tag': ParticipantTag.PARTICIPANT},
                {'id': carol.id, 'tag': ParticipantTag.PARTICIPANT},
                {'id': dave.id, 'tag': ParticipantTag.PARTICIPANT},
            ],
        )
        # alice 0.00, bob 33.34, carol 33.33, dave 33.33
"""

from decimal import Decimal, InvalidOperation
from typing import List, NamedTuple
from uuid import UUID

from apps.common.exceptions import ReconciliationError, ValidationError
from apps.common.validators import require_fields, validate_date_range
from apps.expenses.models import ParticipantTag, SplittingMethod

CENT = Decimal('0.01')
ZERO = Decimal('0.00')
HUNDRED = Decimal('100')


class Share(NamedTuple):
    """Computed obligation for one participant."""

    participant_id: UUID
    tag: str
    amount_to_pay: Decimal


def to_decimal(value, field, *, default=None):
    """Coerce a numeric input to Decimal, naming the field on failure."""
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    if isinstance(value, float):
        value = str(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)
    if not result.is_finite():
        raise ValidationError(f"{field} must be a number", field=field)
    return result


def to_money(value, field, *, default=None):
    """Like to_decimal, but rejects more than 2 decimal places."""
    result = to_decimal(value, field, default=default)
    if result is not None and result != result.quantize(CENT):
        raise ValidationError(f"{field} must have at most 2 decimal places", field=field)
    return result


def expense_total(*, amount, tax=0, service_fee=0, discount=0) -> Decimal:
    """amount + tax + service_fee - discount, as Decimal."""
    return (
        to_money(amount, 'amount', default=ZERO)
        + to_money(tax, 'tax', default=ZERO)
        + to_money(service_fee, 'service_fee', default=ZERO)
        - to_money(discount, 'discount', default=ZERO)
    )


def validate_expense_fields(*, name, amount, start_date, end_date, splitting_method, participants) -> None:
    """
    Check the scalar fields of an expense before allocation.

    Raises:
        ValidationError: If a required field is missing or blank, or the
            dates are reversed
    """
    require_fields(
        name=name,
        amount=amount,
        start_date=start_date,
        end_date=end_date,
        splitting_method=splitting_method,
        participants=participants,
    )
    validate_date_range(start_date, end_date)


def validate_allocation(*, amount, tax=0, service_fee=0, discount=0, splitting_method, participants) -> None:
    """
    Check every allocation precondition and the method's reconciliation rule.

    Each check fails independently with its own message.

    Raises:
        ValidationError: If an input is malformed
        ReconciliationError: If the split does not balance with the total
    """
    amount = to_money(amount, 'amount')
    if amount is None or amount <= 0:
        raise ValidationError("amount must be greater than 0", field='amount')

    for field, value in (('tax', tax), ('service_fee', service_fee), ('discount', discount)):
        if to_money(value, field, default=ZERO) < 0:
            raise ValidationError(f"{field} must not be negative", field=field)

    if not participants:
        raise ValidationError("Missing required fields (participants)", field='participants')

    participant_ids = [p.get('id') for p in participants]
    if any(pid is None or str(pid).strip() == '' for pid in participant_ids):
        raise ValidationError("participants.id is required", field='participants')

    if len({str(pid) for pid in participant_ids}) != len(participant_ids):
        raise ValidationError("participants.id must be unique", field='participants')

    if not all(p.get('tag') in ParticipantTag.values for p in participants):
        raise ValidationError(
            "participants.tag must be either PAYER or PARTICIPANT",
            field='participants',
        )

    if not any(p['tag'] == ParticipantTag.PAYER for p in participants):
        raise ValidationError("There must be at least one payer", field='participants')

    if splitting_method not in SplittingMethod.values:
        raise ValidationError("Invalid splitting_method", field='splitting_method')

    debtors = [p for p in participants if p['tag'] == ParticipantTag.PARTICIPANT]
    if not debtors:
        raise ValidationError(
            "There must be at least one participant tagged PARTICIPANT",
            field='participants',
        )

    total = expense_total(amount=amount, tax=tax, service_fee=service_fee, discount=discount)
    if total < 0:
        raise ValidationError(
            "discount cannot exceed amount + tax + service_fee",
            field='discount',
        )

    if splitting_method == SplittingMethod.PERCENTAGE:
        _check_percentages(debtors)
    elif splitting_method == SplittingMethod.CUSTOM_AMOUNT:
        _check_nominals(debtors, total)


def _check_percentages(debtors):
    percentages = [
        to_decimal(p.get('amount_to_pay_percentage'), 'amount_to_pay_percentage')
        for p in debtors
    ]

    if any(pct is None for pct in percentages):
        raise ReconciliationError("Missing amount_to_pay_percentage", field='participants')

    if any(pct < 0 for pct in percentages):
        raise ValidationError(
            "amount_to_pay_percentage must not be negative",
            field='participants',
        )

    # Strict: no floating tolerance
    if sum(percentages) != HUNDRED:
        raise ReconciliationError(
            "Total percentage of amount_to_pay_percentage must be 100",
            field='participants',
        )


def _check_nominals(debtors, total):
    nominals = [
        to_money(p.get('amount_to_pay_nominal'), 'amount_to_pay_nominal')
        for p in debtors
    ]

    if any(nominal is None for nominal in nominals):
        raise ReconciliationError("Missing amount_to_pay_nominal", field='participants')

    if any(nominal < 0 for nominal in nominals):
        raise ValidationError(
            "amount_to_pay_nominal must not be negative",
            field='participants',
        )

    if sum(nominals) != total:
        raise ReconciliationError(
            "Total nominal of amount_to_pay_nominal must be equal to total amount "
            "(amount + tax + service_fee - discount)",
            field='participants',
        )


def split_cents(total: Decimal, weights: List[Decimal]) -> List[Decimal]:
    """
    Split ``total`` proportionally to ``weights`` in whole cents.

    Algorithm:
        1. Convert to cents: ``total_cents = total * 100``
        2. Exact share per weight: ``total_cents * w / sum(weights)``
        3. Floor each share
        4. Hand the leftover cents to the largest fractional parts,
           ties going to earlier entries
        5. Convert back: ``cents / 100``

    Example:
        >>> split_cents(Decimal('100.00'), [1, 1, 1])
        [Decimal('33.34'), Decimal('33.33'), Decimal('33.33')]
    """
    weights = [Decimal(w) for w in weights]
    weight_sum = sum(weights)
    if not weights or weight_sum <= 0:
        raise ValueError("At least one positive weight required")

    total_cents = int((total / CENT).to_integral_value())

    exact = [Decimal(total_cents) * w / weight_sum for w in weights]
    cents = [int(e) for e in exact]

    remainder = total_cents - sum(cents)
    by_fraction = sorted(range(len(exact)), key=lambda i: exact[i] - cents[i], reverse=True)
    for i in by_fraction[:remainder]:
        cents[i] += 1

    shares = [Decimal(c) * CENT for c in cents]

    # Safety check
    if sum(shares) != total:
        raise ValueError(f"Split calculation error: {sum(shares)} != {total}")

    return shares


def allocate(*, amount, tax=0, service_fee=0, discount=0, splitting_method, participants) -> List[Share]:
    """
    Compute one obligation per participant.

    Args:
        amount: Base amount (> 0)
        tax: Tax added to the amount (default 0)
        service_fee: Service fee added to the amount (default 0)
        discount: Discount subtracted from the amount (default 0)
        splitting_method: EQUAL, PERCENTAGE or CUSTOM_AMOUNT
        participants: Mappings with ``id``, ``tag`` and, depending on the
            method, ``amount_to_pay_percentage`` or ``amount_to_pay_nominal``

    Returns:
        list[Share] in input order. Payers owe 0; non-payer shares sum
        exactly to the total.

    Raises:
        ValidationError: If an input is malformed
        ReconciliationError: If the split does not balance with the total
    """
    validate_allocation(
        amount=amount,
        tax=tax,
        service_fee=service_fee,
        discount=discount,
        splitting_method=splitting_method,
        participants=participants,
    )

    total = expense_total(amount=amount, tax=tax, service_fee=service_fee, discount=discount)
    debtors = [p for p in participants if p['tag'] == ParticipantTag.PARTICIPANT]

    if splitting_method == SplittingMethod.PERCENTAGE:
        weights = [to_decimal(p['amount_to_pay_percentage'], 'amount_to_pay_percentage') for p in debtors]
        amounts = split_cents(total, weights)
    elif splitting_method == SplittingMethod.CUSTOM_AMOUNT:
        amounts = [to_money(p['amount_to_pay_nominal'], 'amount_to_pay_nominal') for p in debtors]
    else:
        amounts = split_cents(total, [1] * len(debtors))

    owed = {str(p['id']): share for p, share in zip(debtors, amounts)}

    return [
        Share(
            participant_id=p['id'],
            tag=p['tag'],
            amount_to_pay=owed.get(str(p['id']), ZERO),
        )
        for p in participants
    ]
