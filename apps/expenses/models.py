from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class SplittingMethod(models.TextChoices):
    EQUAL = 'EQUAL', 'Equal'
    PERCENTAGE = 'PERCENTAGE', 'Percentage'
    CUSTOM_AMOUNT = 'CUSTOM_AMOUNT', 'Custom amount'


class ParticipantTag(models.TextChoices):
    PAYER = 'PAYER', 'Payer'
    PARTICIPANT = 'PARTICIPANT', 'Participant'


class Expense(models.Model):
    """Expense logged against an event and split among its participants."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    event = models.ForeignKey(
        'events.Event',
        on_delete=models.CASCADE,
        related_name='expenses'
    )

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()

    # Financial details
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    service_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    splitting_method = models.CharField(
        max_length=20,
        choices=SplittingMethod.choices,
        default=SplittingMethod.EQUAL
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'expenses'
        indexes = [
            models.Index(fields=['event', 'created_at'], name='expenses_event_created_idx'),
            models.Index(fields=['event', 'start_date'], name='expenses_event_start_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} - {self.total_amount} ({self.event.name})"

    @property
    def total_amount(self):
        """amount + tax + service_fee - discount."""
        return self.amount + self.tax + self.service_fee - self.discount


class ExpenseParticipant(models.Model):
    """Obligation of one participant on one expense."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    expense = models.ForeignKey(
        Expense,
        on_delete=models.CASCADE,
        related_name='expense_participants'
    )
    participant = models.ForeignKey(
        'events.Participant',
        on_delete=models.CASCADE,
        related_name='obligations'
    )

    tag = models.CharField(max_length=20, choices=ParticipantTag.choices)

    # Remaining amount owed; only ever decreases
    amount_to_pay = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00')
    )

    # Payment tracking (last payment only)
    paid_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00')
    )
    paid_at = models.DateTimeField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'expense_participants'
        constraints = [
            models.UniqueConstraint(fields=['expense', 'participant'], name='unique_expense_participant'),
            models.CheckConstraint(
                condition=models.Q(amount_to_pay__gte=0),
                name='amount_to_pay_non_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['expense', 'tag'], name='exp_part_expense_tag_idx'),
            models.Index(fields=['participant', 'created_at'], name='exp_part_participant_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.participant.name} owes {self.amount_to_pay} ({self.tag})"

    @property
    def is_settled(self):
        return self.amount_to_pay == 0


class PaymentProof(models.Model):
    """
    Stored file proving a payment.

    Belongs either to an expense (general proof) or to one obligation
    (proof attached to a specific payment), never both.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    expense = models.ForeignKey(
        Expense,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='payment_proofs'
    )
    expense_participant = models.ForeignKey(
        ExpenseParticipant,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='payment_proofs'
    )

    # Storage name (for deletion) and public URL
    path = models.CharField(max_length=500)
    url = models.CharField(max_length=1000)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'payment_proofs'
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(expense__isnull=False, expense_participant__isnull=True) |
                    models.Q(expense__isnull=True, expense_participant__isnull=False)
                ),
                name='payment_proof_single_owner',
            ),
        ]
        ordering = ['created_at']

    def __str__(self):
        return self.path
