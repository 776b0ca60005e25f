from decimal import Decimal

from rest_framework import serializers

from apps.common.serializers import (
    PaginationQuerySerializer,
    PaginationSerializer,
    RFC3339DateTimeField,
)
from apps.events.serializers import ParticipantSerializer
from .models import Expense, ExpenseParticipant, PaymentProof
from .services import EXPENSE_SORT_FIELDS, EXPENSE_PARTICIPANT_SORT_FIELDS


MONEY = {'max_digits': 12, 'decimal_places': 2}

# Files accepted in one multipart request
MAX_FILES = 10


# =============================================================================
# Input Serializers
# =============================================================================

class ExpenseParticipantInputSerializer(serializers.Serializer):
    """
    One entry of an expense's participant list.

    Tag, percentage and nominal rules are checked by the allocation service
    so each broken rule gets its own message.
    """

    id = serializers.UUIDField()
    tag = serializers.CharField()
    amount_to_pay_percentage = serializers.DecimalField(
        max_digits=7, decimal_places=4, required=False, allow_null=True
    )
    amount_to_pay_nominal = serializers.DecimalField(**MONEY, required=False, allow_null=True)


class ExpenseCreateSerializer(serializers.Serializer):
    """
    Validate input for creating an expense.

    Fields:
        event_id (UUID): Event the expense belongs to
        name (str): Expense name
        description (str): Optional description
        amount (Decimal): Base amount
        tax, service_fee, discount (Decimal): Optional adjustments (default 0)
        start_date, end_date (datetime): RFC3339 timestamps
        splitting_method (str): EQUAL, PERCENTAGE or CUSTOM_AMOUNT
        participants (list): Tagged participants
    """

    event_id = serializers.UUIDField()
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    amount = serializers.DecimalField(**MONEY)
    tax = serializers.DecimalField(**MONEY, required=False, default=Decimal('0.00'))
    service_fee = serializers.DecimalField(**MONEY, required=False, default=Decimal('0.00'))
    discount = serializers.DecimalField(**MONEY, required=False, default=Decimal('0.00'))
    start_date = RFC3339DateTimeField()
    end_date = RFC3339DateTimeField()
    splitting_method = serializers.CharField()
    participants = ExpenseParticipantInputSerializer(many=True, allow_empty=False)


class ExpenseUpdateSerializer(serializers.Serializer):
    """Validate input for updating an expense. Amounts cannot be changed."""

    name = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    start_date = RFC3339DateTimeField(required=False)
    end_date = RFC3339DateTimeField(required=False)


class ExpenseListQuerySerializer(PaginationQuerySerializer):
    """Query parameters for listing an event's expenses."""

    event_slug = serializers.CharField(
        error_messages={'required': 'Missing event_slug query parameter in request'}
    )
    sort_by = serializers.ChoiceField(
        choices=list(EXPENSE_SORT_FIELDS),
        required=False,
        default='created_at',
    )


class ExpenseParticipantQuerySerializer(PaginationQuerySerializer):
    """Query parameters for listing an expense's obligations."""

    sort_by = serializers.ChoiceField(
        choices=list(EXPENSE_PARTICIPANT_SORT_FIELDS),
        required=False,
        default='created_at',
    )


class PayExpenseSerializer(serializers.Serializer):
    """Multipart input for paying an obligation."""

    participant_id = serializers.UUIDField()
    amount = serializers.DecimalField(**MONEY)
    payment_proofs = serializers.ListField(
        child=serializers.FileField(),
        required=False,
        default=list,
        max_length=MAX_FILES,
    )


class PaymentProofUploadSerializer(serializers.Serializer):
    """Multipart input for uploading general payment proofs."""

    payment_proofs = serializers.ListField(
        child=serializers.FileField(),
        allow_empty=False,
        max_length=MAX_FILES,
    )


class PaymentProofDeleteSerializer(serializers.Serializer):
    payment_proofs_ids = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
    )


# =============================================================================
# Output Serializers
# =============================================================================

class PaymentProofSerializer(serializers.ModelSerializer):
    """Stored payment proof."""

    expense_participant_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = PaymentProof
        fields = ['id', 'path', 'url', 'expense_participant_id', 'created_at']
        read_only_fields = fields


class ExpenseParticipantSerializer(serializers.ModelSerializer):
    """Obligation of one participant on an expense."""

    participant = ParticipantSerializer(read_only=True)
    is_settled = serializers.BooleanField(read_only=True)

    class Meta:
        model = ExpenseParticipant
        fields = [
            'id',
            'participant',
            'tag',
            'amount_to_pay',
            'paid_amount',
            'paid_at',
            'is_settled',
            'created_at',
        ]
        read_only_fields = fields


class ExpenseSerializer(serializers.ModelSerializer):
    """Expense without its obligations (for lists)."""

    event_id = serializers.UUIDField(read_only=True)
    total_amount = serializers.DecimalField(**MONEY, read_only=True)

    class Meta:
        model = Expense
        fields = [
            'id',
            'event_id',
            'name',
            'description',
            'start_date',
            'end_date',
            'amount',
            'tax',
            'service_fee',
            'discount',
            'total_amount',
            'splitting_method',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ExpenseDetailSerializer(ExpenseSerializer):
    """Expense with its obligations and general payment proofs."""

    participants = ExpenseParticipantSerializer(
        source='expense_participants', many=True, read_only=True
    )
    payment_proofs = PaymentProofSerializer(many=True, read_only=True)

    class Meta(ExpenseSerializer.Meta):
        fields = ExpenseSerializer.Meta.fields + ['participants', 'payment_proofs']
        read_only_fields = fields


class ExpenseParticipantPageSerializer(serializers.Serializer):
    data = ExpenseParticipantSerializer(many=True)
    pagination = PaginationSerializer()


class UploadResultSerializer(serializers.Serializer):
    """Outcome of one file upload; ``error`` is set when the file was not stored."""

    file_name = serializers.CharField()
    path = serializers.CharField(allow_null=True)
    url = serializers.CharField(allow_null=True)
    error = serializers.CharField(allow_null=True)


class DeleteResultSerializer(serializers.Serializer):
    path = serializers.CharField()
    error = serializers.CharField(allow_null=True)


class PaymentResultSerializer(serializers.Serializer):
    """Response for a payment: the updated obligation and upload outcomes."""

    obligation = ExpenseParticipantSerializer()
    uploads = UploadResultSerializer(many=True)


class PaymentProofUploadResultSerializer(serializers.Serializer):
    payment_proofs = PaymentProofSerializer(many=True)
    uploads = UploadResultSerializer(many=True)


class PaymentProofDeleteResultSerializer(serializers.Serializer):
    deleted = serializers.IntegerField()
    files = DeleteResultSerializer(many=True)


class SettlementSummarySerializer(serializers.Serializer):
    """How much of an expense has been paid back."""

    total_amount = serializers.DecimalField(**MONEY)
    outstanding_amount = serializers.DecimalField(**MONEY)
    collected_amount = serializers.DecimalField(**MONEY)
    settled_count = serializers.IntegerField()
    unsettled_count = serializers.IntegerField()
    is_fully_settled = serializers.BooleanField()
    unsettled = ExpenseParticipantSerializer(many=True)
