from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from drf_spectacular.utils import OpenApiResponse, extend_schema, inline_serializer

from apps.common.pagination import SplitBillPagination
from apps.common.serializers import ErrorSerializer
from .models import Expense
from .serializers import (
    ExpenseSerializer,
    ExpenseDetailSerializer,
    ExpenseCreateSerializer,
    ExpenseUpdateSerializer,
    ExpenseListQuerySerializer,
    ExpenseParticipantSerializer,
    ExpenseParticipantQuerySerializer,
    ExpenseParticipantPageSerializer,
    PayExpenseSerializer,
    PaymentResultSerializer,
    PaymentProofSerializer,
    PaymentProofUploadSerializer,
    PaymentProofUploadResultSerializer,
    PaymentProofDeleteSerializer,
    PaymentProofDeleteResultSerializer,
    DeleteResultSerializer,
    SettlementSummarySerializer,
)
from .services import (
    create_expense,
    get_expense_by_id,
    update_expense,
    delete_expense,
    list_expenses,
    list_expense_participants,
    pay_expense,
    get_settlement_summary,
    add_payment_proofs,
    list_payment_proofs,
    delete_payment_proofs,
)


class ExpenseViewSet(viewsets.GenericViewSet):
    """
    ViewSet for expenses, their obligations and payment proofs.

    list: List an event's expenses (?event_slug=, paginated)
    create: Create an expense and allocate its obligations
    retrieve: Get an expense with obligations and proofs
    partial_update: Update name, description or dates
    destroy: Delete an expense and its stored proofs
    participants: List obligations (paginated)
    summary: Settlement summary
    pay: Pay an obligation with optional proof files
    payment_proofs: List, upload or delete general proofs
    """

    queryset = Expense.objects.all()
    serializer_class = ExpenseSerializer
    permission_classes = [AllowAny]
    pagination_class = SplitBillPagination
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    lookup_value_regex = '[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}'

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'create':
            return ExpenseCreateSerializer
        elif self.action == 'partial_update':
            return ExpenseUpdateSerializer
        elif self.action == 'retrieve':
            return ExpenseDetailSerializer
        elif self.action == 'pay':
            return PayExpenseSerializer
        return ExpenseSerializer

    @extend_schema(
        parameters=[ExpenseListQuerySerializer],
        responses={200: ExpenseSerializer(many=True), 400: ErrorSerializer, 404: ErrorSerializer},
    )
    def list(self, request):
        """Get one page of an event's expenses."""
        query = ExpenseListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        expenses = list_expenses(
            event_slug=query.validated_data['event_slug'],
            sort_by=query.validated_data['sort_by'],
            order_by=query.validated_data['order_by'],
        )

        page = self.paginate_queryset(expenses)
        serializer = ExpenseSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @extend_schema(responses={201: ExpenseDetailSerializer, 400: ErrorSerializer, 404: ErrorSerializer})
    def create(self, request, *args, **kwargs):
        """Create an expense."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        expense = create_expense(
            event_id=data['event_id'],
            name=data['name'],
            description=data.get('description', ''),
            amount=data['amount'],
            tax=data['tax'],
            service_fee=data['service_fee'],
            discount=data['discount'],
            start_date=data['start_date'],
            end_date=data['end_date'],
            splitting_method=data['splitting_method'],
            participants=[dict(p) for p in data['participants']],
        )

        expense = get_expense_by_id(expense_id=expense.id)
        return Response(ExpenseDetailSerializer(expense).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: ExpenseDetailSerializer, 404: ErrorSerializer})
    def retrieve(self, request, pk=None):
        """Get an expense with obligations and proofs."""
        expense = get_expense_by_id(expense_id=pk)
        return Response(ExpenseDetailSerializer(expense).data)

    @extend_schema(responses={200: ExpenseSerializer, 400: ErrorSerializer, 404: ErrorSerializer})
    def partial_update(self, request, pk=None):
        """Update an expense."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        expense = update_expense(expense_id=pk, **serializer.validated_data)

        return Response(ExpenseSerializer(expense).data)

    @extend_schema(responses={
        200: inline_serializer(
            name='ExpenseDeleteResult',
            fields={'files': DeleteResultSerializer(many=True)},
        ),
        404: ErrorSerializer,
    })
    def destroy(self, request, pk=None):
        """Delete an expense; reports the outcome for every stored file."""
        results = delete_expense(expense_id=pk)
        return Response({'files': DeleteResultSerializer(results, many=True).data})

    @extend_schema(
        parameters=[ExpenseParticipantQuerySerializer],
        responses={200: ExpenseParticipantPageSerializer, 404: ErrorSerializer},
    )
    @action(detail=True, methods=['get'])
    def participants(self, request, pk=None):
        """Get one page of the expense's obligations."""
        query = ExpenseParticipantQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        obligations = list_expense_participants(
            expense_id=pk,
            sort_by=query.validated_data['sort_by'],
            order_by=query.validated_data['order_by'],
        )

        page = self.paginate_queryset(obligations)
        serializer = ExpenseParticipantSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @extend_schema(responses={200: SettlementSummarySerializer, 404: ErrorSerializer})
    @action(detail=True, methods=['get'])
    def summary(self, request, pk=None):
        """Get how much of the expense has been paid back."""
        summary = get_settlement_summary(expense_id=pk)
        return Response(SettlementSummarySerializer(summary).data)

    @extend_schema(
        request={'multipart/form-data': PayExpenseSerializer},
        responses={
            200: PaymentResultSerializer,
            400: ErrorSerializer,
            404: ErrorSerializer,
            409: OpenApiResponse(ErrorSerializer, description='Amount exceeds the remaining balance'),
        },
    )
    @action(detail=True, methods=['post'], parser_classes=[MultiPartParser, FormParser, JSONParser])
    def pay(self, request, pk=None):
        """Pay (part of) a participant's obligation."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = pay_expense(
            expense_id=pk,
            participant_id=data['participant_id'],
            amount=data['amount'],
            files=data['payment_proofs'],
        )

        return Response(PaymentResultSerializer(result).data)

    @extend_schema(
        methods=['GET'],
        responses={200: PaymentProofSerializer(many=True), 404: ErrorSerializer},
    )
    @extend_schema(
        methods=['POST'],
        request={'multipart/form-data': PaymentProofUploadSerializer},
        responses={201: PaymentProofUploadResultSerializer, 400: ErrorSerializer, 404: ErrorSerializer},
    )
    @extend_schema(
        methods=['DELETE'],
        request=PaymentProofDeleteSerializer,
        responses={200: PaymentProofDeleteResultSerializer, 404: ErrorSerializer},
    )
    @action(detail=True, methods=['get', 'post', 'delete'], url_path='payment_proofs')
    def payment_proofs(self, request, pk=None):
        """List, upload or delete the expense's general payment proofs."""
        if request.method == 'POST':
            serializer = PaymentProofUploadSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)

            proofs, uploads = add_payment_proofs(
                expense_id=pk,
                files=serializer.validated_data['payment_proofs'],
            )
            output = PaymentProofUploadResultSerializer({'payment_proofs': proofs, 'uploads': uploads})
            return Response(output.data, status=status.HTTP_201_CREATED)

        if request.method == 'DELETE':
            serializer = PaymentProofDeleteSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)

            deleted, results = delete_payment_proofs(
                expense_id=pk,
                proof_ids=serializer.validated_data['payment_proofs_ids'],
            )
            output = PaymentProofDeleteResultSerializer({'deleted': deleted, 'files': results})
            return Response(output.data)

        proofs = list_payment_proofs(expense_id=pk)
        return Response(PaymentProofSerializer(proofs, many=True).data)
