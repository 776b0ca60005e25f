"""
Service layer tests for settlement.

Tests cover:
- Finding payable obligations
- Recording payments (balance only decreases, never below zero)
- Paying with proof files, including cleanup when the write fails
- Settlement summaries
"""

import pytest
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError

from apps.common.exceptions import ConflictError, ValidationError
from apps.common.storage import UploadResult, delete_files
from apps.expenses.models import PaymentProof
from apps.expenses.services import (
    explain_unpayable,
    find_payable_obligation,
    get_settlement_summary,
    pay_expense,
    record_payment,
)
from apps.expenses.services.exceptions import (
    ExpenseNotFoundError,
    ObligationNotFoundError,
    OverpaymentError,
)


@pytest.mark.django_db
class TestFindPayableObligation:

    def test_finds_obligation_within_balance(self, equal_expense, bob, bob_obligation):
        found = find_payable_obligation(expense_id=equal_expense.id, participant_id=bob.id, amount=Decimal('150.00'))

        assert found == bob_obligation

    def test_none_when_amount_exceeds_balance(self, equal_expense, bob):
        assert find_payable_obligation(
            expense_id=equal_expense.id,
            participant_id=bob.id,
            amount=Decimal('150.01'),
        ) is None

    def test_none_when_not_on_expense(self, equal_expense, outsider):
        assert find_payable_obligation(
            expense_id=equal_expense.id,
            participant_id=outsider.id,
            amount=Decimal('1.00'),
        ) is None

    def test_explain_missing_obligation(self, equal_expense, outsider):
        with pytest.raises(ObligationNotFoundError):
            explain_unpayable(expense_id=equal_expense.id, participant_id=outsider.id, amount=Decimal('1.00'))

    def test_explain_overpayment(self, equal_expense, bob):
        with pytest.raises(OverpaymentError):
            explain_unpayable(expense_id=equal_expense.id, participant_id=bob.id, amount=Decimal('200.00'))

    def test_explain_payable_is_silent(self, equal_expense, bob):
        explain_unpayable(expense_id=equal_expense.id, participant_id=bob.id, amount=Decimal('10.00'))


@pytest.mark.django_db
class TestRecordPayment:

    def test_partial_payment(self, bob_obligation):
        updated = record_payment(obligation_id=bob_obligation.id, amount=Decimal('50.00'))

        assert updated.amount_to_pay == Decimal('100.00')
        assert updated.paid_amount == Decimal('50.00')
        assert updated.paid_at is not None

    def test_paid_amount_is_last_payment(self, bob_obligation):
        record_payment(obligation_id=bob_obligation.id, amount=Decimal('50.00'))
        updated = record_payment(obligation_id=bob_obligation.id, amount=Decimal('30.00'))

        assert updated.amount_to_pay == Decimal('70.00')
        assert updated.paid_amount == Decimal('30.00')

    def test_overpayment_rejected_not_clamped(self, bob_obligation):
        with pytest.raises(OverpaymentError):
            record_payment(obligation_id=bob_obligation.id, amount=Decimal('150.01'))

        bob_obligation.refresh_from_db()
        assert bob_obligation.amount_to_pay == Decimal('150.00')
        assert bob_obligation.paid_at is None

    def test_overpayment_is_a_conflict(self):
        assert issubclass(OverpaymentError, ConflictError)

    @pytest.mark.parametrize('amount', [Decimal('0.00'), Decimal('-5.00')])
    def test_amount_must_be_positive(self, bob_obligation, amount):
        with pytest.raises(ValidationError, match='amount must be greater than 0'):
            record_payment(obligation_id=bob_obligation.id, amount=amount)

    def test_sub_cent_amount_rejected(self, bob_obligation):
        with pytest.raises(ValidationError, match='at most 2 decimal places'):
            record_payment(obligation_id=bob_obligation.id, amount=Decimal('0.001'))

        bob_obligation.refresh_from_db()
        assert bob_obligation.amount_to_pay == Decimal('150.00')
        assert bob_obligation.paid_at is None

    def test_unknown_obligation(self):
        with pytest.raises(ObligationNotFoundError):
            record_payment(obligation_id=uuid4(), amount=Decimal('1.00'))

    def test_attaches_proofs(self, bob_obligation):
        proofs = [UploadResult(file_name='a.png', path='expense_participant/a.png', url='/media/a.png')]

        record_payment(obligation_id=bob_obligation.id, amount=Decimal('10.00'), proofs=proofs)

        proof = PaymentProof.objects.get(expense_participant=bob_obligation)
        assert proof.path == 'expense_participant/a.png'
        assert proof.expense_id is None


@pytest.mark.django_db
class TestPayExpense:

    def test_weekend_trip_payment(self, equal_expense, bob, png_file):
        """Bob pays his full share with one proof; a second payment is rejected."""
        result = pay_expense(
            expense_id=equal_expense.id,
            participant_id=bob.id,
            amount=Decimal('150.00'),
            files=[png_file],
        )

        assert result.obligation.amount_to_pay == Decimal('0.00')
        assert result.obligation.is_settled
        assert result.obligation.paid_at is not None
        assert len(result.uploads) == 1 and result.uploads[0].ok

        proof = PaymentProof.objects.get(expense_participant=result.obligation)
        assert proof.path.startswith('expense_participant/')
        assert default_storage.exists(proof.path)

        with pytest.raises(OverpaymentError):
            pay_expense(expense_id=equal_expense.id, participant_id=bob.id, amount=Decimal('0.01'))

    def test_payment_without_files(self, equal_expense, carol):
        result = pay_expense(expense_id=equal_expense.id, participant_id=carol.id, amount='20.00')

        assert result.obligation.amount_to_pay == Decimal('130.00')
        assert result.uploads == []

    def test_sub_cent_amount_rejected(self, equal_expense, bob):
        with pytest.raises(ValidationError) as exc_info:
            pay_expense(expense_id=equal_expense.id, participant_id=bob.id, amount='10.005')

        assert exc_info.value.field == 'amount'
        assert PaymentProof.objects.count() == 0

    def test_unknown_expense(self, bob):
        with pytest.raises(ExpenseNotFoundError):
            pay_expense(expense_id=uuid4(), participant_id=bob.id, amount=Decimal('1.00'))

    def test_participant_not_on_expense(self, equal_expense, outsider):
        with pytest.raises(ObligationNotFoundError):
            pay_expense(expense_id=equal_expense.id, participant_id=outsider.id, amount=Decimal('1.00'))

    def test_invalid_file_uploads_nothing(self, equal_expense, bob, png_file):
        bad = SimpleUploadedFile('notes.txt', b'text', content_type='text/plain')

        with patch('apps.expenses.services.settlement.upload_files') as mock_upload:
            with pytest.raises(ValidationError):
                pay_expense(
                    expense_id=equal_expense.id,
                    participant_id=bob.id,
                    amount=Decimal('10.00'),
                    files=[png_file, bad],
                )

        mock_upload.assert_not_called()

    def test_failed_upload_is_reported(self, equal_expense, bob, png_file, pdf_file):
        uploads = [
            UploadResult(file_name='transfer.png', path='expense_participant/ok.png', url='/media/ok.png'),
            UploadResult(file_name='receipt.pdf', error='Failed to upload receipt.pdf'),
        ]

        with patch('apps.expenses.services.settlement.upload_files', return_value=uploads):
            result = pay_expense(
                expense_id=equal_expense.id,
                participant_id=bob.id,
                amount=Decimal('10.00'),
                files=[png_file, pdf_file],
            )

        assert [u.ok for u in result.uploads] == [True, False]
        assert PaymentProof.objects.filter(expense_participant=result.obligation).count() == 1

    def test_uploaded_files_removed_when_write_fails(self, equal_expense, bob, bob_obligation, png_file):
        with patch(
            'apps.expenses.services.settlement.record_payment',
            side_effect=DatabaseError('connection lost'),
        ), patch(
            'apps.expenses.services.settlement.delete_files',
            wraps=delete_files,
        ) as mock_delete:
            with pytest.raises(DatabaseError):
                pay_expense(
                    expense_id=equal_expense.id,
                    participant_id=bob.id,
                    amount=Decimal('10.00'),
                    files=[png_file],
                )

        assert PaymentProof.objects.count() == 0
        bob_obligation.refresh_from_db()
        assert bob_obligation.amount_to_pay == Decimal('150.00')
        (paths,), _ = mock_delete.call_args
        assert len(paths) == 1
        assert not default_storage.exists(paths[0])


@pytest.mark.django_db
class TestSettlementSummary:

    def test_summary_before_payments(self, equal_expense):
        summary = get_settlement_summary(expense_id=equal_expense.id)

        assert summary['total_amount'] == Decimal('300.00')
        assert summary['outstanding_amount'] == Decimal('300.00')
        assert summary['collected_amount'] == Decimal('0.00')
        assert summary['unsettled_count'] == 2
        assert summary['is_fully_settled'] is False

    def test_summary_after_payments(self, equal_expense, bob, carol):
        pay_expense(expense_id=equal_expense.id, participant_id=bob.id, amount=Decimal('150.00'))
        pay_expense(expense_id=equal_expense.id, participant_id=carol.id, amount=Decimal('100.00'))

        summary = get_settlement_summary(expense_id=equal_expense.id)

        assert summary['outstanding_amount'] == Decimal('50.00')
        assert summary['collected_amount'] == Decimal('250.00')
        assert summary['settled_count'] == 1
        assert [o.participant for o in summary['unsettled']] == [carol]

    def test_summary_unknown_expense(self):
        with pytest.raises(ExpenseNotFoundError):
            get_settlement_summary(expense_id=uuid4())

