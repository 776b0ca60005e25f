import uuid
from decimal import Decimal
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('events', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Expense',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('start_date', models.DateTimeField()),
                ('end_date', models.DateTimeField()),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[MinValueValidator(Decimal('0.01'))])),
                ('tax', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('service_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('discount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('splitting_method', models.CharField(choices=[('EQUAL', 'Equal'), ('PERCENTAGE', 'Percentage'), ('CUSTOM_AMOUNT', 'Custom amount')], default='EQUAL', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='expenses', to='events.event')),
            ],
            options={
                'db_table': 'expenses',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['event', 'created_at'], name='expenses_event_created_idx'),
                    models.Index(fields=['event', 'start_date'], name='expenses_event_start_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ExpenseParticipant',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('tag', models.CharField(choices=[('PAYER', 'Payer'), ('PARTICIPANT', 'Participant')], max_length=20)),
                ('amount_to_pay', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('paid_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('expense', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='expense_participants', to='expenses.expense')),
                ('participant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='obligations', to='events.participant')),
            ],
            options={
                'db_table': 'expense_participants',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['expense', 'tag'], name='exp_part_expense_tag_idx'),
                    models.Index(fields=['participant', 'created_at'], name='exp_part_participant_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('expense', 'participant'), name='unique_expense_participant'),
                    models.CheckConstraint(condition=models.Q(amount_to_pay__gte=0), name='amount_to_pay_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PaymentProof',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('path', models.CharField(max_length=500)),
                ('url', models.CharField(max_length=1000)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('expense', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='payment_proofs', to='expenses.expense')),
                ('expense_participant', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='payment_proofs', to='expenses.expenseparticipant')),
            ],
            options={
                'db_table': 'payment_proofs',
                'ordering': ['created_at'],
                'constraints': [
                    models.CheckConstraint(
                        condition=(
                            models.Q(('expense__isnull', False), ('expense_participant__isnull', True))
                            | models.Q(('expense__isnull', True), ('expense_participant__isnull', False))
                        ),
                        name='payment_proof_single_owner',
                    ),
                ],
            },
        ),
    ]
