from django.contrib import admin
from apps.expenses.models import Expense, ExpenseParticipant, PaymentProof


class ExpenseParticipantInline(admin.TabularInline):
    """Inline admin for obligations."""
    model = ExpenseParticipant
    extra = 0
    fields = ['participant', 'tag', 'amount_to_pay', 'paid_amount', 'paid_at']
    readonly_fields = ['amount_to_pay', 'paid_amount', 'paid_at']


class PaymentProofInline(admin.TabularInline):
    """Inline admin for general payment proofs."""
    model = PaymentProof
    fk_name = 'expense'
    extra = 0
    fields = ['path', 'url', 'created_at']
    readonly_fields = ['created_at']


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    """Admin interface for Expenses."""

    list_display = ['name', 'event', 'total_amount_display', 'splitting_method', 'start_date', 'created_at']
    list_filter = ['splitting_method', 'created_at']
    search_fields = ['name', 'description', 'event__name', 'event__slug']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [ExpenseParticipantInline, PaymentProofInline]
    date_hierarchy = 'start_date'
    ordering = ['-created_at']

    def total_amount_display(self, obj):
        """Show amount + tax + service_fee - discount."""
        return obj.total_amount
    total_amount_display.short_description = 'Total'


@admin.register(ExpenseParticipant)
class ExpenseParticipantAdmin(admin.ModelAdmin):
    """Admin interface for Obligations."""

    list_display = ['participant', 'expense', 'tag', 'amount_to_pay', 'paid_amount', 'paid_at']
    list_filter = ['tag', 'paid_at']
    search_fields = ['participant__name', 'expense__name']
    readonly_fields = ['created_at', 'updated_at']
