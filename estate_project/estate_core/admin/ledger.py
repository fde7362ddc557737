from django.contrib import admin

from estate_core.models import Billing, Expense, ExpenseCategory, Payment

from .inlines import PaymentInline
from .read_only import ReadOnlyAdmin

# market-rate columns are shown only to users allowed to see them
BLACK_COLUMNS = ("market_amount", "market_price", "market_rate_per_sqft", "is_black")


class BlackLedgerMixin:
    def _can_see_black(self, request):
        return request.user.has_perm("estate_core.view_black_ledger")

    def get_list_display(self, request):
        columns = super().get_list_display(request)
        if self._can_see_black(request):
            return columns
        return tuple(c for c in columns if c not in BLACK_COLUMNS)

    def get_exclude(self, request, obj=None):
        if self._can_see_black(request):
            return super().get_exclude(request, obj)
        return BLACK_COLUMNS

    def get_readonly_fields(self, request, obj=None):
        fields = super().get_readonly_fields(request, obj)
        if self._can_see_black(request):
            return fields
        return [f for f in fields if f not in BLACK_COLUMNS]


@admin.register(Billing)
class BillingAdmin(BlackLedgerMixin, ReadOnlyAdmin):
    list_display = (
        "bill_number", "client", "plot", "amount", "market_amount",
        "status", "due_date", "created_at",
    )
    inlines = [PaymentInline]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("client", "plot")


@admin.register(Payment)
class PaymentAdmin(ReadOnlyAdmin):
    list_display = ("id", "billing", "amount", "payment_date", "mode", "reference")

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("billing")


@admin.register(Expense)
class ExpenseAdmin(BlackLedgerMixin, ReadOnlyAdmin):
    list_display = (
        "id", "description", "category", "amount", "gov_price", "market_price",
        "is_black", "status", "approved_by", "date",
    )

    def get_queryset(self, request):
        qs = super().get_queryset(request).select_related("category", "approved_by")
        if self._can_see_black(request):
            return qs
        return qs.filter(is_black=False)


@admin.register(ExpenseCategory)
class ExpenseCategoryAdmin(ReadOnlyAdmin):
    list_display = ("id", "name", "icon")
