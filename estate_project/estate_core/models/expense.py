from django.conf import settings
from django.db import models

EXPENSE_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("approved", "Approved"),
    ("rejected", "Rejected"),
]


# ---------- Expense ----------
class ExpenseCategory(models.Model):
    name = models.CharField(max_length=100, unique=True)
    icon = models.CharField(max_length=50, null=True, blank=True)
    description = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "expense_categories"
        ordering = ["name"]
        verbose_name_plural = "expense categories"

    def __str__(self):
        return self.name


class Expense(models.Model):  # Money spent on a layout/plot or overheads
    description = models.CharField(max_length=255)
    category = models.ForeignKey(
        ExpenseCategory,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="expenses",
    )
    vendor = models.CharField(max_length=200, null=True, blank=True)

    amount = models.DecimalField(max_digits=18, decimal_places=2)
    # Dual valuation: official vs. market price, kept apart
    gov_price = models.DecimalField(
        max_digits=18, decimal_places=2, null=True, blank=True
    )
    market_price = models.DecimalField(
        max_digits=18, decimal_places=2, null=True, blank=True
    )
    is_black = models.BooleanField(default=False)

    date = models.DateField()
    notes = models.TextField(null=True, blank=True)
    payment_mode = models.CharField(max_length=30, null=True, blank=True)

    # Removing a layout or plot keeps the expense, unlinked
    layout = models.ForeignKey(
        "estate_core.Layout",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="expenses",
    )
    plot = models.ForeignKey(
        "estate_core.Plot",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="expenses",
    )

    status = models.CharField(
        max_length=10, choices=EXPENSE_STATUS_CHOICES, default="pending"
    )
    # Set only by the transition to "approved"
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    tags = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "expenses"
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["status"], name="expense_status_idx"),
            models.Index(fields=["layout"], name="expense_layout_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gte=0),
                name="expense_non_negative_amount",
            ),
        ]

    def __str__(self):
        return f"{self.description} ({self.amount})"
