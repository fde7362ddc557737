from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models.functions import Coalesce

from ..managers import BillingQuerySet

BILLING_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("partial", "Partially paid"),
    ("paid", "Paid"),
    ("overdue", "Overdue"),
    ("cancelled", "Cancelled"),
]
""" Workflow:
    pending → partial → paid   (derived from payments only)
    overdue                    (time-based sweep, leaves on next payment)
    cancelled                  (explicit admin action, terminal) """

PAYMENT_MODES = [
    ("cash", "Cash"),
    ("cheque", "Cheque"),
    ("bank_transfer", "Bank Transfer"),
    ("upi", "UPI"),
    ("card", "Card"),
    ("other", "Other"),
]


# ---------- Billing ----------
class Billing(models.Model):  # Sale bill raised to a client for a plot

    # human-readable (e.g. "PS2-B001")
    bill_number = models.CharField(max_length=64, unique=True)

    # a client with billings cannot be deleted
    client = models.ForeignKey(
        "estate_core.Client", on_delete=models.PROTECT, related_name="billings"
    )
    # plot is optional; removing it keeps the bill
    plot = models.ForeignKey(
        "estate_core.Plot",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="billings",
    )

    # White/official total; drives the payment state machine
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    # Black/market total; informational, never added to `amount`
    market_amount = models.DecimalField(
        max_digits=18, decimal_places=2, null=True, blank=True
    )
    is_black = models.BooleanField(default=False)
    payment_type = models.CharField(max_length=30, default="full")

    # Written only by services.ledger
    status = models.CharField(
        max_length=10, choices=BILLING_STATUS_CHOICES, default="pending"
    )
    due_date = models.DateField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BillingQuerySet.as_manager()

    class Meta:
        db_table = "billings"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["client", "status"], name="billing_client_status_idx"),
            models.Index(fields=["due_date"], name="billing_due_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gte=0),
                name="billing_non_negative_amount",
            ),
        ]
        permissions = [
            ("view_black_ledger", "Can view black (market-rate) ledger values"),
        ]

    def __str__(self):
        return f"Bill {self.bill_number}"

    def paid_total(self):
        """Sum of payments, read straight from the payments table."""
        if not self.pk:
            return Decimal("0.00")
        return self.payments.aggregate(
            total=Coalesce(
                models.Sum("amount"),
                models.Value(Decimal("0.00")),
                output_field=models.DecimalField(max_digits=18, decimal_places=2),
            )
        )["total"]

    @property
    def balance(self):
        # Negative when overpaid
        return self.amount - self.paid_total()


class Payment(models.Model):  # Money received against a billing
    billing = models.ForeignKey(
        Billing, on_delete=models.CASCADE, related_name="payments"
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    payment_date = models.DateField()
    mode = models.CharField(max_length=20, choices=PAYMENT_MODES, default="cash")
    reference = models.CharField(max_length=200, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "payments"
        ordering = ["payment_date", "id"]
        indexes = [
            models.Index(fields=["billing", "payment_date"], name="payment_billing_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_positive_amount",
            ),
        ]

    def __str__(self):
        return f"{self.amount} on {self.billing_id} ({self.payment_date})"

    """ Payments are append-only: the ledger never loses history to an edit """

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            raise TypeError("Payments cannot be modified once recorded.")
        return super().save(*args, **kwargs)
