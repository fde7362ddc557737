from decimal import Decimal

from django.conf import settings
from django.db import models

from ..managers import PlotQuerySet

LAYOUT_STATUS_CHOICES = [
    ("active", "Active"),
    ("inactive", "Inactive"),
    ("completed", "Completed"),
]

PLOT_STATUS_CHOICES = [
    ("available", "Available"),
    ("booked", "Booked"),
    ("sold", "Sold"),
    ("hold", "Hold"),
    ("blocked", "Blocked"),
]

AREA_UNIT_CHOICES = [
    ("sqft", "Square feet"),
    ("sqm", "Square metres"),
    ("sqyd", "Square yards"),
    ("acre", "Acre"),
]


# ---------- Layout ----------
class Layout(models.Model):  # A land development divided into plots

    name = models.CharField(max_length=200)
    location = models.CharField(max_length=255)
    description = models.TextField(null=True, blank=True)

    # Official (government) and unofficial (market) valuation rates
    # are stored side by side and never merged
    gov_rate_per_sqft = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    market_rate_per_sqft = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    total_area = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # Planned number of plots, as surveyed
    total_plots = models.PositiveIntegerField(default=0)

    status = models.CharField(
        max_length=20, choices=LAYOUT_STATUS_CHOICES, default="active"
    )
    amenities = models.JSONField(default=list, blank=True)
    images = models.JSONField(default=list, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "layouts"
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["name"], name="layout_name_idx")]

    def __str__(self):
        return self.name


# ---------- Plot ----------
class Plot(models.Model):  # One saleable unit inside a layout

    # Every plot belongs to exactly one layout
    # (the mutation services delete plots before their layout)
    layout = models.ForeignKey(
        Layout, on_delete=models.CASCADE, related_name="plots"
    )
    plot_number = models.CharField(max_length=50)

    area = models.DecimalField(max_digits=14, decimal_places=2)
    area_unit = models.CharField(
        max_length=10, choices=AREA_UNIT_CHOICES, default="sqft"
    )
    dimensions = models.CharField(max_length=100, null=True, blank=True)
    facing = models.CharField(max_length=50, null=True, blank=True)

    status = models.CharField(
        max_length=20, choices=PLOT_STATUS_CHOICES, default="available"
    )

    # At most one client at a time; a client with plots cannot be deleted
    client = models.ForeignKey(
        "estate_core.Client",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="plots",
    )
    # Stamped only by the matching status transition
    booking_date = models.DateField(null=True, blank=True)
    sold_date = models.DateField(null=True, blank=True)

    # Official price vs. market (black ledger) price
    price = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    market_price = models.DecimalField(
        max_digits=18, decimal_places=2, null=True, blank=True
    )

    is_prime = models.BooleanField(default=False)
    features = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PlotQuerySet.as_manager()

    class Meta:
        db_table = "plots"
        ordering = ["layout_id", "plot_number"]
        indexes = [
            models.Index(fields=["layout", "status"], name="plot_layout_status_idx"),
            models.Index(fields=["client"], name="plot_client_idx"),
        ]
        constraints = [
            # Plot numbers repeat across layouts but not within one
            models.UniqueConstraint(
                fields=["layout", "plot_number"], name="uq_layout_plot_number"
            ),
            models.CheckConstraint(
                condition=models.Q(area__gte=0) & models.Q(price__gte=0),
                name="plot_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"Plot {self.plot_number} ({self.layout_id})"
