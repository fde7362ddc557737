from django.conf import settings
from django.db import models

CLIENT_STATUS_CHOICES = [
    ("active", "Active"),
    ("inactive", "Inactive"),
    ("lead", "Lead"),
]


# ---------- Client ----------
class Client(models.Model):  # Buyer of plots, receiver of billings
    name = models.CharField(max_length=200)
    # Phone is the natural key staff look clients up by
    phone = models.CharField(max_length=30, unique=True)
    email = models.EmailField(null=True, blank=True)
    address = models.TextField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    status = models.CharField(
        max_length=10, choices=CLIENT_STATUS_CHOICES, default="active"
    )

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
        db_table = "clients"
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["name"], name="client_name_idx")]
        constraints = [
            # Email is optional, but two clients never share one
            models.UniqueConstraint(
                fields=["email"],
                condition=models.Q(email__isnull=False),
                name="uq_client_email",
            ),
        ]

    def __str__(self):
        return self.name


class ClientInteraction(models.Model):  # Call/visit/meeting notes
    client = models.ForeignKey(
        Client, on_delete=models.CASCADE, related_name="interactions"
    )
    interaction_type = models.CharField(max_length=50)
    notes = models.TextField(null=True, blank=True)
    date = models.DateTimeField()
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "client_interactions"
        ordering = ["-date"]

    def __str__(self):
        return f"{self.interaction_type} with {self.client_id} on {self.date:%Y-%m-%d}"
