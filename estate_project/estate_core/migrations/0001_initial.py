# Written by hand; keep in sync with estate_core/models/.

from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Layout",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("location", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, null=True)),
                ("gov_rate_per_sqft", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("market_rate_per_sqft", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("total_area", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("total_plots", models.PositiveIntegerField(default=0)),
                ("status", models.CharField(choices=[("active", "Active"), ("inactive", "Inactive"), ("completed", "Completed")], default="active", max_length=20)),
                ("amenities", models.JSONField(blank=True, default=list)),
                ("images", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "layouts",
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["name"], name="layout_name_idx")],
            },
        ),
        migrations.CreateModel(
            name="Client",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("phone", models.CharField(max_length=30, unique=True)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("address", models.TextField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("status", models.CharField(choices=[("active", "Active"), ("inactive", "Inactive"), ("lead", "Lead")], default="active", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "clients",
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["name"], name="client_name_idx")],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("email__isnull", False)), fields=("email",), name="uq_client_email"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ClientInteraction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("interaction_type", models.CharField(max_length=50)),
                ("notes", models.TextField(blank=True, null=True)),
                ("date", models.DateTimeField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="interactions", to="estate_core.client")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "client_interactions",
                "ordering": ["-date"],
            },
        ),
        migrations.CreateModel(
            name="ExpenseCategory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, unique=True)),
                ("icon", models.CharField(blank=True, max_length=50, null=True)),
                ("description", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "expense_categories",
                "ordering": ["name"],
                "verbose_name_plural": "expense categories",
            },
        ),
        migrations.CreateModel(
            name="Plot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("plot_number", models.CharField(max_length=50)),
                ("area", models.DecimalField(decimal_places=2, max_digits=14)),
                ("area_unit", models.CharField(choices=[("sqft", "Square feet"), ("sqm", "Square metres"), ("sqyd", "Square yards"), ("acre", "Acre")], default="sqft", max_length=10)),
                ("dimensions", models.CharField(blank=True, max_length=100, null=True)),
                ("facing", models.CharField(blank=True, max_length=50, null=True)),
                ("status", models.CharField(choices=[("available", "Available"), ("booked", "Booked"), ("sold", "Sold"), ("hold", "Hold"), ("blocked", "Blocked")], default="available", max_length=20)),
                ("booking_date", models.DateField(blank=True, null=True)),
                ("sold_date", models.DateField(blank=True, null=True)),
                ("price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("market_price", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("is_prime", models.BooleanField(default=False)),
                ("features", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("client", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="plots", to="estate_core.client")),
                ("layout", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="plots", to="estate_core.layout")),
            ],
            options={
                "db_table": "plots",
                "ordering": ["layout_id", "plot_number"],
                "indexes": [
                    models.Index(fields=["layout", "status"], name="plot_layout_status_idx"),
                    models.Index(fields=["client"], name="plot_client_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("layout", "plot_number"), name="uq_layout_plot_number"),
                    models.CheckConstraint(condition=models.Q(("area__gte", 0), ("price__gte", 0)), name="plot_non_negative_amounts"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Expense",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(max_length=255)),
                ("vendor", models.CharField(blank=True, max_length=200, null=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("gov_price", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("market_price", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("is_black", models.BooleanField(default=False)),
                ("date", models.DateField()),
                ("notes", models.TextField(blank=True, null=True)),
                ("payment_mode", models.CharField(blank=True, max_length=30, null=True)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")], default="pending", max_length=10)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("approved_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("category", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="expenses", to="estate_core.expensecategory")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("layout", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="expenses", to="estate_core.layout")),
                ("plot", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="expenses", to="estate_core.plot")),
            ],
            options={
                "db_table": "expenses",
                "ordering": ["-date", "-id"],
                "indexes": [
                    models.Index(fields=["status"], name="expense_status_idx"),
                    models.Index(fields=["layout"], name="expense_layout_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gte", 0)), name="expense_non_negative_amount"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Billing",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("bill_number", models.CharField(max_length=64, unique=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("market_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=18, null=True)),
                ("is_black", models.BooleanField(default=False)),
                ("payment_type", models.CharField(default="full", max_length=30)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("partial", "Partially paid"), ("paid", "Paid"), ("overdue", "Overdue"), ("cancelled", "Cancelled")], default="pending", max_length=10)),
                ("due_date", models.DateField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="billings", to="estate_core.client")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("plot", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="billings", to="estate_core.plot")),
            ],
            options={
                "db_table": "billings",
                "ordering": ["-created_at", "-id"],
                "permissions": [("view_black_ledger", "Can view black (market-rate) ledger values")],
                "indexes": [
                    models.Index(fields=["client", "status"], name="billing_client_status_idx"),
                    models.Index(fields=["due_date"], name="billing_due_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gte", 0)), name="billing_non_negative_amount"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("payment_date", models.DateField()),
                ("mode", models.CharField(choices=[("cash", "Cash"), ("cheque", "Cheque"), ("bank_transfer", "Bank Transfer"), ("upi", "UPI"), ("card", "Card"), ("other", "Other")], default="cash", max_length=20)),
                ("reference", models.CharField(blank=True, max_length=200, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("billing", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="payments", to="estate_core.billing")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "payments",
                "ordering": ["payment_date", "id"],
                "indexes": [
                    models.Index(fields=["billing", "payment_date"], name="payment_billing_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="payment_positive_amount"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Attachment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entity_type", models.CharField(choices=[("layout", "Layout"), ("plot", "Plot"), ("client", "Client"), ("billing", "Billing"), ("expense", "Expense")], max_length=20)),
                ("entity_id", models.PositiveBigIntegerField()),
                ("filename", models.CharField(max_length=255)),
                ("filepath", models.CharField(max_length=500)),
                ("filetype", models.CharField(default="application/octet-stream", max_length=100)),
                ("filesize", models.PositiveBigIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("uploaded_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "attachments",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["entity_type", "entity_id"], name="attachment_entity_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BackupRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("kind", models.CharField(choices=[("local", "Local"), ("external", "External"), ("cloud", "Cloud")], default="local", max_length=10)),
                ("status", models.CharField(choices=[("completed", "Completed"), ("failed", "Failed")], max_length=10)),
                ("size", models.PositiveBigIntegerField(blank=True, null=True)),
                ("filepath", models.CharField(blank=True, max_length=500, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "backup_logs",
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="ActivityLogEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("entity_type", models.CharField(max_length=50)),
                ("entity_id", models.PositiveBigIntegerField(blank=True, null=True)),
                ("details", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("actor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "activity_logs",
                "ordering": ["-created_at", "-id"],
                "verbose_name_plural": "activity log entries",
                "indexes": [
                    models.Index(fields=["entity_type", "entity_id"], name="activity_entity_idx"),
                    models.Index(fields=["actor", "created_at"], name="activity_actor_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Setting",
            fields=[
                ("id", models.PositiveSmallIntegerField(default=1, primary_key=True, serialize=False)),
                ("company_name", models.CharField(blank=True, max_length=200, null=True)),
                ("company_address", models.TextField(blank=True, null=True)),
                ("company_phone", models.CharField(blank=True, max_length=30, null=True)),
                ("company_email", models.EmailField(blank=True, max_length=254, null=True)),
                ("company_logo", models.CharField(blank=True, max_length=500, null=True)),
                ("backup_schedule", models.CharField(choices=[("daily", "Daily"), ("weekly", "Weekly"), ("monthly", "Monthly"), ("manual", "Manual only")], default="daily", max_length=10)),
                ("backup_location", models.CharField(blank=True, max_length=500, null=True)),
                ("backup_retention", models.PositiveIntegerField(default=7)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("updated_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "settings",
            },
        ),
    ]
