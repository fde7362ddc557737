import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from estate_core import services
from estate_core.exceptions import EstateError
from estate_core.models import Layout

User = get_user_model()


class Command(BaseCommand):
    help = "Seed a demo layout, plots, client and a part-paid billing through the services."

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--layout-name",  # Define flag
            default="Green Meadows Phase 2",
            help="Name of the demo layout (default: Green Meadows Phase 2)",
        )
        parser.add_argument("--plots", type=int, default=6, help="Number of plots to create.")
        parser.add_argument("--username", default="demo", help="Username for the demo user.")
        parser.add_argument("--password", default="demo123", help="Password for the demo user.")

    @transaction.atomic
    def handle(self, *args, **options):
        name = options["layout_name"]
        if Layout.objects.filter(name=name).exists():
            raise CommandError(f"Layout {name!r} already exists; nothing seeded.")

        user, created = User.objects.get_or_create(username=options["username"])
        if created:
            user.set_password(options["password"])
            user.is_staff = True
            user.save()

        self.stdout.write(self.style.NOTICE(f"Seeding demo data for {name}..."))
        try:
            layout = services.create_layout(
                {
                    "name": name,
                    "location": "Survey No. 112, Outer Ring Road",
                    "gov_rate_per_sqft": "1450.00",
                    "market_rate_per_sqft": "2300.00",
                    "total_area": "43560.00",
                    "total_plots": options["plots"],
                    "amenities": ["park", "water", "street lights"],
                },
                user=user,
            )
            plots = [
                services.create_plot(
                    {
                        "layout_id": layout.pk,
                        "plot_number": f"P-{i:02d}",
                        "area": "1200.00",
                        "price": str(Decimal("1200") * layout.gov_rate_per_sqft),
                        "market_price": str(Decimal("1200") * layout.market_rate_per_sqft),
                        "facing": "east" if i % 2 else "west",
                    },
                    user=user,
                )
                for i in range(1, options["plots"] + 1)
            ]
            client = services.create_client(
                {"name": "Ravi Kumar", "phone": f"+91-98450-{layout.pk:05d}", "status": "active"},
                user=user,
            )
            if plots:
                billing = services.create_billing(
                    {
                        "client_id": client.pk,
                        "plot_id": plots[0].pk,
                        "amount": str(plots[0].price),
                        "market_amount": str(plots[0].market_price),
                        "due_date": timezone.localdate() + datetime.timedelta(days=30),
                    },
                    user=user,
                )
                services.add_payment(
                    billing.pk,
                    {"amount": str(billing.amount / 4), "mode": "bank_transfer", "reference": "DEMO-ADV"},
                    user=user,
                )
                self.stdout.write(f"Billing {billing.bill_number} raised with an advance payment.")
        except EstateError as exc:
            raise CommandError(f"Seeding failed: {exc.code}: {exc.message}") from exc

        self.stdout.write(self.style.SUCCESS("Demo data seeded successfully!"))
