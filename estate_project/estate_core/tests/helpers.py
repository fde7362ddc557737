from decimal import Decimal

from django.contrib.auth import get_user_model

from .. import services


class EstateFixturesMixin:
    """
    Helpers to build a small estate through the services, so every row
    in a test arrives the way production rows do (with its audit entry).
    """

    def make_user(self, username="clerk"):
        return get_user_model().objects.create_user(username=username, password="pw")

    def make_layout(self, name="Green Meadows", user=None, **extra):
        data = {"name": name, "location": "Outer Ring Road", "total_plots": 10}
        data.update(extra)
        return services.create_layout(data, user=user)

    def make_plot(self, layout, number="P-01", user=None, **extra):
        data = {"layout_id": layout.pk, "plot_number": number, "area": "1200.00", "price": "1740000.00"}
        data.update(extra)
        return services.create_plot(data, user=user)

    def make_client(self, name="Ravi Kumar", phone="+91-9845000001", user=None, **extra):
        data = {"name": name, "phone": phone}
        data.update(extra)
        return services.create_client(data, user=user)

    def make_billing(self, client, plot=None, amount="1000000.00", user=None, **extra):
        data = {"client_id": client.pk, "amount": amount}
        if plot is not None:
            data["plot_id"] = plot.pk
        data.update(extra)
        return services.create_billing(data, user=user)

    def pay(self, billing, amount, user=None, **extra):
        data = {"amount": str(Decimal(amount))}
        data.update(extra)
        return services.add_payment(billing.pk, data, user=user)
