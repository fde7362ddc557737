from estate_core.models import ClientInteraction, Payment, Plot

from .read_only import ReadOnlyTabularInline


class PlotInline(ReadOnlyTabularInline):
    """Plots on the Layout page"""

    model = Plot
    fields = ("plot_number", "area", "area_unit", "status", "client", "price")
    ordering = ("plot_number",)


class PaymentInline(ReadOnlyTabularInline):
    """Payments on the Billing page, in the order they were received"""

    model = Payment
    fields = ("payment_date", "amount", "mode", "reference", "created_by")
    ordering = ("payment_date", "id")


class ClientInteractionInline(ReadOnlyTabularInline):
    model = ClientInteraction
    fields = ("date", "interaction_type", "notes", "created_by")
