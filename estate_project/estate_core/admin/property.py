from django.contrib import admin

from estate_core.models import Layout, Plot

from .inlines import PlotInline
from .read_only import ReadOnlyAdmin


@admin.register(Layout)
class LayoutAdmin(ReadOnlyAdmin):
    list_display = ("id", "name", "location", "total_plots", "status", "created_at")
    inlines = [PlotInline]


@admin.register(Plot)
class PlotAdmin(ReadOnlyAdmin):
    list_display = ("id", "layout", "plot_number", "area", "status", "client", "price")

    # Fetch layout and client in one SQL join
    def get_queryset(self, request):
        return super().get_queryset(request).select_related("layout", "client")
