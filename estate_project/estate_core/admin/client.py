from django.contrib import admin

from estate_core.models import Client

from .inlines import ClientInteractionInline
from .read_only import ReadOnlyAdmin


@admin.register(Client)
class ClientAdmin(ReadOnlyAdmin):
    list_display = ("id", "name", "phone", "email", "status", "created_at")
    inlines = [ClientInteractionInline]
