from django.contrib import admin
from django.core.exceptions import PermissionDenied

# Columns worth showing in a changelist when the model has them
LIST_CANDIDATES = (
    "bill_number", "plot_number", "name", "description", "client", "layout",
    "amount", "status", "kind", "action", "entity_type", "entity_id", "created_at",
)
FILTER_CANDIDATES = ("status", "layout", "is_black", "kind", "entity_type", "action")
SEARCH_CANDIDATES = ("name", "plot_number", "bill_number", "phone", "description", "filename")


def _present(model, candidates):
    names = {f.name for f in model._meta.fields}
    return tuple(c for c in candidates if c in names)


"""Admin for estate rows: browsable, but only the services write them."""
class ReadOnlyAdmin(admin.ModelAdmin):
    list_per_page = 50

    # subclasses that declare list_display keep it
    def get_list_display(self, request):
        if self.list_display != ("__str__",):
            return self.list_display
        return _present(self.model, LIST_CANDIDATES) or ("__str__",)

    def get_list_filter(self, request):
        return _present(self.model, FILTER_CANDIDATES)

    def get_search_fields(self, request):
        return _present(self.model, SEARCH_CANDIDATES)

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    # change page opens read-only; saving is refused below
    def has_change_permission(self, request, obj=None):
        return True

    def save_model(self, request, obj, form, change):
        raise PermissionDenied("Estate records change only through the mutation services.")

    # no delete_selected: cascades must run through the services
    def get_actions(self, request):
        return {}


class ReadOnlyTabularInline(admin.TabularInline):
    extra = 0
    show_change_link = True

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
