from django.contrib import admin
from django.core.exceptions import PermissionDenied

"""Base admin for ledger rows that are written only by the posting services."""
class ReadOnlyAdmin(admin.ModelAdmin):
    list_per_page = 50

    # make every model field readonly
    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    # the change page stays viewable; every field is readonly anyway
    def has_change_permission(self, request, obj=None):
        return True

    def save_model(self, request, obj, form, change):
        raise PermissionDenied("Ledger rows cannot be changed via the admin.")

    # no delete_selected
    def get_actions(self, request):
        return {}

    # Common useful filters if present
    def get_list_filter(self, request):
        if self.list_filter:
            return self.list_filter
        possible = {f.name for f in self.model._meta.fields}
        return tuple(
            c for c in ("company", "source_module", "method", "financial_period") if c in possible
        )
