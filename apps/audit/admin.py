from django.contrib import admin

from .models import AuditEntry


@admin.register(AuditEntry)
class AuditEntryAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'registration', 'actor', 'reason')
    list_filter = ('action',)
    date_hierarchy = 'created_at'
    search_fields = ('registration__participant__email', 'actor__email', 'reason')
    readonly_fields = ('created_at', 'action', 'registration', 'actor', 'payload', 'reason')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
