from django.contrib import admin
from django.utils.translation import gettext_lazy as _
from reversion.admin import VersionAdmin

from .models import CampingOption, Job, Shift


class ResourceAdmin(VersionAdmin):
    list_display = ('name', 'enabled', 'max_signups', 'used_slots')
    list_filter = ('enabled',)
    search_fields = ('name', 'description')

    def get_queryset(self, request):
        return super().get_queryset(request).with_used_slots()

    # The startup check tool does no consider annotations, only fields, properties and admin methods so make it happy
    def used_slots(self, obj):
        return obj.used_slots
    used_slots.short_description = _('Used slots')
    used_slots.admin_order_field = 'used_slots'


@admin.register(Job)
class JobAdmin(ResourceAdmin):
    list_display = ('name', 'shift', 'location') + ResourceAdmin.list_display[1:]
    list_filter = ('enabled', 'shift__day')
    list_select_related = ('shift',)


@admin.register(CampingOption)
class CampingOptionAdmin(ResourceAdmin):
    pass


class JobInline(admin.TabularInline):
    model = Job
    extra = 0
    fields = ('name', 'location', 'enabled', 'max_signups')


@admin.register(Shift)
class ShiftAdmin(VersionAdmin):
    list_display = ('name', 'day', 'start_time', 'end_time')
    list_filter = ('day',)
    inlines = [JobInline]
