import reversion
from django.contrib import admin, messages
from django.http import HttpResponse
from django.utils.translation import gettext_lazy as _
from reversion.admin import VersionAdmin

from apps.core.exceptions import Conflict
from apps.payments.admin import PaymentInline

from .adminservices import RegistrationAdminService
from .models import Registration, RegistrationCampingOption, RegistrationJob


class JobAssignmentInline(admin.TabularInline):
    model = RegistrationJob
    extra = 0
    # Assignments decide capacity, so they are only changed through RegistrationAdminService
    readonly_fields = ('job', 'reserved', 'created_at')
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class CampingOptionAssignmentInline(JobAssignmentInline):
    model = RegistrationCampingOption
    readonly_fields = ('camping_option', 'reserved', 'created_at')


def change_status_action(new):
    """ Helper to generate status change actions, which go through the same service as the admin API. """
    def action(modeladmin, request, queryset):
        changed = 0
        for reg in queryset:
            try:
                RegistrationAdminService.edit(reg.pk, actor=request.user, status=new,
                                              notes=_("Changed via admin action"))
            except Conflict as e:
                modeladmin.message_user(request, '{}: {}'.format(reg, e.message), messages.ERROR)
                continue
            with reversion.create_revision():
                reversion.add_to_revision(Registration.objects.get(pk=reg.pk))
                reversion.set_user(request.user)
                reversion.set_comment(_("Updated registration status to {} via admin.").format(new))
            changed += 1
        if changed:
            modeladmin.message_user(request, 'Changed {} registration(s) to {}'.format(changed, new))
    action.short_description = 'Change selected registrations to {}'.format(new)
    action.__name__ = 'to_{}'.format(new.lower())
    return action


@admin.register(Registration)
class RegistrationAdmin(VersionAdmin):
    list_display = ('participant', 'season', 'status', 'needs_reconciliation', 'created_at', 'confirmed_at')
    search_fields = ['participant__first_name', 'participant__last_name', 'participant__email']
    list_select_related = ['participant']
    list_filter = ['status', 'season', 'needs_reconciliation']
    readonly_fields = ('participant', 'season', 'status', 'created_at', 'updated_at', 'confirmed_at', 'cancelled_at')
    fields = readonly_fields + ('needs_reconciliation',)

    inlines = [JobAssignmentInline, CampingOptionAssignmentInline, PaymentInline]

    actions = [
        'make_mailing_list',
        change_status_action(Registration.Status.CONFIRMED),
        change_status_action(Registration.Status.CANCELLED),
    ]

    def has_add_permission(self, request):
        # New registrations go through RegistrationAdmissionService
        return False

    def make_mailing_list(self, request, queryset):
        return HttpResponse(
            "\n".join("{} <{}>,".format(r.participant.get_full_name(), r.participant.email)
                      for r in queryset.select_related('participant')),
            content_type="text/plain; charset=utf-8",
        )
