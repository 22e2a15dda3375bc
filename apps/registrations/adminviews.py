from django.contrib.auth.mixins import PermissionRequiredMixin
from django.http import JsonResponse
from django.utils.translation import gettext as _
from django.views.generic import View

from apps.audit.services import AuditTrailService
from campreg.common.views import ServiceErrorMixin, form_error_response

from .adminservices import RegistrationAdminService
from .forms import RegistrationCancelForm, RegistrationEditForm
from .views import record_revision, registration_json


class AdminRegistrationEdit(PermissionRequiredMixin, ServiceErrorMixin, View):
    permission_required = 'registrations.change_registration'
    raise_exception = True

    def post(self, request, pk):
        form = RegistrationEditForm(request.POST)
        if not form.is_valid():
            return form_error_response(form)

        registration = RegistrationAdminService.edit(pk, actor=request.user, **form.cleaned_data)
        record_revision(request, registration, _("Registration edited by administrator"))
        return JsonResponse(registration_json(registration))


class AdminRegistrationCancel(PermissionRequiredMixin, ServiceErrorMixin, View):
    permission_required = 'registrations.change_registration'
    raise_exception = True

    def post(self, request, pk):
        form = RegistrationCancelForm(request.POST)
        if not form.is_valid():
            return form_error_response(form)

        result = RegistrationAdminService.cancel(pk, actor=request.user, **form.cleaned_data)
        record_revision(request, result.registration, _("Registration cancelled by administrator"))

        data = registration_json(result.registration)
        data['refunds'] = {
            'refunded': [p.pk for p in result.refunded],
            'failed': [{'payment': p.pk, 'error': str(e.message)} for p, e in result.refund_errors],
            'total': result.total_refunded,
        }
        return JsonResponse(data)


class AdminRegistrationAudit(PermissionRequiredMixin, ServiceErrorMixin, View):
    permission_required = 'audit.view_auditentry'
    raise_exception = True

    def get(self, request, pk):
        registration = RegistrationAdminService.get(pk)
        entries = AuditTrailService.query(registration=registration)
        return JsonResponse({'entries': [
            {
                'id': entry.pk,
                'actor': entry.actor_id,
                'action': entry.action,
                'payload': entry.payload,
                'reason': entry.reason,
                'created_at': entry.created_at,
            }
            for entry in entries
        ]})
