import reversion
from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import JsonResponse
from django.utils.translation import gettext as _
from django.views.generic import View

from apps.core.exceptions import NotFound
from campreg.common.views import CacheUsingTimestampsMixin, ServiceErrorMixin, error_response, form_error_response

from .forms import RegistrationCreateForm, RegistrationFilterForm
from .models import Registration
from .services import RegistrationAdmissionService, RegistrationStatusService


def registration_json(registration):
    return {
        'id': registration.pk,
        'participant': registration.participant_id,
        'season': registration.season,
        'status': registration.status,
        'needs_reconciliation': registration.needs_reconciliation,
        'jobs': [
            {'id': a.job_id, 'reserved': a.reserved} for a in registration.job_assignments.all()
        ],
        'camping_options': [
            {'id': a.camping_option_id, 'reserved': a.reserved} for a in registration.camping_option_assignments.all()
        ],
        'created_at': registration.created_at,
        'updated_at': registration.updated_at,
        'confirmed_at': registration.confirmed_at,
        'cancelled_at': registration.cancelled_at,
    }


def record_revision(request, registration, comment):
    """ Stores a revision of the registration (and its assignments) as it is now. """
    with reversion.create_revision():
        reversion.add_to_revision(registration)
        reversion.set_user(request.user)
        reversion.set_comment(comment)


class RegistrationListCreate(LoginRequiredMixin, ServiceErrorMixin, CacheUsingTimestampsMixin, View):
    """
    Lists registrations (GET) or registers the current user (POST).

    Participants only see their own registrations. Users that can view all registrations can filter on participant,
    and see everyone's registrations when they do not.
    """

    raise_exception = True

    def can_view_all(self):
        return self.request.user.has_perm('registrations.view_registration')

    def get_filters(self):
        form = RegistrationFilterForm(self.request.GET)
        if not form.is_valid():
            return form, None

        filters = form.filters()
        if not self.can_view_all():
            if filters.get('participant', self.request.user.pk) != self.request.user.pk:
                return form, None
            filters['participant'] = self.request.user.pk
        return form, filters

    def instances_used(self):
        if self.request.method != 'GET':
            return None
        form, filters = self.get_filters()
        if filters is None:
            return None
        return [Registration.objects.search(**filters)]

    def get(self, request):
        form, filters = self.get_filters()
        if not form.is_valid():
            return form_error_response(form)
        if filters is None:
            return error_response(403, 'forbidden', [_("You can only list your own registrations")])

        registrations = Registration.objects.search(**filters).prefetch_resources()
        return JsonResponse({'registrations': [registration_json(r) for r in registrations]})

    def post(self, request):
        form = RegistrationCreateForm(request.POST)
        if not form.is_valid():
            return form_error_response(form)

        registration = RegistrationAdmissionService.create(
            participant=request.user,
            season=form.cleaned_data['season'],
            job_ids=form.cleaned_data['job_ids'],
            camping_option_ids=form.cleaned_data['camping_option_ids'],
        )
        record_revision(request, registration, _("Registration created ({})").format(registration.status))
        return JsonResponse(registration_json(registration), status=201)


class RegistrationCancel(LoginRequiredMixin, ServiceErrorMixin, View):
    """ Lets a participant cancel their own registration. This does not refund anything. """

    raise_exception = True

    def post(self, request, pk):
        try:
            registration = Registration.objects.get(pk=pk, participant=request.user)
        except Registration.DoesNotExist:
            raise NotFound()

        expected_status = request.POST.get('expected_status') or registration.status
        RegistrationStatusService.cancel(registration, expected_status=expected_status)
        record_revision(request, registration, _("Registration cancelled by participant"))
        return JsonResponse(registration_json(registration))
