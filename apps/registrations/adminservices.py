import logging

from django.db import transaction

from apps.audit.models import AuditEntry
from apps.audit.services import AuditTrailService
from apps.core.exceptions import InvalidTransition, NotFound, ProviderError, ResourceFull, StaleStatus
from apps.payments.models import Payment
from apps.payments.services import PaymentRefundService

from .models import Registration, RegistrationCampingOption, RegistrationJob
from .services import CapacityService, RegistrationNotifyService, RegistrationStatusService, WaitinglistService

logger = logging.getLogger(__name__)


def snapshot(registration):
    """ Returns the administratively relevant state of a registration, as stored in audit entries. """
    return {
        'status': registration.status,
        'job_ids': sorted(registration.job_assignments.values_list('job_id', flat=True)),
        'camping_option_ids': sorted(registration.camping_option_assignments.values_list('camping_option_id',
                                                                                         flat=True)),
    }


class CancellationResult:
    """ Outcome of an administrative cancellation, including any refunds. """

    def __init__(self, registration):
        self.registration = registration
        self.refunded = []
        self.refund_errors = []

    @property
    def total_refunded(self):
        return sum((p.amount for p in self.refunded), 0)

    @property
    def refund_complete(self):
        return not self.refund_errors


class RegistrationAdminService:
    @staticmethod
    def get(registration_id):
        try:
            return Registration.objects.get(pk=registration_id)
        except Registration.DoesNotExist:
            raise NotFound()

    @staticmethod
    def search(participant=None, season=None, status=None):
        return Registration.objects.search(participant=participant, season=season, status=status).prefetch_resources()

    @staticmethod
    def replace_resources(registration, job_ids=None, camping_option_ids=None):
        """
        Replaces the jobs and/or camping options of the registration (None leaves them unchanged).

        Newly added resources must have a free slot, otherwise ResourceFull is raised: administrators do not get to
        put anyone on a waiting list. Resources that are kept also keep their assignment (reserved or waiting).
        Returns the resources of which a reserved slot was released.
        """
        current_jobs = {a.job_id: a for a in registration.job_assignments.all()}
        current_options = {a.camping_option_id: a for a in registration.camping_option_assignments.all()}

        wanted_jobs = set(current_jobs if job_ids is None else job_ids)
        wanted_options = set(current_options if camping_option_ids is None else camping_option_ids)

        removed = [
            *(a for pk, a in current_jobs.items() if pk not in wanted_jobs),
            *(a for pk, a in current_options.items() if pk not in wanted_options),
        ]
        added_job_ids = wanted_jobs - set(current_jobs)
        added_option_ids = wanted_options - set(current_options)

        # Lock everything that changes hands, in the usual order
        jobs, camping_options = CapacityService.lock_resources(
            added_job_ids | {a.job_id for a in removed if isinstance(a, RegistrationJob)},
            added_option_ids | {a.camping_option_id for a in removed if isinstance(a, RegistrationCampingOption)},
        )
        added = [r for r in jobs if r.pk in added_job_ids] + [r for r in camping_options if r.pk in added_option_ids]

        for resource in added:
            if not CapacityService.has_capacity(resource):
                raise ResourceFull(resource)

        freed = [a.resource for a in removed if a.reserved]
        for assignment in removed:
            assignment.delete()
        CapacityService.assign(registration, added)
        return freed

    @classmethod
    def edit(cls, registration_id, actor, status=None, job_ids=None, camping_option_ids=None, notes='',
             send_notification=False, expected_status=None):
        """
        Changes a registration on behalf of an administrator, recording an audit entry.

        When expected_status is given and no longer matches, StaleStatus is raised. Everything (including the audit
        entry) happens in one transaction, so a failure (e.g. a newly added resource being full) changes nothing.
        """
        with transaction.atomic():
            registration = cls.get(registration_id)
            if expected_status is None:
                expected_status = registration.status
            elif expected_status != registration.status:
                raise StaleStatus()

            changes_resources = job_ids is not None or camping_option_ids is not None
            changes_status = status is not None and status != expected_status
            if registration.is_cancelled and (changes_resources or changes_status):
                raise InvalidTransition(expected_status, status or expected_status)
            if changes_status and not Registration.can_transition(expected_status, status):
                raise InvalidTransition(expected_status, status)

            old = snapshot(registration)

            freed = []
            if changes_resources:
                freed = cls.replace_resources(registration, job_ids, camping_option_ids)

                # Nothing left to wait for, so it can never be promoted
                if (not changes_status and registration.status == Registration.Status.WAITLISTED
                        and not registration.job_assignments.waiting().exists()
                        and not registration.camping_option_assignments.waiting().exists()):
                    status, changes_status = Registration.Status.PENDING, True

            if changes_status:
                RegistrationStatusService.change_status(registration, status, expected_status=expected_status)
            else:
                # Fail when someone else changed the status meanwhile
                RegistrationStatusService.touch(registration, expected_status)

            WaitinglistService.promote_for(freed)

            new = snapshot(registration)
            AuditTrailService.append(actor, registration, AuditEntry.Action.EDIT, {'old': old, 'new': new},
                                     reason=notes)
            if send_notification:
                RegistrationNotifyService.enqueue(registration.participant, 'registration_modified', {
                    'registration': registration, 'notes': notes,
                })

        logger.info("Registration %s edited by %s: %s -> %s", registration.pk, actor.pk, old, new)
        return registration

    @classmethod
    def cancel(cls, registration_id, actor, reason='', process_refund=False, send_notification=False):
        """
        Cancels a registration on behalf of an administrator, recording an audit entry.

        When process_refund is set, completed payments are refunded after the cancellation is committed. Refund
        failures do not undo the cancellation, they are reported in the returned CancellationResult instead.
        """
        with transaction.atomic():
            registration = cls.get(registration_id)
            if registration.is_cancelled:
                raise InvalidTransition(registration.status, Registration.Status.CANCELLED)

            old = snapshot(registration)
            RegistrationStatusService.cancel(registration, expected_status=old['status'])

            AuditTrailService.append(actor, registration, AuditEntry.Action.CANCEL, {
                'old': old,
                'new': snapshot(registration),
                'process_refund': process_refund,
            }, reason=reason)
            if send_notification:
                RegistrationNotifyService.enqueue(registration.participant, 'registration_cancelled', {
                    'registration': registration, 'reason': reason, 'process_refund': process_refund,
                })

        logger.info("Registration %s cancelled by %s", registration.pk, actor.pk)

        result = CancellationResult(registration)
        if process_refund:
            for payment in registration.payments.completed().order_by('pk'):
                try:
                    PaymentRefundService.refund(payment)
                except ProviderError as e:
                    logger.error("Refunding payment %s for cancelled registration %s failed: %s",
                                 payment.pk, registration.pk, e)
                    result.refund_errors.append((payment, e))
                else:
                    if payment.status == Payment.Status.REFUNDED:
                        result.refunded.append(payment)
        return result
