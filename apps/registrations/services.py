import logging
import re

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.mail import EmailMessage
from django.db import transaction
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.translation import gettext as _

from apps.camps.models import CampingOption, Job
from apps.core.exceptions import AlreadyRegistered, InvalidTransition, NotFound, ResourceFull, StaleStatus
from campreg.common.db import lock_in_order

from .models import AdmissionKey, Registration, RegistrationCampingOption, RegistrationJob

logger = logging.getLogger(__name__)


class CapacityPolicy:
    """ What to do when a requested resource is full. """

    # Refuse the whole request
    REJECT = 'reject'
    # Accept the request, but without a slot on the full resource (i.e. on the waiting list)
    WAITLIST = 'waitlist'

    @classmethod
    def default(cls):
        return settings.REGISTRATION_CAPACITY_POLICY


class CapacityService:
    # Assignment model for each kind of resource
    assignment_models = {
        Job: RegistrationJob,
        CampingOption: RegistrationCampingOption,
    }

    @staticmethod
    def lock_resources(job_ids=(), camping_option_ids=()):
        """
        Locks the given jobs and camping options and returns them as two lists.

        Jobs are locked before camping options, each in primary key order, so concurrent lockers cannot deadlock on
        them. Raises NotFound when any of the ids does not exist.
        """
        locked = []
        for model, ids in ((Job, job_ids), (CampingOption, camping_option_ids)):
            ids = set(ids)
            resources = lock_in_order(model.objects.filter(pk__in=ids)) if ids else []
            missing = ids - {r.pk for r in resources}
            if missing:
                raise NotFound(_("Unknown {} id(s): {}").format(
                    model._meta.verbose_name, ", ".join(str(i) for i in sorted(missing))))
            locked.append(resources)
        return locked

    @staticmethod
    def used_slots(resource):
        return type(resource).objects.used_slots_for(resource)

    @classmethod
    def has_capacity(cls, resource):
        """ Returns whether one more slot is available. Only reliable while the resource is locked. """
        if not resource.is_limited:
            return True
        return resource.has_capacity_for(cls.used_slots(resource))

    @classmethod
    def full_resources(cls, resources):
        return [r for r in resources if not cls.has_capacity(r)]

    @classmethod
    def assign(cls, registration, resources, full=()):
        """
        Creates assignments for the given (locked) resources.

        Resources listed in full get an unreserved (waiting) assignment, all others a reserved one. The caller is
        responsible for checking capacity (see full_resources()), in the same transaction.
        """
        full = {(type(r), r.pk) for r in full}
        for resource in resources:
            model = cls.assignment_models[type(resource)]
            model.objects.create(**{
                'registration': registration,
                model.resource_field: resource,
                'reserved': (type(resource), resource.pk) not in full,
            })

    @staticmethod
    def assignments(registration):
        return [*registration.job_assignments.all(), *registration.camping_option_assignments.all()]

    @classmethod
    def reserve_pending(cls, registration):
        """
        Reserves a slot for every resource the registration is waiting for.

        This is all-or-nothing: when any of these resources is (still) full, ResourceFull is raised and nothing is
        reserved.
        """
        with transaction.atomic():
            job_ids = registration.job_assignments.waiting().values_list('job_id', flat=True)
            option_ids = registration.camping_option_assignments.waiting().values_list('camping_option_id', flat=True)
            jobs, camping_options = cls.lock_resources(list(job_ids), list(option_ids))

            for resource in [*jobs, *camping_options]:
                if not cls.has_capacity(resource):
                    raise ResourceFull(resource)

            registration.job_assignments.waiting().update(reserved=True)
            registration.camping_option_assignments.waiting().update(reserved=True)

    @classmethod
    def release(cls, registration):
        """
        Removes all assignments of the registration.

        Returns the resources that had a slot reserved, which might now have room for someone on the waiting list.
        """
        freed = [a.resource for a in cls.assignments(registration) if a.reserved]
        registration.job_assignments.all().delete()
        registration.camping_option_assignments.all().delete()
        return freed


class WaitinglistService:
    @staticmethod
    def automatic_promotion():
        return settings.REGISTRATION_WAITLIST_PROMOTION == 'automatic'

    @classmethod
    def promote_for(cls, resources):
        """
        Promotes waitlisted registrations to PENDING for resources that (may) have free slots again.

        For every resource, registrations waiting for it are considered oldest first. A registration is only promoted
        when all resources it waits for have a free slot, otherwise the next one is tried. This continues until the
        resource is full again or nobody eligible is waiting. Returns the promoted registrations.

        Does nothing unless promotion is automatic (see REGISTRATION_WAITLIST_PROMOTION).
        """
        if not cls.automatic_promotion() or not resources:
            return []

        promoted = []
        with transaction.atomic():
            # Lock everything up front, in the usual order, rather than one by one below
            jobs, camping_options = CapacityService.lock_resources(
                [r.pk for r in resources if isinstance(r, Job)],
                [r.pk for r in resources if isinstance(r, CampingOption)],
            )
            for resource in [*jobs, *camping_options]:
                promoted += cls._promote_for_resource(resource)
        return promoted

    @classmethod
    def _promote_for_resource(cls, resource):
        promoted = []
        skip = set()
        while CapacityService.has_capacity(resource):
            candidate = Registration.objects.waitlisted_for(resource).exclude(pk__in=skip).first()
            if candidate is None:
                break

            try:
                RegistrationStatusService.change_status(
                    candidate, Registration.Status.PENDING, expected_status=Registration.Status.WAITLISTED,
                )
            except (ResourceFull, StaleStatus) as e:
                logger.debug("Not promoting registration %s for %s: %s", candidate.pk, resource, e)
                skip.add(candidate.pk)
                continue

            logger.info("Promoted registration %s from the waiting list for %s", candidate.pk, resource)
            RegistrationNotifyService.enqueue(candidate.participant, 'promoted', {'registration': candidate})
            promoted.append(candidate)
        return promoted


class RegistrationStatusService:
    @staticmethod
    def transition(registration, expected_status, new_status, **fields):
        """
        Changes the status of a registration, as long as it is still expected_status.

        This only changes the registration itself, use change_status() to also handle reservations. Raises
        InvalidTransition when the change is not allowed, or StaleStatus when the status in the database is no longer
        expected_status (i.e. someone else changed it since it was read).
        """
        if not Registration.can_transition(expected_status, new_status):
            raise InvalidTransition(expected_status, new_status)

        now = timezone.now()
        if new_status == Registration.Status.CONFIRMED:
            fields.setdefault('confirmed_at', now)
        elif new_status == Registration.Status.CANCELLED:
            fields.setdefault('cancelled_at', now)

        updated = Registration.objects.filter(pk=registration.pk, status=expected_status).update(
            status=new_status, **fields,
        )
        if not updated:
            raise StaleStatus()
        registration.refresh_from_db()

    @staticmethod
    def touch(registration, expected_status):
        """ Bumps updated_at, as long as the status is still expected_status (otherwise raises StaleStatus). """
        if not Registration.objects.filter(pk=registration.pk, status=expected_status).update():
            raise StaleStatus()
        registration.refresh_from_db()

    @classmethod
    def change_status(cls, registration, new_status, expected_status=None):
        """
        Changes the status of a registration, including the reservations that go with it.

         - Leaving the waiting list (to PENDING or CONFIRMED) reserves a slot for every resource the registration
           was waiting for, or raises ResourceFull.
         - Cancelling releases all reservations and promotes waitlisted registrations where slots were freed.

        Returns the registrations promoted as a result.
        """
        if expected_status is None:
            expected_status = registration.status
        if not Registration.can_transition(expected_status, new_status):
            raise InvalidTransition(expected_status, new_status)

        with transaction.atomic():
            if new_status == Registration.Status.CANCELLED:
                # Resources are locked before the registration row, as on every other path
                CapacityService.lock_resources(
                    registration.job_assignments.values_list('job_id', flat=True),
                    registration.camping_option_assignments.values_list('camping_option_id', flat=True),
                )
                cls.transition(registration, expected_status, new_status)
                freed = CapacityService.release(registration)
                return WaitinglistService.promote_for(freed)

            if expected_status == Registration.Status.WAITLISTED:
                CapacityService.reserve_pending(registration)
            cls.transition(registration, expected_status, new_status)
            return []

    @classmethod
    def cancel(cls, registration, expected_status=None):
        """ Cancels the registration (e.g. by the participant), freeing its slots. """
        cls.change_status(registration, Registration.Status.CANCELLED, expected_status=expected_status)
        logger.info("Registration %s cancelled", registration.pk)


class RegistrationAdmissionService:
    @staticmethod
    def validate_season(season):
        last = timezone.now().year + settings.REGISTRATION_MAX_SEASONS_AHEAD
        if not isinstance(season, int) or isinstance(season, bool):
            raise ValidationError(_("Invalid season"), code='invalid_season')
        if not settings.REGISTRATION_MIN_SEASON <= season <= last:
            raise ValidationError(
                _("Season must be between {} and {}").format(settings.REGISTRATION_MIN_SEASON, last),
                code='invalid_season',
            )

    @staticmethod
    def validate_enabled(resources):
        disabled = [str(r) for r in resources if not r.enabled]
        if disabled:
            raise ValidationError(_("Not available: {}").format(", ".join(disabled)), code='disabled')

    @classmethod
    def create(cls, participant, season, job_ids=(), camping_option_ids=(), policy=None):
        """
        Registers the participant for the given season, with the given jobs and camping options.

        Fails with AlreadyRegistered when the participant already has an active registration for the season. This is
        race-free: all admissions for the same participant and season are serialized by locking their AdmissionKey.
        The requested resources are locked too, so slots cannot be taken twice.

        When a resource is full, the registration is either refused (ResourceFull) or created on the waiting list,
        depending on policy (see CapacityPolicy). Returns the new registration, PENDING or WAITLISTED.
        """
        cls.validate_season(season)
        if policy is None:
            policy = CapacityPolicy.default()

        AdmissionKey.objects.ensure(participant, season)

        with transaction.atomic():
            # Take all locks before reading anything else
            AdmissionKey.objects.lock(participant, season)
            jobs, camping_options = CapacityService.lock_resources(job_ids, camping_option_ids)
            resources = [*jobs, *camping_options]

            if Registration.objects.active_for(participant, season).exists():
                raise AlreadyRegistered()

            cls.validate_enabled(resources)

            full = CapacityService.full_resources(resources)
            if full and policy == CapacityPolicy.REJECT:
                raise ResourceFull(full[0])

            registration = Registration.objects.create(
                participant=participant,
                season=season,
                status=Registration.Status.WAITLISTED if full else Registration.Status.PENDING,
            )
            CapacityService.assign(registration, resources, full=full)

            logger.info("Participant %s registered for %s: %s (%s)", participant.pk, season, registration.pk,
                        registration.status)
            RegistrationNotifyService.enqueue(
                participant,
                'waitlisted' if full else 'admitted',
                {'registration': registration, 'full': full},
            )

        return registration


class RegistrationNotifyService:
    @staticmethod
    def enqueue(participant, kind, payload):
        """
        Sends a notification of the given kind to the participant, once the current transaction commits.

        Delivery failures are logged, never raised, and do not affect the (already committed) transaction.
        """
        transaction.on_commit(lambda: RegistrationNotifyService.send(participant, kind, payload))

    @staticmethod
    def send(participant, kind, payload):
        try:
            context = {'participant': participant, **payload}
            body = render_to_string('registrations/email/{}.txt'.format(kind), context)
            subject = render_to_string('registrations/email/{}_subject.txt'.format(kind), context).strip()
            subject = settings.EMAIL_SUBJECT_PREFIX + subject
            # Remove all empty lines, except for the ones that contain just a . (then just remove the .). This allows
            # removing the empty lines produced by template tags that got removed, while keeping the empty lines that
            # were explicitly added in the template.
            body = re.sub("^\n+", "", body)
            body = re.sub("\n\n+", "\n", body)
            body = re.sub("\n\\.\n", "\n\n", body)

            email = EmailMessage(
                body=body, subject=subject, to=[participant.email],
                bcc=settings.BCC_EMAIL_TO,
            )
            email.send()
        except Exception:
            logger.exception("Failed to send %s notification to participant %s", kind, participant.pk)
            return False
        return True
