import reversion
from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from campreg.common.db import QExpr, UpdatedAtQuerySetMixin


class RegistrationQuerySet(UpdatedAtQuerySetMixin, models.QuerySet):
    def active(self):
        return self.filter(status__in=Registration.ACTIVE)

    def active_for(self, participant, season):
        """
        Returns the active registrations for the given participant and season.

        Outside of the admission lock, this can be stale the moment it is evaluated, see
        RegistrationAdmissionService for the race-free check.
        """
        return self.active().filter(participant=participant, season=season)

    def current_for(self, participant, season):
        """
        Returns the current registration for the given participant and season.

        This is the active registration, or the most recently created cancelled one if there is no active
        registration. This returns a queryset that contains at most 1 result, call .first() on it for an instance.
        """
        return (
            self.filter(participant=participant, season=season)
            .order_by('-is_current', '-created_at')
        )[:1]

    # Assignment relation and resource field, by resource model name
    waiting_relations = {
        'job': ('job_assignments', 'job'),
        'campingoption': ('camping_option_assignments', 'camping_option'),
    }

    def waitlisted_for(self, resource):
        """ Returns registrations waiting for a slot on the given job or camping option, oldest first. """
        relation, field = self.waiting_relations[resource._meta.model_name]
        return self.filter(**{
            'status': Registration.Status.WAITLISTED,
            '{}__{}'.format(relation, field): resource,
            '{}__reserved'.format(relation): False,
        }).order_by('created_at', 'pk')

    def search(self, participant=None, season=None, status=None):
        qs = self
        if participant is not None:
            qs = qs.filter(participant=participant)
        if season is not None:
            qs = qs.filter(season=season)
        if status is not None:
            qs = qs.filter(status=status)
        return qs.order_by('-created_at', '-pk')

    def prefetch_resources(self):
        return self.prefetch_related('job_assignments__job__shift', 'camping_option_assignments__camping_option')


class RegistrationManager(models.Manager.from_queryset(RegistrationQuerySet)):
    def get_queryset(self):
        """
        Returns a querysets annotated with:

         - is_current, indicating that this is an active (i.e. non-cancelled) registration.
        """
        return super().get_queryset().annotate(
            is_current=QExpr(~Q(status=Registration.Status.CANCELLED)),
        )


@reversion.register(follow=('job_assignments', 'camping_option_assignments'))
class Registration(models.Model):
    """
    A registration of a participant for one season of the camp.

    A participant can have at most one active registration per season, but any number of cancelled ones. Since
    cancelled rows are kept, this cannot be a database constraint, it is enforced by RegistrationAdmissionService.
    """

    class Status(models.TextChoices):
        PENDING = 'PENDING', _('Pending')
        CONFIRMED = 'CONFIRMED', _('Confirmed')
        WAITLISTED = 'WAITLISTED', _('Waiting list')
        CANCELLED = 'CANCELLED', _('Cancelled')

    ACTIVE = (Status.PENDING, Status.CONFIRMED, Status.WAITLISTED)

    # Allowed status changes, creation (PENDING or WAITLISTED) excluded. CANCELLED is final.
    TRANSITIONS = {
        Status.PENDING: (Status.CONFIRMED, Status.CANCELLED),
        Status.WAITLISTED: (Status.PENDING, Status.CONFIRMED, Status.CANCELLED),
        Status.CONFIRMED: (Status.CANCELLED,),
        Status.CANCELLED: (),
    }

    participant = models.ForeignKey(settings.AUTH_USER_MODEL, null=False, on_delete=models.PROTECT,
                                    related_name='registrations')
    season = models.PositiveIntegerField(verbose_name=_('Season'))
    status = models.CharField(verbose_name=_('Status'), max_length=16, choices=Status.choices, null=False)
    needs_reconciliation = models.BooleanField(
        verbose_name=_('Needs manual reconciliation'), default=False,
        help_text=_('Set when a payment completed, but the registration could not be confirmed (e.g. because a '
                    'waitlisted job filled up in the meantime).'))

    jobs = models.ManyToManyField('camps.Job', through='registrations.RegistrationJob', related_name='registrations')
    camping_options = models.ManyToManyField('camps.CampingOption', through='registrations.RegistrationCampingOption',
                                             related_name='registrations')

    created_at = models.DateTimeField(verbose_name=_('Creation timestamp'), auto_now_add=True, null=False)
    updated_at = models.DateTimeField(verbose_name=_('Last update timestamp'), auto_now=True, null=False)
    confirmed_at = models.DateTimeField(verbose_name=_('Confirmation timestamp'), blank=True, null=True)
    cancelled_at = models.DateTimeField(verbose_name=_('Cancellation timestamp'), blank=True, null=True)

    objects = RegistrationManager()

    @classmethod
    def can_transition(cls, old_status, new_status):
        return new_status in cls.TRANSITIONS.get(old_status, ())

    @property
    def is_active(self):
        return self.status in self.ACTIVE

    @property
    def is_cancelled(self):
        return self.status == self.Status.CANCELLED

    def __str__(self):
        return _('%(participant)s - %(season)s - %(status)s') % {
            'participant': self.participant, 'season': self.season, 'status': self.get_status_display(),
        }

    class Meta:
        verbose_name = _('registration')
        verbose_name_plural = _('registrations')

        indexes = [
            # Index to speed up active_for / current_for lookups
            models.Index(fields=['participant', 'season', 'status', 'created_at'],
                         name='idx_part_season_status_created'),
            # Index to speed up waiting list scans
            models.Index(fields=['status', 'created_at'],
                         name='idx_status_created'),
        ]

    # Put this outside of the meta class, so we can access the status constants
    # https://stackoverflow.com/a/8366758/740048
    Meta.constraints = [
        models.CheckConstraint(check=~Q(status=Status.CONFIRMED) | Q(confirmed_at__isnull=False),
                               name='confirmed_registration_has_timestamp'),
        models.CheckConstraint(check=~Q(status=Status.CANCELLED) | Q(cancelled_at__isnull=False),
                               name='cancelled_registration_has_timestamp'),
    ]
