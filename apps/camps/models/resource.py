from django.db import models
from django.db.models import Count, Q
from django.utils.translation import gettext_lazy as _

from apps.registrations.models import Registration
from campreg.common.db import UpdatedAtQuerySetMixin


class ResourceQuerySet(UpdatedAtQuerySetMixin, models.QuerySet):
    def enabled(self):
        return self.filter(enabled=True)

    def with_used_slots(self):
        """
        Adds used_slots annotation.

        This is the number of slots reserved by active registrations. Waitlisted requests for this resource are not
        counted, since they do not hold a slot.
        """
        return self.annotate(
            used_slots=Count(
                'assignments',
                filter=Q(assignments__reserved=True, assignments__registration__status__in=Registration.ACTIVE),
            ),
        )

    def used_slots_for(self, resource):
        """
        Returns the number of slots used for the given resource.

        Separate from with_used_slots() so it can be used on a resource that was locked on its own, without joining
        (and thus locking) any other rows.
        """
        return resource.assignments.filter(reserved=True, registration__status__in=Registration.ACTIVE).count()


class CapacityLimitedResource(models.Model):
    """
    Something a registration can sign up for, with an optional maximum number of signups.

    Reservations for a resource are the junction rows between it and registrations, see apps.registrations.models.
    """

    name = models.CharField(max_length=100, verbose_name=_('Name'))
    description = models.TextField(verbose_name=_('Description'), blank=True)
    enabled = models.BooleanField(
        verbose_name=_('Enabled'), default=True,
        help_text=_('Only enabled resources can be selected for new registrations.'))
    max_signups = models.PositiveIntegerField(
        verbose_name=_('Maximum signups'), null=True, blank=True,
        help_text=_('Maximum number of registrations for this. When empty or 0, there is no limit.'))

    created_at = models.DateTimeField(verbose_name=_('Creation timestamp'), auto_now_add=True)
    updated_at = models.DateTimeField(verbose_name=_('Last update timestamp'), auto_now=True)

    objects = ResourceQuerySet.as_manager()

    @property
    def is_limited(self):
        return bool(self.max_signups)

    def has_capacity_for(self, used_slots, extra=1):
        """ Returns whether extra slots fit, given the number of used slots. """
        return not self.is_limited or used_slots + extra <= self.max_signups

    def __str__(self):
        return self.name

    class Meta:
        abstract = True
        ordering = ('name',)
