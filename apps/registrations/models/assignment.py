import reversion
from django.db import models
from django.utils.translation import gettext_lazy as _


class AssignmentQuerySet(models.QuerySet):
    def reserved(self):
        return self.filter(reserved=True)

    def waiting(self):
        return self.filter(reserved=False)


class ResourceAssignment(models.Model):
    """
    Links a registration to a capacity-limited resource it signed up for.

    When reserved is set, this takes up one of the resource's slots. Otherwise the resource was full when requested
    and the registration is waiting for a slot. Assignments belong to their registration: they are only created and
    removed together with changes to the registration (in the same transaction).
    """

    reserved = models.BooleanField(verbose_name=_('Slot reserved'), default=True)
    created_at = models.DateTimeField(verbose_name=_('Creation timestamp'), auto_now_add=True)

    objects = AssignmentQuerySet.as_manager()

    # Name of the foreign key to the resource, set by subclasses
    resource_field = None

    @property
    def resource(self):
        return getattr(self, self.resource_field)

    class Meta:
        abstract = True


@reversion.register(follow=('registration',))
class RegistrationJob(ResourceAssignment):
    registration = models.ForeignKey('registrations.Registration', related_name='job_assignments',
                                     on_delete=models.CASCADE)
    job = models.ForeignKey('camps.Job', related_name='assignments', on_delete=models.PROTECT)

    resource_field = 'job'

    def __str__(self):
        return "{} - {}".format(self.registration_id, self.job)

    class Meta:
        verbose_name = _('job assignment')
        verbose_name_plural = _('job assignments')
        constraints = [
            models.UniqueConstraint(fields=['registration', 'job'], name='one_assignment_per_registration_job'),
        ]


@reversion.register(follow=('registration',))
class RegistrationCampingOption(ResourceAssignment):
    registration = models.ForeignKey('registrations.Registration', related_name='camping_option_assignments',
                                     on_delete=models.CASCADE)
    camping_option = models.ForeignKey('camps.CampingOption', related_name='assignments', on_delete=models.PROTECT)

    resource_field = 'camping_option'

    def __str__(self):
        return "{} - {}".format(self.registration_id, self.camping_option)

    class Meta:
        verbose_name = _('camping option assignment')
        verbose_name_plural = _('camping option assignments')
        constraints = [
            models.UniqueConstraint(fields=['registration', 'camping_option'],
                                    name='one_assignment_per_registration_camping_option'),
        ]
