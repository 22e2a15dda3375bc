from django.db import models
from django.utils.translation import gettext_lazy as _

from .resource import CapacityLimitedResource


class Job(CapacityLimitedResource):
    """ A job that participants sign up to work during a shift. """

    shift = models.ForeignKey('camps.Shift', related_name='jobs', on_delete=models.PROTECT, verbose_name=_('Shift'))
    location = models.CharField(max_length=100, verbose_name=_('Location'), blank=True)

    def __str__(self):
        return "{} / {}".format(self.name, self.shift.name)

    class Meta(CapacityLimitedResource.Meta):
        verbose_name = _('job')
        verbose_name_plural = _('jobs')
