from django.db import models
from django.utils.translation import gettext_lazy as _


class Shift(models.Model):
    """ A block of time during the camp. Jobs are worked during a shift. """

    class Day(models.TextChoices):
        PRE_OPENING = 'PRE_OPENING', _('Before opening')
        MONDAY = 'MONDAY', _('Monday')
        TUESDAY = 'TUESDAY', _('Tuesday')
        WEDNESDAY = 'WEDNESDAY', _('Wednesday')
        THURSDAY = 'THURSDAY', _('Thursday')
        FRIDAY = 'FRIDAY', _('Friday')
        SATURDAY = 'SATURDAY', _('Saturday')
        SUNDAY = 'SUNDAY', _('Sunday')
        POST_EVENT = 'POST_EVENT', _('After the event')

    name = models.CharField(max_length=100, verbose_name=_('Name'))
    description = models.TextField(verbose_name=_('Description'), blank=True)
    day = models.CharField(max_length=16, choices=Day.choices, verbose_name=_('Day'))
    start_time = models.TimeField(verbose_name=_('Start time'))
    end_time = models.TimeField(verbose_name=_('End time'))

    created_at = models.DateTimeField(verbose_name=_('Creation timestamp'), auto_now_add=True)
    updated_at = models.DateTimeField(verbose_name=_('Last update timestamp'), auto_now=True)

    def __str__(self):
        return "{} ({} {:%H:%M}-{:%H:%M})".format(self.name, self.get_day_display(), self.start_time, self.end_time)

    class Meta:
        verbose_name = _('shift')
        verbose_name_plural = _('shifts')
        ordering = ('day', 'start_time')
