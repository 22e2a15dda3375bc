from django.utils.translation import gettext_lazy as _

from .resource import CapacityLimitedResource


class CampingOption(CapacityLimitedResource):
    """ A camping add-on (e.g. a tent spot or RV space). """

    class Meta(CapacityLimitedResource.Meta):
        verbose_name = _('camping option')
        verbose_name_plural = _('camping options')
