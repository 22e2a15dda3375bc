from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class CampsConfig(AppConfig):
    name = 'apps.camps'
    verbose_name = _('Camp resources')
