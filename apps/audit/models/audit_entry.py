from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils.translation import gettext_lazy as _


class AppendOnlyError(Exception):
    pass


class AuditEntryQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise AppendOnlyError("Audit entries cannot be changed")

    def delete(self):
        raise AppendOnlyError("Audit entries cannot be deleted")

    def newest_first(self):
        return self.order_by('-created_at', '-pk')


class AuditEntry(models.Model):
    """
    Record of an administrative change to a registration.

    Entries are append-only: once saved, they cannot be changed or deleted (through the ORM, at least). The
    registration is protected from deletion while it has entries.
    """

    class Action(models.TextChoices):
        EDIT = 'EDIT', _('Edit')
        CANCEL = 'CANCEL', _('Cancel')

    actor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='+',
                              verbose_name=_('Actor'))
    registration = models.ForeignKey('registrations.Registration', on_delete=models.PROTECT,
                                     related_name='audit_entries', verbose_name=_('Registration'))
    action = models.CharField(verbose_name=_('Action'), max_length=16, choices=Action.choices)
    payload = models.JSONField(verbose_name=_('Details'), encoder=DjangoJSONEncoder, default=dict)
    reason = models.TextField(verbose_name=_('Reason'), blank=True)
    created_at = models.DateTimeField(verbose_name=_('Creation timestamp'), auto_now_add=True, db_index=True)

    objects = AuditEntryQuerySet.as_manager()

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AppendOnlyError("Audit entries cannot be changed")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AppendOnlyError("Audit entries cannot be deleted")

    def __str__(self):
        return "{} of registration {} by {}".format(self.get_action_display(), self.registration_id, self.actor)

    class Meta:
        verbose_name = _('audit entry')
        verbose_name_plural = _('audit entries')
        ordering = ('-created_at', '-pk')
