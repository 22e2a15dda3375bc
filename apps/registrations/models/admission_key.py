from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class AdmissionKeyManager(models.Manager):
    def ensure(self, participant, season):
        """
        Makes sure the key for the given participant and season exists.

        This should run outside of (i.e. before) the transaction that locks the key: creating it inside would make
        concurrent first admissions for the same key wait on the unique index instead of the row lock, and the loser
        would then hit an IntegrityError inside its transaction.
        """
        self.get_or_create(participant=participant, season=season)

    def lock(self, participant, season):
        """ Locks the key for the given participant and season until the end of the current transaction. """
        return self.select_for_update().get(participant=participant, season=season)


class AdmissionKey(models.Model):
    """
    Serializes admissions for a single participant and season.

    Admission checks for an existing active registration and creates a new one while holding a row lock on this key.
    This replaces a unique constraint on (participant, season) for registrations, which is not possible since
    cancelled registrations are kept. These rows carry no other data and are never deleted.
    """

    participant = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='+')
    season = models.PositiveIntegerField()

    objects = AdmissionKeyManager()

    def __str__(self):
        return "{} / {}".format(self.participant_id, self.season)

    class Meta:
        verbose_name = _('admission key')
        verbose_name_plural = _('admission keys')
        constraints = [
            models.UniqueConstraint(fields=['participant', 'season'], name='one_admission_key_per_participant_season'),
        ]
