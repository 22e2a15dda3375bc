import logging

from django.db import transaction

from .models import AuditEntry

logger = logging.getLogger(__name__)


class AuditTrailService:
    @staticmethod
    def append(actor, registration, action, payload, reason=''):
        """
        Records an administrative action on a registration.

        Must be called in the same transaction as the change itself, so the entry is committed (or rolled back)
        together with it.
        """
        if not transaction.get_connection().in_atomic_block:
            logger.warning("Audit entry for registration %s written outside of a transaction", registration.pk)
        return AuditEntry.objects.create(
            actor=actor, registration=registration, action=action, payload=payload, reason=reason or '',
        )

    @staticmethod
    def query(registration=None, actor=None, since=None, until=None):
        """ Returns matching audit entries, newest first. since is inclusive, until is exclusive. """
        qs = AuditEntry.objects.select_related('actor')
        if registration is not None:
            qs = qs.filter(registration=registration)
        if actor is not None:
            qs = qs.filter(actor=actor)
        if since is not None:
            qs = qs.filter(created_at__gte=since)
        if until is not None:
            qs = qs.filter(created_at__lt=until)
        return qs.newest_first()
