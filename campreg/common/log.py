import logging


class IgnoreExpectedClientErrors(logging.Filter):
    """
    Drops django.request records for responses that are part of normal operation.

    404s are already reported by BrokenLinkEmailsMiddleware. 409s are registration conflicts (already registered,
    resource full, someone else changed the registration first), which the client is told about and need no admin.
    """

    ignored_status_codes = (404, 409)

    def filter(self, record):
        return getattr(record, 'status_code', None) not in self.ignored_status_codes
