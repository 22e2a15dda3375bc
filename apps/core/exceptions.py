"""
Errors raised by the registration services.

Malformed input raises Django's own ValidationError, these cover the remaining failure modes. Views translate them to
HTTP responses (see campreg.common.views.ServiceErrorMixin), so every Conflict carries a code that lets callers
distinguish e.g. "already registered" from "resource full".
"""
from django.utils.translation import gettext_lazy as _


class RegistrationError(Exception):
    default_message = _("Registration error")

    def __init__(self, message=None):
        self.message = message if message is not None else self.default_message
        super().__init__(str(self.message))


class NotFound(RegistrationError):
    """ Unknown registration, resource or payment. """

    default_message = _("Not found")


class Conflict(RegistrationError):
    """ The request is valid, but conflicts with the current state. """

    code = 'conflict'
    default_message = _("Conflict")


class AlreadyRegistered(Conflict):
    code = 'already_registered'
    default_message = _("Already registered for this season")


class ResourceFull(Conflict):
    code = 'resource_full'

    def __init__(self, resource, message=None):
        self.resource = resource
        if message is None:
            message = _("{} is full").format(resource)
        super().__init__(message)


class InvalidTransition(Conflict):
    code = 'invalid_transition'

    def __init__(self, old_status, new_status, message=None):
        self.old_status = old_status
        self.new_status = new_status
        if message is None:
            message = _("Cannot change status from {} to {}").format(old_status, new_status)
        super().__init__(message)


class StaleStatus(Conflict):
    """ The registration status changed since it was read (i.e. another request won the race). """

    code = 'stale_status'
    default_message = _("Registration was changed by someone else, please reload and try again")


class ProviderError(RegistrationError):
    """ The payment provider could not be reached or rejected the request. """

    default_message = _("Payment provider error")


class InternalInconsistency(RegistrationError):
    """
    A payment completed, but the registration could not be updated to match.

    The registration has been flagged for manual reconciliation by the time this is raised.
    """

    default_message = _("Registration needs manual reconciliation")

    def __init__(self, registration, message=None):
        self.registration = registration
        super().__init__(message)
