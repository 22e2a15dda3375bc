import datetime
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.urls import reverse
from django.utils.translation import gettext as _
from mollie.api.client import Client
from mollie.api.error import Error as MollieError

from apps.core.exceptions import InternalInconsistency, NotFound, ProviderError, ResourceFull, StaleStatus
from apps.registrations.models import Registration
from apps.registrations.services import RegistrationNotifyService, RegistrationStatusService

from .models import Payment

logger = logging.getLogger(__name__)

# Created on first use, since this module is imported (through the admin) before the test runner gets to set
# IN_UNITTEST. In testcases, this code can still be ran by mocking mollie_client (or patching it with an actual
# instance for integration testing if needed).
mollie_client = None


def get_mollie_client():
    """
    Returns the Mollie API client.

    This takes some extra care to not accidentally use a live API key, even when running unittests on a live
    checkout. Without an API key (e.g. during development), online payments are unavailable.
    """
    global mollie_client
    if mollie_client is None:
        if getattr(settings, 'IN_UNITTEST', False) or not settings.MOLLIE_API_KEY:
            raise ProviderError(_("Online payments are not configured"))
        mollie_client = Client()
        mollie_client.set_api_key(settings.MOLLIE_API_KEY)
    return mollie_client


class PaymentStatusService:
    @staticmethod
    def fetch_remote_status(payment):
        """ Retrieves the remote status of the given payment, as a (status, timestamp, provider status) tuple. """
        try:
            mp = get_mollie_client().payments.get(payment.provider_ref_id)
        except MollieError as e:
            raise ProviderError(_("Could not retrieve payment status: {}").format(e)) from e

        if mp.is_paid():
            newstatus = Payment.Status.COMPLETED
            timestamp = mp.paid_at
        elif mp.is_expired():
            newstatus = Payment.Status.FAILED
            timestamp = mp.expired_at
        elif mp.is_failed():
            newstatus = Payment.Status.FAILED
            timestamp = mp.failed_at
        elif mp.is_canceled():
            newstatus = Payment.Status.FAILED
            timestamp = mp.canceled_at
        elif mp.is_authorized():
            raise ValueError("Authorized state not implemented")
        elif mp.is_open() or mp.is_pending():
            newstatus = Payment.Status.PENDING
            timestamp = None
        else:
            raise ValueError("Unknown state")

        if timestamp is not None:
            timestamp = datetime.datetime.fromisoformat(timestamp)

        return newstatus, timestamp, mp.status

    @classmethod
    def update_payment_status(cls, payment):
        """ Retrieves the remote status of the given payment and update the local status. """

        if payment.provider != Payment.Provider.MOLLIE or not payment.provider_ref_id:
            raise ValueError("Not a mollie payment?")

        newstatus, timestamp, provider_status = cls.fetch_remote_status(payment)
        updated = cls.apply_event(payment.provider_ref_id, newstatus, timestamp, provider_status)
        payment.refresh_from_db()
        return updated

    @classmethod
    def apply_event(cls, provider_ref_id, status, timestamp=None, provider_status=''):
        """
        Applies a status reported by the provider to the payment with the given reference id.

        This is idempotent: the provider can (and will) report the same status more than once, which changes nothing.
        Final statuses never change again, reports that contradict them are logged and ignored.

        When a payment completes, its registration is confirmed (reserving slots if it was waitlisted). If that is not
        possible, the payment is still recorded as completed, but the registration is flagged for manual
        reconciliation and InternalInconsistency is raised (after the payment has been committed, unless the caller
        has a transaction open).
        """
        inconsistent = None

        with transaction.atomic():
            try:
                payment = Payment.objects.select_for_update().get(provider_ref_id=provider_ref_id)
            except Payment.DoesNotExist:
                raise NotFound(_("Unknown payment: {}").format(provider_ref_id))

            if payment.status == status and provider_status in ('', payment.provider_status):
                logger.debug("Payment %s already %s, nothing to do", payment.pk, status)
                return payment

            if payment.is_final:
                if not (payment.status == Payment.Status.REFUNDED and status == Payment.Status.COMPLETED):
                    logger.warning("Ignoring status %s for payment %s, which is already %s",
                                   status, payment.pk, payment.status)
                return payment

            if provider_status:
                payment.provider_status = provider_status
            if status != Payment.Status.PENDING:
                payment.status = status
                payment.timestamp = timestamp
            payment.save()
            logger.info("Payment %s is now %s (%s)", payment.pk, payment.status, payment.provider_status)

            if status == Payment.Status.COMPLETED:
                inconsistent = cls.confirm_registration(payment)

        if inconsistent is not None:
            raise InternalInconsistency(inconsistent)
        return payment

    @staticmethod
    def confirm_registration(payment):
        """
        Confirms the registration for a completed payment.

        Returns None when the registration is (now) confirmed, or the registration when it could not be confirmed and
        was flagged for reconciliation instead.
        """
        registration = Registration.objects.get(pk=payment.registration_id)
        if registration.status == Registration.Status.CONFIRMED:
            return None

        problem = None
        # Retry once when the status changed under us, after that, leave it to a human
        for attempt in range(2):
            if registration.status not in (Registration.Status.PENDING, Registration.Status.WAITLISTED):
                problem = "registration is {}".format(registration.status)
                break
            try:
                RegistrationStatusService.change_status(registration, Registration.Status.CONFIRMED)
            except StaleStatus:
                problem = "registration status kept changing"
                registration.refresh_from_db()
                if registration.status == Registration.Status.CONFIRMED:
                    return None
                continue
            except ResourceFull as e:
                problem = "{} is full".format(e.resource)
                break

            RegistrationNotifyService.enqueue(registration.participant, 'confirmed', {'registration': registration})
            return None

        Registration.objects.filter(pk=registration.pk).update(needs_reconciliation=True)
        registration.refresh_from_db()
        logger.error("Payment %s completed, but registration %s could not be confirmed (%s). Flagged for manual "
                     "reconciliation.", payment.pk, registration.pk, problem)
        return registration


class PaymentService:
    @staticmethod
    def create_payment(registration, amount, currency=None):
        """ Creates a new (pending) online payment for the registration, to be started with start_payment(). """
        if amount <= 0:
            raise ValidationError(_("Invalid amount: {}").format(amount))
        if not registration.is_active:
            raise ValidationError(_("Cannot pay for a cancelled registration"))

        return Payment.objects.create(
            participant=registration.participant,
            registration=registration,
            amount=amount,
            currency=currency or settings.PAYMENT_CURRENCY,
            provider=Payment.Provider.MOLLIE,
        )

    @staticmethod
    def start_payment(request, payment, next_url, method=''):
        """ Starts the given payment at the provider, returning the url to send the user to to pay. """

        if payment.amount <= 0:
            raise ValueError("Invalid amount: {}".format(payment.amount))

        if payment.provider_ref_id:
            raise ValueError("Payment already started")

        registration = payment.registration
        if not registration.is_active:
            raise ValidationError(_("Cannot pay for a cancelled registration"))

        message = _("{season} / {name} / {num}").format(
            num=registration.id, season=registration.season,
            name=registration.participant.get_full_name() or registration.participant.get_username())

        try:
            mp = get_mollie_client().payments.create({
                "amount": {"currency": payment.currency, "value": format(payment.amount, '.2f')},
                "description": message,
                "webhookUrl": request.build_absolute_uri(reverse('payments:webhook')),
                "redirectUrl": request.build_absolute_uri(next_url),
                "method": method,
                "metadata": {
                    "payment_id": str(payment.pk),
                    "registration_id": str(registration.pk),
                },
            })
        except MollieError as e:
            raise ProviderError(_("Could not start payment: {}").format(e)) from e

        payment.provider_ref_id = mp.id
        payment.provider_status = mp.status
        payment.save()

        return mp.checkout_url


class PaymentRefundService:
    @staticmethod
    def refund(payment):
        """
        Refunds a completed payment in full.

        Online payments are refunded through the provider (raising ProviderError when that fails), manual payments
        are just marked as refunded, the money is expected to be returned by hand.
        """
        if payment.status != Payment.Status.COMPLETED:
            raise ValidationError(_("Only completed payments can be refunded"))

        if payment.provider == Payment.Provider.MOLLIE:
            try:
                get_mollie_client().payment_refunds.with_parent_id(payment.provider_ref_id).create({
                    "amount": {"currency": payment.currency, "value": format(payment.amount, '.2f')},
                    "description": _("Refund for registration {}").format(payment.registration_id),
                })
            except MollieError as e:
                raise ProviderError(_("Could not refund payment {}: {}").format(payment.pk, e)) from e

        updated = Payment.objects.filter(pk=payment.pk, status=Payment.Status.COMPLETED).update(
            status=Payment.Status.REFUNDED,
        )
        payment.refresh_from_db()
        if not updated:
            logger.warning("Payment %s changed to %s while refunding", payment.pk, payment.status)
        else:
            logger.info("Payment %s refunded", payment.pk)
        return payment
