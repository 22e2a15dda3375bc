import logging

import reversion
from django.http import HttpResponse
from django.utils.decorators import method_decorator
from django.utils.translation import gettext as _
from django.views.decorators.csrf import csrf_exempt
from django.views.generic import View

from apps.core.exceptions import InternalInconsistency, ProviderError

from .models import Payment
from .services import PaymentStatusService

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name='dispatch')
class PaymentChanged(View):
    """
    Webhook called by the payment provider whenever the status of a payment changes.

    The request only contains the provider reference id, the actual status is fetched from the provider. Every known
    outcome is acknowledged with a 200, so the provider stops retrying, except when the provider itself could not be
    reached (then retrying later is exactly what should happen).
    """

    def post(self, request):
        provider_ref_id = request.POST.get('id', '')
        try:
            payment = Payment.objects.get(provider_ref_id=provider_ref_id)
        except Payment.DoesNotExist:
            logger.warning("Webhook called for unknown payment %r", provider_ref_id)
            return HttpResponse("OK")

        try:
            with reversion.create_revision():
                try:
                    PaymentStatusService.update_payment_status(payment)
                except InternalInconsistency as e:
                    # Already flagged and logged, payment is recorded regardless
                    payment.refresh_from_db()
                    reversion.add_to_revision(e.registration)
                reversion.set_comment(_("Payment status changed to {} / {} from webhook ({} / {}).").format(
                    payment.status, payment.provider_status, payment.id, payment.provider_ref_id))
        except ProviderError as e:
            logger.warning("Could not process webhook for payment %s: %s", payment.pk, e)
            return HttpResponse("Provider unavailable", status=503)

        return HttpResponse("OK")
