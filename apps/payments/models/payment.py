import reversion
from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils.functional import cached_property
from django.utils.translation import gettext_lazy as _

from apps.core.fields import MonetaryField
from campreg.common.db import UpdatedAtQuerySetMixin


class PaymentQuerySet(UpdatedAtQuerySetMixin, models.QuerySet):
    def completed(self):
        return self.filter(status=Payment.Status.COMPLETED)


class PaymentManager(models.Manager.from_queryset(PaymentQuerySet)):
    pass


@reversion.register(follow=('registration',))
class Payment(models.Model):
    """
    A payment for a registration.

    A payment always stays with the registration it was created for. Its status only moves forward: once COMPLETED or
    FAILED, it is final, except that a COMPLETED payment can still be REFUNDED.
    """

    class Status(models.TextChoices):
        PENDING = 'PENDING', _('Payment in progress')
        COMPLETED = 'COMPLETED', _('Payment completed')
        FAILED = 'FAILED', _('Payment failed/expired/aborted/etc.')
        REFUNDED = 'REFUNDED', _('Payment refunded')

    class Provider(models.TextChoices):
        MOLLIE = 'MOLLIE', _('Online payment')
        MANUAL = 'MANUAL', _('Manual payment')

    FINAL = (Status.COMPLETED, Status.FAILED, Status.REFUNDED)

    participant = models.ForeignKey(settings.AUTH_USER_MODEL, related_name='payments', on_delete=models.PROTECT)
    registration = models.ForeignKey('registrations.Registration', related_name='payments', on_delete=models.PROTECT)

    amount = MonetaryField()
    currency = models.CharField(verbose_name=_('Currency'), max_length=3, default='EUR')
    status = models.CharField(verbose_name=_('Status'), max_length=16, choices=Status.choices, null=False,
                              default=Status.PENDING)
    provider = models.CharField(verbose_name=_('Provider'), max_length=16, choices=Provider.choices,
                                default=Provider.MOLLIE)

    # null=True to allow non-unique blank values
    provider_ref_id = models.CharField(max_length=32, unique=True, blank=True, null=True, default=None)
    provider_status = models.CharField(max_length=16, blank=True)

    created_at = models.DateTimeField(verbose_name=_('Creation timestamp'), auto_now_add=True, null=False)
    updated_at = models.DateTimeField(verbose_name=_('Last update timestamp'), auto_now=True, null=False)
    timestamp = models.DateTimeField(verbose_name=_('Transaction date/time'), null=True, blank=True)

    objects = PaymentManager()

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._loaded_registration_id = self.registration_id

    def save(self, *args, **kwargs):
        if not self._state.adding and self.registration_id != self._loaded_registration_id:
            raise ValueError("Payment {} cannot be moved to another registration".format(self.pk))
        super().save(*args, **kwargs)
        self._loaded_registration_id = self.registration_id

    @cached_property
    def type(self):
        return self.get_provider_display()

    @property
    def is_final(self):
        return self.status in self.FINAL

    def __str__(self):
        return "{} {} for registration {} ({} / {})".format(
            self.currency,
            self.amount,
            self.registration_id,
            self.status,
            self.provider_status,
        )

    class Meta:
        verbose_name = _('payment')
        verbose_name_plural = _('payments')

        # Ensure that custom manager / queryset methods are also available on related managers
        base_manager_name = 'objects'

        constraints = [
            models.CheckConstraint(
                # provider_ref_id can be null (which avoids uniqueness constraints), but cannot be the empty string
                check=~Q(provider_ref_id=""),
                name='provider_ref_id_cannot_be_empty',
            ),
            models.CheckConstraint(
                check=(Q(provider_ref_id=None) & Q(provider_status=""))
                | (~Q(provider_ref_id=None) & ~Q(provider_status="")),
                name='provider_ref_id_and_status_set_or_unset_together',
            ),
        ]
