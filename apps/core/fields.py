from django.conf import settings
from django.db import models


class MonetaryField(models.DecimalField):
    """
    A monetary amount.

    Precision comes from the MONETARY_* settings. The currency is not part of the value, models that accept multiple
    currencies store it in a separate field.
    """

    description = "A monetary amount"

    def __init__(self, *args, **kwargs):
        kwargs['decimal_places'] = settings.MONETARY_DECIMAL_PLACES
        kwargs['max_digits'] = settings.MONETARY_MAX_DIGITS
        super().__init__(*args, **kwargs)

    def deconstruct(self):
        # Precision is always taken from settings, so keep it out of migrations
        name, path, args, kwargs = super().deconstruct()
        kwargs.pop('decimal_places', None)
        kwargs.pop('max_digits', None)
        return name, path, args, kwargs
