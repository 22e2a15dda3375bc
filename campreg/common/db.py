from django.db import models
from django.utils import timezone


def QExpr(*args, **kwargs):
    """ Builds a Q object wrapped as an expression, to be used in e.g. annotate. """
    # This should really be handled by Django automatically, see https://code.djangoproject.com/ticket/27021
    return models.ExpressionWrapper(models.Q(*args, **kwargs), output_field=models.BooleanField())


class UpdatedAtQuerySetMixin:
    """
    Makes QuerySet.update() behave like save() with respect to the updated_at field.

    Django does not apply auto_now to bulk updates (https://code.djangoproject.com/ticket/26239), but conditional
    updates are how status transitions are applied, and ETags are derived from updated_at, so it must change.
    """

    def update(self, **kwargs):
        kwargs.setdefault('updated_at', timezone.now())
        return super().update(**kwargs)


def lock_in_order(queryset):
    """
    Locks all rows in the queryset (SELECT ... FOR UPDATE) and returns them as a list.

    Rows are always locked in primary key order, so two transactions locking overlapping sets cannot deadlock. Must be
    called inside a transaction. The queryset should not use select_related, to prevent locking other tables.
    """
    return list(queryset.order_by('pk').select_for_update())
