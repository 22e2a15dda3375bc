from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.utils.functional import cached_property
from django.views.decorators.http import condition

from apps.core.exceptions import Conflict, NotFound


class ConditionalMixin:
    """
    Handle ETag and Last-Modified headers.

    Basically a class-based version of the django.views.decorators.http.condition decorator. Subclasses should define
    the etag and/or last_modified (cached) properties.
    """

    @property
    def etag(self):
        return None

    @property
    def last_modified(self):
        return None

    def dispatch(self, *args, **kwargs):
        # Emulate a view function to allow using the @condition decorator to do the heavy lifting
        @condition(etag_func=lambda r: self.etag, last_modified_func=lambda r: self.last_modified)
        def func(request):
            return super(ConditionalMixin, self).dispatch(*args, **kwargs)
        return func(self.request)


class CacheUsingTimestampsMixin(ConditionalMixin):
    """ Generate and process ETag HTTP headers to help clients validate their cached responses. """

    def instances_used(self):
        """
        Should return (or generate) querysets for all model instances used by this view.

        Each instance should have an updated_at field. Only the updated_at fields are fetched, no full instances are
        constructed.

        If None or an empty list is returned, no caching is applied.
        """
        return None

    @cached_property
    def etag(self):
        query_sets = self.instances_used()
        if not query_sets:
            return None

        updated_ats = [
            updated_at
            for qs in query_sets
            # Not all databases support order_by inside union, so just query them one by one
            for updated_at in qs.order_by().values_list('updated_at', flat=True)
        ]
        if not updated_ats:
            return None

        # Use the most recent timestamp as an etag, but add the user id to handle changing login and the object count
        # to handle deletions.
        return "{}-{}-{}".format(self.request.user.id, len(updated_ats), max(updated_ats).isoformat())


class ServiceErrorMixin:
    """
    Translates errors raised by the registration services into JSON error responses.

    ValidationError becomes 400, NotFound 404 and any Conflict 409, with the conflict code included so clients can
    tell the different conflicts apart.
    """

    def dispatch(self, *args, **kwargs):
        try:
            return super().dispatch(*args, **kwargs)
        except ValidationError as e:
            return error_response(400, 'invalid', e.messages)
        except NotFound as e:
            return error_response(404, 'not_found', [str(e.message)])
        except Conflict as e:
            return error_response(409, e.code, [str(e.message)])


def error_response(status, code, messages):
    return JsonResponse({'code': code, 'errors': messages}, status=status)


def form_error_response(form):
    return JsonResponse({'code': 'invalid', 'errors': form.errors.get_json_data()}, status=400)
