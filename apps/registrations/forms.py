from django import forms
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _

from .models import Registration


class IdListField(forms.Field):
    """
    A list of primary keys, submitted as a repeated parameter (e.g. job_ids=1&job_ids=2).

    Ids are not checked to exist, that is up to the services (which report unknown ids as NotFound). An empty value
    (e.g. job_ids=) results in an empty list.
    """

    widget = forms.SelectMultiple

    def to_python(self, value):
        if not value:
            return []
        try:
            return sorted({int(v) for v in value if v not in ('', None)})
        except (TypeError, ValueError):
            raise ValidationError(_("Enter a list of ids."), code='invalid_list')


class RegistrationCreateForm(forms.Form):
    season = forms.IntegerField()
    job_ids = IdListField(required=False)
    camping_option_ids = IdListField(required=False)


class RegistrationFilterForm(forms.Form):
    season = forms.IntegerField(required=False)
    status = forms.ChoiceField(choices=Registration.Status.choices, required=False)
    participant = forms.IntegerField(required=False)

    def filters(self):
        return {k: v for k, v in self.cleaned_data.items() if v not in (None, '')}


class RegistrationEditForm(forms.Form):
    status = forms.ChoiceField(choices=Registration.Status.choices, required=False)
    expected_status = forms.ChoiceField(choices=Registration.Status.choices, required=False)
    job_ids = IdListField(required=False)
    camping_option_ids = IdListField(required=False)
    notes = forms.CharField(required=False, max_length=2000)
    send_notification = forms.BooleanField(required=False)

    def clean(self):
        cleaned_data = super().clean()
        # Distinguish "leave unchanged" (omitted) from "remove all" (submitted empty)
        for name in ('job_ids', 'camping_option_ids'):
            if name not in self.data:
                cleaned_data[name] = None
        for name in ('status', 'expected_status'):
            if not cleaned_data.get(name):
                cleaned_data[name] = None
        return cleaned_data


class RegistrationCancelForm(forms.Form):
    reason = forms.CharField(required=False, max_length=2000)
    process_refund = forms.BooleanField(required=False)
    send_notification = forms.BooleanField(required=False)
