from django.contrib import admin
from django.forms.fields import DateTimeField
from reversion.admin import VersionAdmin

from apps.registrations.models import Registration

from .models import Payment


class PaymentAdminMixin:
    """ Methods shared between regular and inline admin. """

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        # Ensure this dropdown is rendered with appropriate select_related's as used by the  __str__ method
        if db_field.name == "registration":
            kwargs['queryset'] = Registration.objects.active().select_related('participant').order_by('-season')
        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def formfield_for_choice_field(self, db_field, request, **kwargs):
        # Only allow COMPLETED payments in the admin, other statuses are reserved for automatic payments
        if db_field.name == "status":
            kwargs['choices'] = [(Payment.Status.COMPLETED.value, Payment.Status.COMPLETED.label)]
        elif db_field.name == "provider":
            kwargs['choices'] = [(Payment.Provider.MANUAL.value, Payment.Provider.MANUAL.label)]
        return super().formfield_for_choice_field(db_field, request, **kwargs)

    def formfield_for_dbfield(self, db_field, **kwargs):
        if db_field.name == 'timestamp':
            # This uses a regular datetime input instead of split, but with the datewidget so you get just a date
            # picker (manual transactions usually have just a date), but override the format to include a time
            # component so you *can* still input a time if you want.
            kwargs['form_class'] = DateTimeField
            kwargs['widget'] = admin.widgets.AdminDateWidget(format='%Y-%m-%d %H:%M:%S')

        return super().formfield_for_dbfield(db_field, **kwargs)


@admin.register(Payment)
class PaymentAdmin(PaymentAdminMixin, VersionAdmin):
    list_display = ('registration', 'created_at', 'timestamp', 'type', 'amount', 'status', 'provider_status')
    list_filter = ('status', 'provider')

    def get_readonly_fields(self, request, obj=None):
        fields = ['provider_ref_id', 'provider_status', 'created_at', 'updated_at']
        if obj:
            # Payments never move to another registration
            fields += ['participant', 'registration']
        if obj and obj.provider_ref_id:
            fields += ['amount', 'currency', 'status', 'provider', 'timestamp']
        return fields

    def has_delete_permission(self, request, obj=None):
        # Disallow deleting online payments
        if obj and obj.provider_ref_id:
            return False
        return super().has_delete_permission(request, obj)

    def get_queryset(self, *args, **kwargs):
        return super().get_queryset(*args, **kwargs).select_related('registration', 'participant')

    def get_changeform_initial_data(self, request):
        initial = super().get_changeform_initial_data(request)
        initial['status'] = Payment.Status.COMPLETED
        initial['provider'] = Payment.Provider.MANUAL
        return initial


class PaymentInline(admin.TabularInline):
    model = Payment
    fk_name = 'registration'

    # Edit and delete can only be done through the PaymentAdmin, which can properly limit editing of online payments
    # (in an inline admin, you can only limit based on the containing object, e.g. Registration). This uses readonly
    # fields, since removing change permission also removes the change link.
    readonly_fields = ['created_at', 'timestamp', 'amount', 'status', 'provider_ref_id', 'provider_status']
    fields = readonly_fields
    can_delete = False
    show_change_link = True

    # With all fields readonly, adding new entries is not meaningful
    def has_add_permission(self, *args, **kwargs):
        return False
