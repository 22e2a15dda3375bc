import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import apps.core.fields


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('registrations', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', apps.core.fields.MonetaryField()),
                ('currency', models.CharField(default='EUR', max_length=3, verbose_name='Currency')),
                ('status', models.CharField(choices=[('PENDING', 'Payment in progress'), ('COMPLETED', 'Payment completed'), ('FAILED', 'Payment failed/expired/aborted/etc.'), ('REFUNDED', 'Payment refunded')], default='PENDING', max_length=16, verbose_name='Status')),
                ('provider', models.CharField(choices=[('MOLLIE', 'Online payment'), ('MANUAL', 'Manual payment')], default='MOLLIE', max_length=16, verbose_name='Provider')),
                ('provider_ref_id', models.CharField(blank=True, default=None, max_length=32, null=True, unique=True)),
                ('provider_status', models.CharField(blank=True, max_length=16)),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Creation timestamp')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Last update timestamp')),
                ('timestamp', models.DateTimeField(blank=True, null=True, verbose_name='Transaction date/time')),
                ('participant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payments', to=settings.AUTH_USER_MODEL)),
                ('registration', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='registrations.registration')),
            ],
            options={
                'verbose_name': 'payment',
                'verbose_name_plural': 'payments',
                'base_manager_name': 'objects',
            },
        ),
        migrations.AddConstraint(
            model_name='payment',
            constraint=models.CheckConstraint(check=models.Q(('provider_ref_id', ''), _negated=True), name='provider_ref_id_cannot_be_empty'),
        ),
        migrations.AddConstraint(
            model_name='payment',
            constraint=models.CheckConstraint(check=(models.Q(provider_ref_id=None) & models.Q(provider_status='')) | (~models.Q(provider_ref_id=None) & ~models.Q(provider_status='')), name='provider_ref_id_and_status_set_or_unset_together'),
        ),
    ]
