import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('camps', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Registration',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('season', models.PositiveIntegerField(verbose_name='Season')),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('CONFIRMED', 'Confirmed'), ('WAITLISTED', 'Waiting list'), ('CANCELLED', 'Cancelled')], max_length=16, verbose_name='Status')),
                ('needs_reconciliation', models.BooleanField(default=False, help_text='Set when a payment completed, but the registration could not be confirmed (e.g. because a waitlisted job filled up in the meantime).', verbose_name='Needs manual reconciliation')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Creation timestamp')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Last update timestamp')),
                ('confirmed_at', models.DateTimeField(blank=True, null=True, verbose_name='Confirmation timestamp')),
                ('cancelled_at', models.DateTimeField(blank=True, null=True, verbose_name='Cancellation timestamp')),
                ('participant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='registrations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'registration',
                'verbose_name_plural': 'registrations',
            },
        ),
        migrations.CreateModel(
            name='AdmissionKey',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('season', models.PositiveIntegerField()),
                ('participant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'admission key',
                'verbose_name_plural': 'admission keys',
            },
        ),
        migrations.CreateModel(
            name='RegistrationJob',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reserved', models.BooleanField(default=True, verbose_name='Slot reserved')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Creation timestamp')),
                ('job', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='assignments', to='camps.job')),
                ('registration', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='job_assignments', to='registrations.registration')),
            ],
            options={
                'verbose_name': 'job assignment',
                'verbose_name_plural': 'job assignments',
            },
        ),
        migrations.CreateModel(
            name='RegistrationCampingOption',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reserved', models.BooleanField(default=True, verbose_name='Slot reserved')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Creation timestamp')),
                ('camping_option', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='assignments', to='camps.campingoption')),
                ('registration', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='camping_option_assignments', to='registrations.registration')),
            ],
            options={
                'verbose_name': 'camping option assignment',
                'verbose_name_plural': 'camping option assignments',
            },
        ),
        migrations.AddField(
            model_name='registration',
            name='jobs',
            field=models.ManyToManyField(related_name='registrations', through='registrations.RegistrationJob', to='camps.job'),
        ),
        migrations.AddField(
            model_name='registration',
            name='camping_options',
            field=models.ManyToManyField(related_name='registrations', through='registrations.RegistrationCampingOption', to='camps.campingoption'),
        ),
        migrations.AddIndex(
            model_name='registration',
            index=models.Index(fields=['participant', 'season', 'status', 'created_at'], name='idx_part_season_status_created'),
        ),
        migrations.AddIndex(
            model_name='registration',
            index=models.Index(fields=['status', 'created_at'], name='idx_status_created'),
        ),
        migrations.AddConstraint(
            model_name='registration',
            constraint=models.CheckConstraint(check=(~models.Q(status='CONFIRMED') | models.Q(confirmed_at__isnull=False)), name='confirmed_registration_has_timestamp'),
        ),
        migrations.AddConstraint(
            model_name='registration',
            constraint=models.CheckConstraint(check=(~models.Q(status='CANCELLED') | models.Q(cancelled_at__isnull=False)), name='cancelled_registration_has_timestamp'),
        ),
        migrations.AddConstraint(
            model_name='admissionkey',
            constraint=models.UniqueConstraint(fields=('participant', 'season'), name='one_admission_key_per_participant_season'),
        ),
        migrations.AddConstraint(
            model_name='registrationjob',
            constraint=models.UniqueConstraint(fields=('registration', 'job'), name='one_assignment_per_registration_job'),
        ),
        migrations.AddConstraint(
            model_name='registrationcampingoption',
            constraint=models.UniqueConstraint(fields=('registration', 'camping_option'), name='one_assignment_per_registration_camping_option'),
        ),
    ]
