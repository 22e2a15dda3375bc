import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Shift',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('description', models.TextField(blank=True, verbose_name='Description')),
                ('day', models.CharField(choices=[('PRE_OPENING', 'Before opening'), ('MONDAY', 'Monday'), ('TUESDAY', 'Tuesday'), ('WEDNESDAY', 'Wednesday'), ('THURSDAY', 'Thursday'), ('FRIDAY', 'Friday'), ('SATURDAY', 'Saturday'), ('SUNDAY', 'Sunday'), ('POST_EVENT', 'After the event')], max_length=16, verbose_name='Day')),
                ('start_time', models.TimeField(verbose_name='Start time')),
                ('end_time', models.TimeField(verbose_name='End time')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Creation timestamp')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Last update timestamp')),
            ],
            options={
                'verbose_name': 'shift',
                'verbose_name_plural': 'shifts',
                'ordering': ('day', 'start_time'),
            },
        ),
        migrations.CreateModel(
            name='CampingOption',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('description', models.TextField(blank=True, verbose_name='Description')),
                ('enabled', models.BooleanField(default=True, help_text='Only enabled resources can be selected for new registrations.', verbose_name='Enabled')),
                ('max_signups', models.PositiveIntegerField(blank=True, help_text='Maximum number of registrations for this. When empty or 0, there is no limit.', null=True, verbose_name='Maximum signups')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Creation timestamp')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Last update timestamp')),
            ],
            options={
                'verbose_name': 'camping option',
                'verbose_name_plural': 'camping options',
                'ordering': ('name',),
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='Job',
            fields=[
                ('id', models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('description', models.TextField(blank=True, verbose_name='Description')),
                ('enabled', models.BooleanField(default=True, help_text='Only enabled resources can be selected for new registrations.', verbose_name='Enabled')),
                ('max_signups', models.PositiveIntegerField(blank=True, help_text='Maximum number of registrations for this. When empty or 0, there is no limit.', null=True, verbose_name='Maximum signups')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Creation timestamp')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Last update timestamp')),
                ('location', models.CharField(blank=True, max_length=100, verbose_name='Location')),
                ('shift', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='jobs', to='camps.shift', verbose_name='Shift')),
            ],
            options={
                'verbose_name': 'job',
                'verbose_name_plural': 'jobs',
                'ordering': ('name',),
                'abstract': False,
            },
        ),
    ]
