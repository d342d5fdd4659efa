import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Facility',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=20, unique=True, verbose_name='Facility code')),
                ('name', models.CharField(max_length=255, verbose_name='Facility name')),
                ('password', models.CharField(max_length=128, verbose_name='Password')),
                ('region', models.CharField(blank=True, max_length=100, verbose_name='Region')),
                ('district', models.CharField(blank=True, max_length=100, verbose_name='District')),
                ('security_questions', models.JSONField(blank=True, default=list, verbose_name='Security questions')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Facility',
                'verbose_name_plural': 'Facilities',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='FacilitySession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('logged_in_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('facility', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sessions', to='centers.facility')),
            ],
            options={
                'ordering': ['-logged_in_at'],
            },
        ),
        migrations.CreateModel(
            name='PasswordRecoveryAttempt',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('attempts', models.PositiveIntegerField(default=0)),
                ('last_attempt', models.DateTimeField(blank=True, null=True)),
                ('facility', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='recovery_attempt', to='centers.facility')),
            ],
        ),
        migrations.CreateModel(
            name='FacilitySetting',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(max_length=100)),
                ('value', models.JSONField(blank=True, null=True)),
                ('facility', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='settings', to='centers.facility')),
            ],
        ),
        migrations.AddConstraint(
            model_name='facilitysetting',
            constraint=models.UniqueConstraint(fields=('facility', 'key'), name='unique_facility_setting'),
        ),
    ]
