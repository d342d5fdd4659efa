import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('centers', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Child',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reg_no', models.CharField(editable=False, max_length=16, verbose_name='Registration number')),
                ('name', models.CharField(max_length=255, verbose_name="Child's name")),
                ('dob', models.DateField(verbose_name='Date of birth')),
                ('sex', models.CharField(choices=[('Male', 'Male'), ('Female', 'Female')], max_length=6, verbose_name='Sex')),
                ('address', models.CharField(max_length=255, verbose_name='Address')),
                ('contact', models.CharField(blank=True, max_length=20, verbose_name='Contact number')),
                ('is_defaulter', models.BooleanField(default=False, verbose_name='Defaulter')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('facility', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='children', to='centers.facility', verbose_name='Facility')),
            ],
            options={
                'verbose_name': 'Child',
                'verbose_name_plural': 'Children',
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Backup',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('data', models.JSONField()),
                ('facility', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='backups', to='centers.facility')),
            ],
            options={
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='VaccinationDose',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vaccine', models.CharField(choices=[('BCG at Birth', 'BCG at Birth'), ('OPV0 at Birth', 'OPV0 at Birth'), ('Hepatitis B at Birth', 'Hepatitis B at Birth'), ('OPV1 at 6 weeks', 'OPV1 at 6 weeks'), ('Penta1 at 6 weeks', 'Penta1 at 6 weeks'), ('PCV1 at 6 weeks', 'PCV1 at 6 weeks'), ('Rota1 at 6 weeks', 'Rota1 at 6 weeks'), ('OPV2 at 10 weeks', 'OPV2 at 10 weeks'), ('Penta2 at 10 weeks', 'Penta2 at 10 weeks'), ('PCV2 at 10 weeks', 'PCV2 at 10 weeks'), ('Rota2 at 10 weeks', 'Rota2 at 10 weeks'), ('OPV3 at 14 weeks', 'OPV3 at 14 weeks'), ('Penta3 at 14 weeks', 'Penta3 at 14 weeks'), ('PCV3 at 14 weeks', 'PCV3 at 14 weeks'), ('IPV1 at 14 weeks', 'IPV1 at 14 weeks'), ('Rota3 at 14 weeks', 'Rota3 at 14 weeks'), ('Malaria1 at 6 months', 'Malaria1 at 6 months'), ('Vitamin A at 6 months', 'Vitamin A at 6 months'), ('Malaria2 at 7 months', 'Malaria2 at 7 months'), ('Malaria3 at 9 months', 'Malaria3 at 9 months'), ('IPV2 at 9 months', 'IPV2 at 9 months'), ('Measles Rubella1 at 9 months', 'Measles Rubella1 at 9 months'), ('Yellow Fever at 9 months', 'Yellow Fever at 9 months'), ('Vitamin A at 12 months', 'Vitamin A at 12 months'), ('Meningitis A at 18 months', 'Meningitis A at 18 months'), ('Measles Rubella2 at 18 months', 'Measles Rubella2 at 18 months'), ('Malaria4 at 18 months', 'Malaria4 at 18 months'), ('Vitamin A at 18 months', 'Vitamin A at 18 months'), ('LLIN at 18 months', 'LLIN at 18 months'), ('Vitamin A at 24 months', 'Vitamin A at 24 months'), ('Vitamin A at 30 months', 'Vitamin A at 30 months'), ('Vitamin A at 36 months', 'Vitamin A at 36 months'), ('Vitamin A at 48 months', 'Vitamin A at 48 months')], max_length=64, verbose_name='Vaccine')),
                ('date_given', models.DateField(blank=True, null=True, verbose_name='Date given')),
                ('batch_number', models.CharField(blank=True, max_length=100, verbose_name='Batch number')),
                ('place_given', models.CharField(blank=True, max_length=255, verbose_name='Place given')),
                ('remarks', models.TextField(blank=True, verbose_name='Remarks')),
                ('next_visit', models.DateField(blank=True, null=True, verbose_name='Next visit')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('scheduled', 'Scheduled')], default='pending', max_length=10)),
                ('child', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='doses', to='medical.child')),
                ('facility', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='vaccinations', to='centers.facility')),
            ],
            options={
                'verbose_name': 'Vaccination dose',
                'verbose_name_plural': 'Vaccination doses',
                'ordering': ['id'],
            },
        ),
        migrations.AddConstraint(
            model_name='child',
            constraint=models.UniqueConstraint(fields=('facility', 'reg_no'), name='unique_reg_no_per_facility'),
        ),
        migrations.AddConstraint(
            model_name='vaccinationdose',
            constraint=models.UniqueConstraint(fields=('child', 'vaccine'), name='unique_dose_per_child_vaccine'),
        ),
    ]
