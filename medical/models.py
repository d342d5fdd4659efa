from django.db import models
from django.utils import timezone

from centers.models import Facility
from .schedule import VACCINE_CHOICES


class Child(models.Model):
    SEX_CHOICES = (
        ('Male', 'Male'),
        ('Female', 'Female'),
    )

    facility = models.ForeignKey(Facility, on_delete=models.CASCADE, related_name='children', verbose_name="Facility")

    # 1. Identity
    reg_no = models.CharField(max_length=16, editable=False, verbose_name="Registration number")
    name = models.CharField(max_length=255, verbose_name="Child's name")
    dob = models.DateField(verbose_name="Date of birth")
    sex = models.CharField(max_length=6, choices=SEX_CHOICES, verbose_name="Sex")

    # 2. Contact
    address = models.CharField(max_length=255, verbose_name="Address")
    contact = models.CharField(max_length=20, blank=True, verbose_name="Contact number")

    # 3. Status (recomputed after every dose-set save)
    is_defaulter = models.BooleanField(default=False, verbose_name="Defaulter")

    # Not auto_now_add: restoring a backup keeps the original registration instant.
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['facility', 'reg_no'], name='unique_reg_no_per_facility'),
        ]
        verbose_name = "Child"
        verbose_name_plural = "Children"

    def __str__(self):
        return f"{self.reg_no} {self.name}"


class VaccinationDose(models.Model):
    """
    One row of a child's immunization card: a dose given, or a next visit
    booked for it. Rows with neither are never stored.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        COMPLETED = 'completed', 'Completed'
        SCHEDULED = 'scheduled', 'Scheduled'

    child = models.ForeignKey(Child, on_delete=models.CASCADE, related_name='doses')
    facility = models.ForeignKey(Facility, on_delete=models.CASCADE, related_name='vaccinations')
    vaccine = models.CharField(max_length=64, choices=VACCINE_CHOICES, verbose_name="Vaccine")

    date_given = models.DateField(null=True, blank=True, verbose_name="Date given")
    batch_number = models.CharField(max_length=100, blank=True, verbose_name="Batch number")
    place_given = models.CharField(max_length=255, blank=True, verbose_name="Place given")
    remarks = models.TextField(blank=True, verbose_name="Remarks")

    next_visit = models.DateField(null=True, blank=True, verbose_name="Next visit")
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)

    class Meta:
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['child', 'vaccine'], name='unique_dose_per_child_vaccine'),
        ]
        verbose_name = "Vaccination dose"
        verbose_name_plural = "Vaccination doses"

    def __str__(self):
        return f"{self.child.name} - {self.vaccine} ({self.status})"


class Backup(models.Model):
    """A stored backup document, kept so a facility can roll back without a file."""
    facility = models.ForeignKey(Facility, on_delete=models.CASCADE, related_name='backups')
    created_at = models.DateTimeField(default=timezone.now)
    data = models.JSONField()

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.facility.code} backup {self.created_at:%Y-%m-%d %H:%M}"
