"""
Record shapes of the backup document (camelCase keys, as the offline app writes them).
"""
from rest_framework import serializers

from .models import Child, VaccinationDose
from .schedule import VACCINE_CHOICES


class BackupDateField(serializers.DateField):
    """Dates may arrive empty or as full ISO datetimes from older exports."""

    def to_internal_value(self, value):
        if value in ("", None):
            if self.allow_null:
                return None
            self.fail("required")
        if isinstance(value, str) and len(value) > 10 and value[10] in "T ":
            value = value[:10]
        return super().to_internal_value(value)


# 1. Facility (informational only; credentials never leave the device)
class FacilityRecordSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    code = serializers.CharField()
    name = serializers.CharField()
    region = serializers.CharField(allow_blank=True)
    district = serializers.CharField(allow_blank=True)
    createdAt = serializers.DateTimeField(source='created_at')


# 2. Children
class ChildRecordSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    regNo = serializers.RegexField(r'^\d{3,}/\d{4}$', source='reg_no')
    name = serializers.CharField(max_length=255)
    dob = BackupDateField()
    sex = serializers.ChoiceField(choices=Child.SEX_CHOICES)
    address = serializers.CharField(max_length=255, allow_blank=True)
    contact = serializers.CharField(max_length=20, allow_blank=True, required=False, default="")
    isDefaulter = serializers.BooleanField(source='is_defaulter', required=False, default=False)
    createdAt = serializers.DateTimeField(source='created_at', required=False)
    facilityId = serializers.IntegerField(source='facility_id', read_only=True)


# 3. Vaccination doses
class DoseRecordSerializer(serializers.Serializer):
    id = serializers.IntegerField(required=False)
    childId = serializers.IntegerField(source='child_id')
    vaccine = serializers.ChoiceField(choices=VACCINE_CHOICES)
    dateGiven = BackupDateField(source='date_given', allow_null=True, required=False, default=None)
    batchNumber = serializers.CharField(source='batch_number', allow_blank=True, required=False, default="")
    placeGiven = serializers.CharField(source='place_given', allow_blank=True, required=False, default="")
    remarks = serializers.CharField(allow_blank=True, required=False, default="")
    nextVisit = BackupDateField(source='next_visit', allow_null=True, required=False, default=None)
    status = serializers.ChoiceField(choices=VaccinationDose.Status.choices, required=False)
    facilityId = serializers.IntegerField(source='facility_id', read_only=True)
