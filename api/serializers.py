"""
Serializers for the REST API
"""
from rest_framework import serializers

from medical.models import Child
from medical.schedule import VACCINE_CHOICES, nominal_due_date
from medical.status import summarize_child
from .validators import validate_name, validate_past_date, validate_phone_number


# ============== Facility & Session ==============

class SecurityQuestionSerializer(serializers.Serializer):
    question = serializers.CharField(allow_blank=True)
    answer = serializers.CharField(allow_blank=True)


class FacilityRegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    code = serializers.CharField(max_length=20)
    password = serializers.CharField(write_only=True, allow_blank=True)
    confirm_password = serializers.CharField(write_only=True, allow_blank=True)
    region = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    district = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    security_questions = SecurityQuestionSerializer(many=True)


class FacilitySerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    code = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    region = serializers.CharField(read_only=True)
    district = serializers.CharField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)


class LoginSerializer(serializers.Serializer):
    code = serializers.CharField()
    password = serializers.CharField(write_only=True)


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(allow_blank=True)
    new_password = serializers.CharField(allow_blank=True)
    confirm_password = serializers.CharField(allow_blank=True)


class RecoveryCodeSerializer(serializers.Serializer):
    code = serializers.CharField(allow_blank=True)


class RecoveryAnswersSerializer(serializers.Serializer):
    token = serializers.CharField()
    answers = serializers.ListField(child=serializers.CharField(allow_blank=True))


class RecoveryResetSerializer(serializers.Serializer):
    token = serializers.CharField()
    new_password = serializers.CharField(allow_blank=True)
    confirm_password = serializers.CharField(allow_blank=True)


class DeleteFacilitySerializer(serializers.Serializer):
    password = serializers.CharField()


# ============== Children ==============

class ChildCreateUpdateSerializer(serializers.Serializer):
    """Editable child fields; used with partial=True for updates."""
    name = serializers.CharField(max_length=255, validators=[validate_name])
    dob = serializers.DateField(validators=[validate_past_date])
    sex = serializers.ChoiceField(choices=Child.SEX_CHOICES)
    address = serializers.CharField(max_length=255)
    contact = serializers.CharField(max_length=20, required=False, allow_blank=True, default="",
                                    validators=[validate_phone_number])


class ChildListSerializer(serializers.ModelSerializer):
    status = serializers.SerializerMethodField()

    class Meta:
        model = Child
        fields = ['id', 'reg_no', 'name', 'dob', 'sex', 'address', 'contact',
                  'is_defaulter', 'status', 'created_at']

    def get_status(self, obj):
        return summarize_child(obj, obj.doses.all(), self.context.get('today')).status


class DoseRowSerializer(serializers.Serializer):
    vaccine = serializers.ChoiceField(choices=VACCINE_CHOICES)
    date_given = serializers.DateField(required=False, allow_null=True)
    batch_number = serializers.CharField(required=False, allow_blank=True, default="")
    place_given = serializers.CharField(required=False, allow_blank=True, default="")
    remarks = serializers.CharField(required=False, allow_blank=True, default="")
    next_visit = serializers.DateField(required=False, allow_null=True)


class BookingSerializer(serializers.Serializer):
    date = serializers.DateField()
    vaccines = serializers.ListField(child=serializers.ChoiceField(choices=VACCINE_CHOICES), allow_empty=False)


class DoseSnapshotSerializer(serializers.Serializer):
    doses = DoseRowSerializer(many=True)
    booking = BookingSerializer(required=False, allow_null=True)


class TrackEditSerializer(serializers.Serializer):
    vaccine = serializers.ChoiceField(choices=VACCINE_CHOICES)
    value = serializers.CharField(allow_blank=True)


# ============== Status ==============

def dose_status_data(dose_status):
    if dose_status is None:
        return None
    return {
        'vaccine': dose_status.dose.vaccine,
        'next_visit': dose_status.dose.next_visit,
        'status': dose_status.status,
        'days_overdue': dose_status.days_overdue,
        'days_until': dose_status.days_until,
    }


def child_status_data(child_status):
    child = child_status.child
    return {
        'id': child.id,
        'reg_no': child.reg_no,
        'name': child.name,
        'contact': child.contact,
        'status': child_status.status,
        'featured_dose': dose_status_data(child_status.featured),
    }


def display_rows(rows, dob):
    """Edit-buffer rows plus the nominal due date of each vaccine."""
    for row in rows:
        due = nominal_due_date(dob, row['vaccine'])
        row['due_date'] = due.isoformat() if due else None
    return rows
