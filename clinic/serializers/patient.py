from django.utils import timezone
from rest_framework import serializers

from clinic.models import PatientProfile
from clinic.serializers.auth import PASSWORD_MIN_LENGTH
from clinic.serializers.organization import OrgUserCreateSerializer

PHONE_MIN_LENGTH = 10


def _check_phone(v):
    v = (v or '').strip()
    if len(v) < PHONE_MIN_LENGTH:
        raise serializers.ValidationError(f'Phone number must be at least {PHONE_MIN_LENGTH} characters long')
    return v


def _check_dob(v):
    if v > timezone.localdate():
        raise serializers.ValidationError('Date of birth cannot be in the future')
    return v


class PatientProfileFields(serializers.Serializer):
    date_of_birth = serializers.DateField(input_formats=['%Y-%m-%d'])
    phone_number = serializers.CharField(max_length=32)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    emergency_contact_name = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    emergency_contact_phone = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
    blood_type = serializers.ChoiceField(choices=PatientProfile.BLOOD_TYPE_CHOICES, required=False, allow_null=True)
    allergies = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    chronic_conditions = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_phone_number(self, v):
        return _check_phone(v)

    def validate_date_of_birth(self, v):
        return _check_dob(v)


class PatientRegisterSerializer(OrgUserCreateSerializer, PatientProfileFields):
    pass


class PatientUpdateSerializer(PatientProfileFields):
    """Every field optional; only supplied ones are written."""
    first_name = serializers.CharField(max_length=150, required=False)
    last_name = serializers.CharField(max_length=150, required=False)
    password = serializers.CharField(min_length=PASSWORD_MIN_LENGTH, required=False, write_only=True)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for field in self.fields.values():
            field.required = False
