from rest_framework import serializers

from clinic.serializers.organization import OrgUserCreateSerializer


class DoctorCreateSerializer(OrgUserCreateSerializer):
    specialization = serializers.CharField(max_length=255)
    license_number = serializers.CharField(max_length=100)
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
