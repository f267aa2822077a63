from rest_framework import serializers


class AppointmentCreateSerializer(serializers.Serializer):
    doctor_id = serializers.IntegerField(min_value=1)
    # ISO 8601 parsing and the future-date rule live in services.appointments
    appointment_datetime = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=5000)


class PaginationSerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False, default=10)
    offset = serializers.IntegerField(min_value=0, required=False, default=0)
