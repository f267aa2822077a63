from rest_framework import serializers

from clinic.models import Organization
from clinic.serializers.auth import PASSWORD_MIN_LENGTH


class OrganizationCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)

    def validate_name(self, v):
        v = (v or '').strip()
        if len(v) < 4:
            raise serializers.ValidationError('Organization name must be at least 4 characters long')
        return v


class OrganizationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Organization
        fields = ['id', 'name', 'slug', 'created_at', 'updated_at']


class OrgUserCreateSerializer(serializers.Serializer):
    """Fields shared by every organization account."""
    email = serializers.EmailField()
    password = serializers.CharField(min_length=PASSWORD_MIN_LENGTH, write_only=True)
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)

    def validate_email(self, v):
        return v.strip().lower()
