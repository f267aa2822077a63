from rest_framework import serializers

PASSWORD_MIN_LENGTH = 6


class CentralRegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    name = serializers.CharField(min_length=2, max_length=150)
    password = serializers.CharField(min_length=PASSWORD_MIN_LENGTH, write_only=True)

    def validate_email(self, v):
        return v.strip().lower()

    def validate_name(self, v):
        v = (v or '').strip()
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters long')
        return v


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()

    def validate_email(self, v):
        return v.strip().lower()

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required')
        return v


class RefreshSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False, allow_blank=True)


class VerifySerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)
