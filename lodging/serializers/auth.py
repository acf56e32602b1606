from django.contrib.auth import password_validation
from rest_framework import serializers

PHONE_PATTERN = r'^\+?[\d\s\-()]+$'


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=254)
    password = serializers.CharField(min_length=6, max_length=128, write_only=True)
    firstName = serializers.CharField(max_length=50)
    lastName = serializers.CharField(max_length=50)
    phone = serializers.RegexField(PHONE_PATTERN, max_length=32, required=False, allow_blank=True)

    def validate_email(self, v):
        return v.strip().lower()

    def validate_firstName(self, v):
        v = v.strip()
        if not v:
            raise serializers.ValidationError('First name is required')
        return v

    def validate_lastName(self, v):
        v = v.strip()
        if not v:
            raise serializers.ValidationError('Last name is required')
        return v

    def validate_password(self, v):
        password_validation.validate_password(v)
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
    refreshToken = serializers.CharField()


class LogoutSerializer(serializers.Serializer):
    refreshToken = serializers.CharField(required=False, allow_blank=True)


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()

    def validate_email(self, v):
        return v.strip().lower()


class ResetPasswordSerializer(serializers.Serializer):
    uid = serializers.CharField()
    token = serializers.CharField()
    password = serializers.CharField(min_length=6, max_length=128)


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField()
    newPassword = serializers.CharField(min_length=6, max_length=128)

    def validate(self, attrs):
        if attrs['currentPassword'] == attrs['newPassword']:
            raise serializers.ValidationError({'newPassword': ['New password must differ from the current one']})
        return attrs


class DeleteAccountSerializer(serializers.Serializer):
    password = serializers.CharField()
