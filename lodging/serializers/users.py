from django.utils import timezone
from rest_framework import serializers

from lodging.serializers.auth import PHONE_PATTERN


class AddressSerializer(serializers.Serializer):
    street = serializers.CharField(max_length=200, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True)
    zipCode = serializers.CharField(max_length=20, required=False, allow_blank=True)


class NotificationPrefsSerializer(serializers.Serializer):
    email = serializers.BooleanField(required=False)
    sms = serializers.BooleanField(required=False)
    marketing = serializers.BooleanField(required=False)


class AccessibilityPrefsSerializer(serializers.Serializer):
    wheelchairAccess = serializers.BooleanField(required=False)
    visualImpairment = serializers.BooleanField(required=False)
    hearingImpairment = serializers.BooleanField(required=False)


class PreferencesSerializer(serializers.Serializer):
    currency = serializers.ChoiceField(choices=['USD', 'EUR', 'GBP', 'CAD'], required=False)
    language = serializers.ChoiceField(choices=['en', 'es', 'fr', 'de'], required=False)
    notifications = NotificationPrefsSerializer(required=False)
    accessibility = AccessibilityPrefsSerializer(required=False)

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        return {k: dict(v) if isinstance(v, dict) else v for k, v in value.items()}


class EmergencyContactSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    relationship = serializers.CharField(max_length=50, required=False, allow_blank=True)
    phone = serializers.RegexField(PHONE_PATTERN, max_length=32, required=False, allow_blank=True)


class ProfileUpdateSerializer(serializers.Serializer):
    """Fields a user may change on their own profile; anything else is ignored."""
    firstName = serializers.CharField(max_length=50, required=False)
    lastName = serializers.CharField(max_length=50, required=False)
    phone = serializers.RegexField(PHONE_PATTERN, max_length=32, required=False, allow_blank=True)
    dateOfBirth = serializers.DateField(required=False, allow_null=True)
    address = AddressSerializer(required=False)
    preferences = PreferencesSerializer(required=False)
    emergencyContact = EmergencyContactSerializer(required=False)
    profileImage = serializers.URLField(max_length=500, required=False, allow_blank=True)

    def validate_dateOfBirth(self, v):
        if v and v >= timezone.localdate():
            raise serializers.ValidationError('Date of birth must be in the past')
        return v

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        for key in ('address', 'emergencyContact'):
            if key in value:
                value[key] = dict(value[key])
        return value


class UserStatusSerializer(serializers.Serializer):
    isActive = serializers.BooleanField()


class LoyaltyPointsSerializer(serializers.Serializer):
    points = serializers.IntegerField(min_value=1, max_value=1_000_000)
    reason = serializers.CharField(max_length=200)


class UserListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['active', 'inactive', 'all'], required=False, default='active')


class UserSearchSerializer(serializers.Serializer):
    q = serializers.CharField(min_length=1, max_length=100)
