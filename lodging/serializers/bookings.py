import bleach
from django.utils import timezone
from rest_framework import serializers

from lodging.models import Booking, BookingMessage, SpecialRequest
from lodging.serializers.hotels import WholeSerializer


def _clean(v: str) -> str:
    return bleach.clean((v or '').strip(), tags=[], strip=True)


class GuestsSerializer(WholeSerializer):
    adults = serializers.IntegerField(min_value=1, max_value=20)
    children = serializers.IntegerField(min_value=0, max_value=10, required=False, default=0)
    infants = serializers.IntegerField(min_value=0, max_value=5, required=False, default=0)


class PrimaryGuestSerializer(WholeSerializer):
    firstName = serializers.CharField(max_length=50)
    lastName = serializers.CharField(max_length=50)
    email = serializers.EmailField()
    phone = serializers.RegexField(r'^\+?[\d\s\-()]+$', max_length=32)
    dateOfBirth = serializers.DateField(required=False)
    nationality = serializers.CharField(max_length=60, required=False, allow_blank=True)
    passportNumber = serializers.CharField(max_length=30, required=False, allow_blank=True)
    specialRequests = serializers.CharField(max_length=500, required=False, allow_blank=True)


class AdditionalGuestSerializer(WholeSerializer):
    firstName = serializers.CharField(max_length=50)
    lastName = serializers.CharField(max_length=50)
    age = serializers.IntegerField(min_value=0, max_value=120, required=False)
    relationship = serializers.CharField(max_length=50, required=False, allow_blank=True)


class GuestDetailsSerializer(WholeSerializer):
    primaryGuest = PrimaryGuestSerializer()
    additionalGuests = AdditionalGuestSerializer(many=True, required=False)

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        primary = dict(value['primaryGuest'])
        if primary.get('dateOfBirth'):
            primary['dateOfBirth'] = primary['dateOfBirth'].isoformat()
        if 'specialRequests' in primary:
            primary['specialRequests'] = _clean(primary['specialRequests'])
        return {
            'primaryGuest': primary,
            'additionalGuests': [dict(g) for g in value.get('additionalGuests', [])],
        }


class SpecialRequestSerializer(WholeSerializer):
    type = serializers.ChoiceField(choices=[c[0] for c in SpecialRequest.TYPE_CHOICES])
    description = serializers.CharField(max_length=500)

    def validate_description(self, v):
        return _clean(v)


class SpecialRequestUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c[0] for c in SpecialRequest.STATUS_CHOICES])
    cost = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)


class BookingDatesMixin:
    def validate(self, attrs):
        check_in, check_out = attrs.get('checkIn'), attrs.get('checkOut')
        if check_in and check_in < timezone.localdate():
            raise serializers.ValidationError({'checkIn': ['Check-in date cannot be in the past']})
        if check_in and check_out and check_out <= check_in:
            raise serializers.ValidationError({'checkOut': ['Check-out date must be after check-in date']})
        return attrs


class BookingCreateSerializer(BookingDatesMixin, serializers.Serializer):
    hotelId = serializers.IntegerField()
    roomTypeId = serializers.IntegerField()
    checkIn = serializers.DateField()
    checkOut = serializers.DateField()
    guests = GuestsSerializer()
    guestDetails = GuestDetailsSerializer()
    specialRequests = SpecialRequestSerializer(many=True, required=False)
    source = serializers.ChoiceField(choices=['website', 'mobile-app', 'phone', 'walk-in', 'third-party'],
                                     required=False, default='website')


class BookingUpdateSerializer(BookingDatesMixin, serializers.Serializer):
    roomTypeId = serializers.IntegerField(required=False)
    checkIn = serializers.DateField(required=False)
    checkOut = serializers.DateField(required=False)
    guests = GuestsSerializer(required=False)
    guestDetails = GuestDetailsSerializer(required=False)


class CancelSerializer(serializers.Serializer):
    reason = serializers.ChoiceField(choices=[c[0] for c in Booking.CANCELLATION_REASON_CHOICES],
                                     required=False, default='guest-request')


class ConfirmSerializer(serializers.Serializer):
    method = serializers.ChoiceField(choices=['email', 'sms', 'phone', 'in-person'], required=False, default='email')


class CheckInSerializer(serializers.Serializer):
    roomNumber = serializers.CharField(max_length=20, required=False, allow_blank=True)
    keyCards = serializers.IntegerField(min_value=0, max_value=10, required=False, default=1)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate_notes(self, v):
        return _clean(v)


class ChargeSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=200)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)


class CheckOutSerializer(serializers.Serializer):
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)
    damages = ChargeSerializer(many=True, required=False)
    minibarCharges = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, default=0)
    additionalCharges = ChargeSerializer(many=True, required=False)

    def validate_notes(self, v):
        return _clean(v)


class CommunicationSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=[c[0] for c in BookingMessage.TYPE_CHOICES])
    subject = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    message = serializers.CharField(max_length=2000)

    def validate_message(self, v):
        return _clean(v)


class BookingListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c[0] for c in Booking.STATUS_CHOICES], required=False)
    hotelId = serializers.IntegerField(required=False)


class ReportQuerySerializer(serializers.Serializer):
    """Date window for reports; the view maps ``from``/``to`` onto ``start``/``end``."""
    start = serializers.DateField(required=False)
    end = serializers.DateField(required=False)

    def validate(self, attrs):
        if attrs.get('start') and attrs.get('end') and attrs['end'] < attrs['start']:
            raise serializers.ValidationError('"to" must not be before "from"')
        return attrs
