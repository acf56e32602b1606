from decimal import Decimal

import bleach
from rest_framework import serializers
from rest_framework.fields import empty

from lodging.models import Hotel, HotelStaff


def clean_text(value: str) -> str:
    return bleach.clean((value or '').strip(), tags=[], strip=True)


class WholeSerializer(serializers.Serializer):
    """Nested object that is validated in full, even inside a partial update.

    A partial root makes DRF skip required fields at every depth, which
    would let a fragment such as ``{"latitude": 1}`` replace a stored object.
    """

    def run_validation(self, data=empty):
        if data is empty or data is None or self.root is self or not getattr(self.root, 'partial', False):
            return super().run_validation(data)
        whole = type(self)(data=data, context=self.context)
        whole.is_valid(raise_exception=True)
        return whole.validated_data


class CoordinatesSerializer(WholeSerializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)


class LocationSerializer(WholeSerializer):
    address = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    country = serializers.CharField(max_length=100)
    zipCode = serializers.CharField(max_length=20, required=False, allow_blank=True)
    coordinates = CoordinatesSerializer(required=False)
    timezone = serializers.CharField(max_length=64, required=False)


class ContactSerializer(WholeSerializer):
    phone = serializers.RegexField(r'^\+?[\d\s\-()]+$', max_length=32)
    email = serializers.EmailField()
    website = serializers.RegexField(r'^https?://.+', required=False, allow_blank=True, max_length=300)


class ImageSerializer(WholeSerializer):
    url = serializers.URLField(max_length=500)
    alt = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    isPrimary = serializers.BooleanField(required=False, default=False)
    category = serializers.ChoiceField(
        choices=['exterior', 'lobby', 'room', 'amenity', 'dining', 'other'], required=False, default='other')


class SeasonalRateSerializer(WholeSerializer):
    name = serializers.CharField(max_length=100)
    startDate = serializers.DateField()
    endDate = serializers.DateField()
    multiplier = serializers.DecimalField(max_digits=4, decimal_places=2, min_value=Decimal('0.1'), max_value=Decimal('5.0'))

    def validate(self, attrs):
        if attrs['endDate'] < attrs['startDate']:
            raise serializers.ValidationError('endDate must not be before startDate')
        return {
            'name': attrs['name'],
            'startDate': attrs['startDate'].isoformat(),
            'endDate': attrs['endDate'].isoformat(),
            'multiplier': float(attrs['multiplier']),
        }


class PricingSerializer(WholeSerializer):
    basePrice = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    currency = serializers.ChoiceField(choices=['USD', 'EUR', 'GBP', 'CAD'], required=False, default='USD')
    taxRate = serializers.DecimalField(max_digits=5, decimal_places=4, min_value=0, max_value=1, required=False)
    serviceCharge = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    seasonalRates = SeasonalRateSerializer(many=True, required=False)


class AmenitySerializer(WholeSerializer):
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(max_length=300, required=False, allow_blank=True, default='')
    category = serializers.ChoiceField(
        choices=['general', 'business', 'wellness', 'dining', 'entertainment', 'transportation', 'accessibility'],
        required=False, default='general')
    isAvailable = serializers.BooleanField(required=False, default=True)
    additionalCost = serializers.FloatField(min_value=0, required=False, default=0)


class BedSerializer(WholeSerializer):
    type = serializers.ChoiceField(choices=['single', 'double', 'queen', 'king', 'sofa-bed'])
    count = serializers.IntegerField(min_value=1, max_value=10)


class RoomTypeSerializer(WholeSerializer):
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')
    maxOccupancy = serializers.IntegerField(min_value=1, max_value=20)
    bedConfiguration = BedSerializer(many=True, required=False)
    size = serializers.DictField(required=False)
    amenities = serializers.ListField(child=serializers.CharField(max_length=100), required=False)
    images = ImageSerializer(many=True, required=False)
    priceAdjustment = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, default=0)
    totalRooms = serializers.IntegerField(min_value=1, max_value=1000)
    availableRooms = serializers.IntegerField(min_value=0, required=False)

    def validate_name(self, v):
        return clean_text(v)


class StaffSerializer(WholeSerializer):
    userId = serializers.IntegerField()
    role = serializers.ChoiceField(choices=[c[0] for c in HotelStaff.ROLE_CHOICES])
    permissions = serializers.ListField(child=serializers.CharField(max_length=50), required=False)


class HotelWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(max_length=2000)
    shortDescription = serializers.CharField(max_length=200, required=False, allow_blank=True)
    location = LocationSerializer()
    contact = ContactSerializer()
    images = ImageSerializer(many=True, required=False)
    pricing = PricingSerializer()
    amenities = AmenitySerializer(many=True, required=False)
    roomTypes = RoomTypeSerializer(many=True, required=False)
    policies = serializers.DictField(required=False)
    sustainability = serializers.DictField(required=False)
    owner = serializers.DictField(required=False)
    staff = StaffSerializer(many=True, required=False)
    status = serializers.ChoiceField(choices=[c[0] for c in Hotel.STATUS_CHOICES], required=False)
    featured = serializers.BooleanField(required=False)

    def validate_name(self, v):
        return clean_text(v)

    def validate_description(self, v):
        return clean_text(v)

    def validate_shortDescription(self, v):
        return clean_text(v)


class HotelStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c[0] for c in Hotel.STATUS_CHOICES])


class HotelImagesSerializer(serializers.Serializer):
    images = ImageSerializer(many=True, allow_empty=False)


class AvailabilityItemSerializer(serializers.Serializer):
    roomTypeId = serializers.IntegerField()
    availableRooms = serializers.IntegerField(min_value=0)


class AvailabilityUpdateSerializer(serializers.Serializer):
    roomTypes = AvailabilityItemSerializer(many=True, allow_empty=False)


class CheckAvailabilitySerializer(serializers.Serializer):
    checkIn = serializers.DateField()
    checkOut = serializers.DateField()
    guests = serializers.IntegerField(min_value=1, max_value=20, required=False, default=1)
    roomTypeId = serializers.IntegerField(required=False)

    def validate(self, attrs):
        if attrs['checkOut'] <= attrs['checkIn']:
            raise serializers.ValidationError('Check-out date must be after check-in date')
        return attrs


class HotelSearchSerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True, max_length=100)
    city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    country = serializers.CharField(required=False, allow_blank=True, max_length=100)
    minPrice = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    maxPrice = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    rating = serializers.FloatField(min_value=0, max_value=5, required=False)
    amenities = serializers.CharField(required=False, allow_blank=True)
    guests = serializers.IntegerField(min_value=1, max_value=20, required=False)
    checkIn = serializers.DateField(required=False)
    checkOut = serializers.DateField(required=False)
    sort = serializers.ChoiceField(
        choices=['-rating', 'rating', 'price', '-price', 'name', '-name', 'newest'], required=False, default='-rating')

    def validate(self, attrs):
        if bool(attrs.get('checkIn')) != bool(attrs.get('checkOut')):
            raise serializers.ValidationError('checkIn and checkOut must be given together')
        if attrs.get('checkIn') and attrs['checkOut'] <= attrs['checkIn']:
            raise serializers.ValidationError('Check-out date must be after check-in date')
        if attrs.get('minPrice') is not None and attrs.get('maxPrice') is not None \
                and attrs['minPrice'] > attrs['maxPrice']:
            raise serializers.ValidationError('minPrice cannot exceed maxPrice')
        raw = attrs.get('amenities') or ''
        attrs['amenities'] = [a.strip() for a in raw.split(',') if a.strip()]
        return attrs
