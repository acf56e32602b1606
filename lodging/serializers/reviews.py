import calendar

from rest_framework import serializers

from lodging.models import Review
from lodging.serializers.hotels import clean_text

RATING = {'min_value': 1, 'max_value': 5}


class RatingSerializer(serializers.Serializer):
    overall = serializers.IntegerField(**RATING)
    cleanliness = serializers.IntegerField(required=False, **RATING)
    service = serializers.IntegerField(required=False, **RATING)
    location = serializers.IntegerField(required=False, **RATING)
    value = serializers.IntegerField(required=False, **RATING)
    amenities = serializers.IntegerField(required=False, **RATING)


class PartialRatingSerializer(RatingSerializer):
    overall = serializers.IntegerField(required=False, **RATING)


class StayDetailsSerializer(serializers.Serializer):
    roomType = serializers.CharField(max_length=100, required=False, allow_blank=True)
    stayDuration = serializers.IntegerField(min_value=1, required=False)
    travelType = serializers.ChoiceField(
        choices=['business', 'leisure', 'family', 'couples', 'solo', 'group'], required=False)
    stayMonth = serializers.ChoiceField(choices=list(calendar.month_name)[1:], required=False)


def _clean_list(items):
    return [clean_text(i) for i in items if i and i.strip()]


class ReviewCreateSerializer(serializers.Serializer):
    hotelId = serializers.IntegerField()
    bookingId = serializers.IntegerField(required=False, allow_null=True)
    rating = RatingSerializer()
    title = serializers.CharField(max_length=100)
    comment = serializers.CharField(max_length=1000)
    pros = serializers.ListField(child=serializers.CharField(max_length=200, allow_blank=True), required=False)
    cons = serializers.ListField(child=serializers.CharField(max_length=200, allow_blank=True), required=False)
    stayDetails = StayDetailsSerializer(required=False)

    def validate_title(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Title is required')
        return v

    def validate_comment(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Comment is required')
        return v

    def validate_pros(self, v):
        return _clean_list(v)

    def validate_cons(self, v):
        return _clean_list(v)

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        value['rating'] = dict(value['rating'])
        if 'stayDetails' in value:
            value['stayDetails'] = dict(value['stayDetails'])
        return value


class ReviewUpdateSerializer(ReviewCreateSerializer):
    hotelId = None
    bookingId = None
    rating = PartialRatingSerializer(required=False)
    title = serializers.CharField(max_length=100, required=False)
    comment = serializers.CharField(max_length=1000, required=False)

    def to_internal_value(self, data):
        value = serializers.Serializer.to_internal_value(self, data)
        for key in ('rating', 'stayDetails'):
            if key in value:
                value[key] = dict(value[key])
        return value


class ReviewStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c[0] for c in Review.STATUS_CHOICES])
    moderationNotes = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class ReviewResponseSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=1000)

    def validate_message(self, v):
        return clean_text(v)


class ReviewListQuerySerializer(serializers.Serializer):
    sortBy = serializers.ChoiceField(choices=['createdAt', 'rating', 'helpfulVotes'], required=False,
                                     default='createdAt')
    sortOrder = serializers.ChoiceField(choices=['asc', 'desc'], required=False, default='desc')
    rating = serializers.IntegerField(required=False, **RATING)
