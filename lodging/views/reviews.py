from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated

from lodging.permissions import IsAdminRole, ensure_hotel_staff
from lodging.responses import page_params, paginate, paginated, success
from lodging.serializers.reviews import (
    ReviewCreateSerializer,
    ReviewListQuerySerializer,
    ReviewResponseSerializer,
    ReviewStatusSerializer,
    ReviewUpdateSerializer,
)
from lodging.services import reviews as svc
from lodging.services.bookings import serialize_booking
from lodging.services.hotels import get_hotel, serialize_rating


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create(request):
    s = ReviewCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    review = svc.create_review(request.user, s.validated_data)
    return success({'review': svc.serialize_review(review)}, message='Review created successfully', status=201)


@api_view(['GET'])
@permission_classes([AllowAny])
def hotel_reviews(request, hotel_id):
    hotel = get_hotel(hotel_id)
    q = ReviewListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    page, limit = page_params(request.query_params)
    qs = svc.hotel_reviews(hotel.id, sort_by=v['sortBy'], sort_order=v['sortOrder'], rating=v.get('rating'))
    items, pagination = paginate(qs, page, limit)
    return paginated('reviews', [svc.serialize_review(r) for r in items], pagination,
                     rating=serialize_rating(hotel))


@api_view(['GET'])
@permission_classes([AllowAny])
def hotel_stats(request, hotel_id):
    hotel = get_hotel(hotel_id)
    return success({'stats': svc.review_stats(hotel.id)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_reviews(request):
    page, limit = page_params(request.query_params)
    items, pagination = paginate(svc.my_reviews(request.user), page, limit)
    return paginated('reviews', [{**svc.serialize_review(r), 'hotelName': r.hotel.name} for r in items],
                     pagination)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def eligible_bookings(request):
    return success({'bookings': [serialize_booking(b) for b in svc.eligible_bookings(request.user)]})


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def review_detail(request, review_id):
    review = svc.get_review(review_id)
    if request.method == 'DELETE':
        svc.delete_review(review, request.user)
        return success(message='Review deleted successfully')

    s = ReviewUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    review = svc.update_review(review, request.user, s.validated_data)
    return success({'review': svc.serialize_review(review)},
                   message='Review updated successfully and is pending moderation')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def helpful(request, review_id):
    review = svc.get_review(review_id)
    votes = svc.mark_helpful(review, request.user)
    return success({'helpfulVotes': votes}, message='Review marked as helpful')


@api_view(['PATCH'])
@permission_classes([IsAdminRole])
def moderate(request, review_id):
    review = svc.get_review(review_id)
    s = ReviewStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    review = svc.moderate(review, s.validated_data['status'], s.validated_data['moderationNotes'], request.user)
    return success({'review': svc.serialize_review(review)}, message='Review status updated successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def respond(request, review_id):
    review = svc.get_review(review_id)
    ensure_hotel_staff(request.user, review.hotel_id)
    s = ReviewResponseSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    review = svc.respond(review, s.validated_data['message'], request.user)
    return success({'review': svc.serialize_review(review)}, message='Response added successfully')
