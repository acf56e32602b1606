"""
Guest reviews and the hotel rating aggregates derived from them.

Only approved reviews count towards a hotel's rating.  Every change that
can move an approved review in or out of that set ends with
``refresh_hotel_rating``.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.core.cache import cache
from django.db import transaction
from django.db.models import Avg, Count, F
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from lodging.exceptions import Conflict
from lodging.models import Booking, Hotel, Review
from lodging.permissions import is_admin
from lodging.services.audit import log_action
from lodging.services.hotels import invalidate_featured

logger = logging.getLogger(__name__)

STATS_CACHE_TTL = 300
SORT_FIELDS = {'createdAt': 'created_at', 'rating': 'rating_overall', 'helpfulVotes': 'helpful_votes'}
EDITABLE_FIELDS = ('title', 'comment', 'pros', 'cons', 'stayDetails', 'rating')


def _stats_key(hotel_id) -> str:
    return f'reviews:stats:{hotel_id}'


def serialize_review(r: Review) -> dict:
    rating = {'overall': r.rating_overall}
    for name in Review.BREAKDOWN_FIELDS:
        value = getattr(r, f'rating_{name}')
        if value is not None:
            rating[name] = value
    return {
        'id': r.id,
        'user': {'id': r.user_id, 'firstName': r.user.first_name, 'lastName': r.user.last_name[:1]},
        'hotel': r.hotel_id,
        'booking': r.booking_id,
        'rating': rating,
        'title': r.title,
        'comment': r.comment,
        'pros': r.pros,
        'cons': r.cons,
        'stayDetails': r.stay_details,
        'helpfulVotes': r.helpful_votes,
        'verified': r.verified,
        'response': r.response or None,
        'status': r.status,
        'images': r.images,
        'reviewerInitials': r.reviewer_initials,
        'formattedDate': f'{r.created_at:%B} {r.created_at.day}, {r.created_at.year}' if r.created_at else None,
        'createdAt': r.created_at.isoformat() if r.created_at else None,
        'updatedAt': r.updated_at.isoformat() if r.updated_at else None,
    }


def get_review(review_id) -> Review:
    r = Review.objects.select_related('user', 'hotel').filter(id=review_id).first()
    if not r:
        raise NotFound('Review not found')
    return r


def _apply_rating(review: Review, rating: dict) -> None:
    review.rating_overall = rating['overall']
    for name in Review.BREAKDOWN_FIELDS:
        if name in rating:
            setattr(review, f'rating_{name}', rating[name])


def refresh_hotel_rating(hotel: Hotel) -> Hotel:
    """Recompute the hotel's 1-dp averages from its approved reviews."""
    approved = Review.objects.filter(hotel=hotel, status='approved')
    agg = approved.aggregate(
        count=Count('id'),
        overall=Avg('rating_overall'),
        **{name: Avg(f'rating_{name}') for name in Review.BREAKDOWN_FIELDS},
    )
    hotel.review_count = agg['count']
    fields = ['review_count']
    if agg['count']:
        hotel.rating_overall = round(agg['overall'], 1)
        fields.append('rating_overall')
        for name in Review.BREAKDOWN_FIELDS:
            if agg[name] is not None:
                setattr(hotel, f'rating_{name}', round(agg[name], 1))
                fields.append(f'rating_{name}')
    hotel.save(update_fields=[*fields, 'updated_at'])
    cache.delete(_stats_key(hotel.id))
    invalidate_featured()
    return hotel


@transaction.atomic
def create_review(user, data: dict) -> Review:
    hotel = Hotel.objects.filter(id=data['hotelId']).first()
    if not hotel:
        raise NotFound('Hotel not found')

    booking = None
    if data.get('bookingId'):
        booking = Booking.objects.filter(
            id=data['bookingId'], user=user, hotel=hotel, status='checked-out').first()
        if not booking:
            raise ValidationError('Valid completed booking required to leave a review')
        if Review.objects.filter(booking=booking).exists():
            raise ValidationError('Review already exists for this booking')
    elif Review.objects.filter(user=user, hotel=hotel, booking__isnull=True).exists():
        raise ValidationError('You have already reviewed this hotel')

    review = Review(
        user=user, hotel=hotel, booking=booking,
        title=data['title'], comment=data['comment'],
        pros=data.get('pros', []), cons=data.get('cons', []),
        stay_details=data.get('stayDetails', {}),
        verified=booking is not None,
        status='approved',
    )
    _apply_rating(review, data['rating'])
    review.save()
    refresh_hotel_rating(hotel)
    log_action(user=user, action='review_create', object_type='review', object_id=review.id,
               detail={'hotelId': hotel.id, 'rating': review.rating_overall})
    return review


def hotel_reviews(hotel_id, *, sort_by: str = 'createdAt', sort_order: str = 'desc',
                  rating: Optional[int] = None):
    qs = Review.objects.filter(hotel_id=hotel_id, status='approved').select_related('user')
    if rating:
        qs = qs.filter(rating_overall=rating)
    field = SORT_FIELDS.get(sort_by, 'created_at')
    return qs.order_by(field if sort_order == 'asc' else f'-{field}', '-id')


def review_stats(hotel_id) -> dict:
    key = _stats_key(hotel_id)
    cached = cache.get(key)
    if cached is not None:
        return cached
    approved = Review.objects.filter(hotel_id=hotel_id, status='approved')
    agg = approved.aggregate(
        total=Count('id'),
        overall=Avg('rating_overall'),
        **{name: Avg(f'rating_{name}') for name in Review.BREAKDOWN_FIELDS},
    )
    counts = dict(approved.values_list('rating_overall').annotate(n=Count('id')).order_by())
    stats = {
        'totalReviews': agg['total'],
        'averageRating': round(agg['overall'], 1) if agg['overall'] is not None else 0,
        'breakdown': {name: round(agg[name], 1) if agg[name] is not None else None
                      for name in Review.BREAKDOWN_FIELDS},
        'distribution': {str(star): counts.get(star, 0) for star in range(1, 6)},
    }
    cache.set(key, stats, STATS_CACHE_TTL)
    return stats


def my_reviews(user):
    return Review.objects.filter(user=user).select_related('user', 'hotel')


def eligible_bookings(user):
    return Booking.objects.filter(user=user, status='checked-out', review__isnull=True) \
        .select_related('hotel').order_by('-check_out')


@transaction.atomic
def update_review(review: Review, user, data: dict) -> Review:
    if review.user_id != user.id:
        raise PermissionDenied('You can only edit your own reviews')
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        if key == 'rating':
            _apply_rating(review, {'overall': review.rating_overall, **data['rating']})
        elif key == 'stayDetails':
            review.stay_details = data['stayDetails']
        else:
            setattr(review, key, data[key])
    # edited reviews go back through moderation
    review.status = 'pending'
    review.save()
    refresh_hotel_rating(review.hotel)
    return review


@transaction.atomic
def delete_review(review: Review, user) -> None:
    if review.user_id != user.id and not is_admin(user):
        raise PermissionDenied('You can only delete your own reviews')
    hotel = review.hotel
    review_id = review.id
    review.delete()
    refresh_hotel_rating(hotel)
    log_action(user=user, action='review_delete', object_type='review', object_id=review_id,
               detail={'hotelId': hotel.id})


def mark_helpful(review: Review, user) -> int:
    if review.user_id == user.id:
        raise ValidationError('You cannot mark your own review as helpful')
    if review.status != 'approved':
        raise Conflict('Only published reviews can be voted on')
    Review.objects.filter(id=review.id).update(helpful_votes=F('helpful_votes') + 1)
    review.refresh_from_db(fields=['helpful_votes'])
    return review.helpful_votes


@transaction.atomic
def moderate(review: Review, status: str, notes: str, actor) -> Review:
    review.status = status
    review.moderation_notes = notes or ''
    review.save(update_fields=['status', 'moderation_notes', 'updated_at'])
    refresh_hotel_rating(review.hotel)
    log_action(user=actor, action='review_moderate', object_type='review', object_id=review.id,
               detail={'status': status})
    return review


def respond(review: Review, message: str, actor) -> Review:
    review.response = {
        'message': message,
        'respondedBy': {'id': actor.id, 'name': actor.full_name},
        'respondedAt': timezone.now().isoformat(),
    }
    review.save(update_fields=['response', 'updated_at'])
    return review