import pytest

from lodging.models import Review

from .helpers import make_booking

pytestmark = pytest.mark.django_db


def review_payload(hotel, **extra):
    payload = {
        'hotelId': hotel.id,
        'rating': {'overall': 4, 'cleanliness': 5, 'service': 3},
        'title': 'Lovely <em>harbour</em> views',
        'comment': 'Staff were helpful and the breakfast was great.',
        'pros': ['Location', ' '],
        'stayDetails': {'travelType': 'couples', 'stayMonth': 'May'},
    }
    payload.update(extra)
    return payload


def test_review_is_published_and_updates_hotel_rating(user_api, hotel):
    r = user_api.post('/api/reviews', review_payload(hotel), format='json')
    assert r.status_code == 201, r.data
    review = r.data['data']['review']
    assert review['status'] == 'approved'
    assert review['verified'] is False
    assert review['title'] == 'Lovely harbour views'
    assert review['pros'] == ['Location']
    assert review['reviewerInitials'] == 'JT'
    assert review['user']['lastName'] == 'T'

    hotel.refresh_from_db()
    assert hotel.review_count == 1
    assert hotel.rating_overall == 4.0
    assert hotel.rating_cleanliness == 5.0


def test_second_unbooked_review_of_same_hotel_is_rejected(user_api, hotel):
    user_api.post('/api/reviews', review_payload(hotel), format='json')
    r = user_api.post('/api/reviews', review_payload(hotel), format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'You have already reviewed this hotel'


def test_review_for_completed_stay_is_verified(user_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type, status='checked-out')
    r = user_api.post('/api/reviews', review_payload(hotel, bookingId=booking.id), format='json')
    assert r.status_code == 201
    assert r.data['data']['review']['verified'] is True

    r = user_api.post('/api/reviews', review_payload(hotel, bookingId=booking.id), format='json')
    assert r.data['message'] == 'Review already exists for this booking'


def test_review_needs_a_completed_booking(user_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type, status='confirmed')
    r = user_api.post('/api/reviews', review_payload(hotel, bookingId=booking.id), format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'Valid completed booking required to leave a review'


def test_rating_out_of_range_is_rejected(user_api, hotel):
    r = user_api.post('/api/reviews', review_payload(hotel, rating={'overall': 6}), format='json')
    assert r.status_code == 400
    assert 'rating' in r.data['errors']


def test_hotel_reviews_are_public_sorted_and_filtered(api, user_api, other_api, hotel):
    user_api.post('/api/reviews', review_payload(hotel), format='json')
    other_api.post('/api/reviews', review_payload(hotel, rating={'overall': 2}), format='json')

    r = api.get(f'/api/hotels/{hotel.id}/reviews', {'sortBy': 'rating', 'sortOrder': 'asc'})
    assert r.status_code == 200
    assert [rv['rating']['overall'] for rv in r.data['data']['reviews']] == [2, 4]
    assert r.data['data']['rating']['reviewCount'] == 2
    assert r.data['data']['rating']['overall'] == 3.0

    r = api.get(f'/api/reviews/hotel/{hotel.id}', {'rating': 4})
    assert [rv['rating']['overall'] for rv in r.data['data']['reviews']] == [4]


def test_review_stats_distribution(api, user_api, other_api, hotel):
    user_api.post('/api/reviews', review_payload(hotel), format='json')
    other_api.post('/api/reviews', review_payload(hotel, rating={'overall': 2}), format='json')
    stats = api.get(f'/api/reviews/hotel/{hotel.id}/stats').data['data']['stats']
    assert stats['totalReviews'] == 2
    assert stats['averageRating'] == 3.0
    assert stats['distribution'] == {'1': 0, '2': 1, '3': 0, '4': 1, '5': 0}


def test_editing_sends_review_back_to_moderation(user_api, hotel):
    review_id = user_api.post('/api/reviews', review_payload(hotel), format='json').data['data']['review']['id']
    r = user_api.put(f'/api/reviews/{review_id}', {'comment': 'Updated after a second look.'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['review']['status'] == 'pending'
    assert r.data['data']['review']['comment'] == 'Updated after a second look.'

    hotel.refresh_from_db()
    assert hotel.review_count == 0
    # last published scores are kept while nothing is approved
    assert hotel.rating_overall == 4.0


def test_only_author_may_edit(user_api, other_api, hotel):
    review_id = user_api.post('/api/reviews', review_payload(hotel), format='json').data['data']['review']['id']
    r = other_api.put(f'/api/reviews/{review_id}', {'title': 'Hijacked'}, format='json')
    assert r.status_code == 403


def test_author_or_admin_may_delete(user_api, other_api, admin_api, hotel):
    review_id = user_api.post('/api/reviews', review_payload(hotel), format='json').data['data']['review']['id']
    assert other_api.delete(f'/api/reviews/{review_id}').status_code == 403
    assert admin_api.delete(f'/api/reviews/{review_id}').status_code == 200
    assert not Review.objects.filter(id=review_id).exists()
    hotel.refresh_from_db()
    assert hotel.review_count == 0


def test_helpful_votes(user_api, other_api, hotel):
    review_id = user_api.post('/api/reviews', review_payload(hotel), format='json').data['data']['review']['id']

    r = user_api.post(f'/api/reviews/{review_id}/helpful')
    assert r.status_code == 400
    assert r.data['message'] == 'You cannot mark your own review as helpful'

    r = other_api.post(f'/api/reviews/{review_id}/helpful')
    assert r.data['data']['helpfulVotes'] == 1
    r = other_api.post(f'/api/reviews/{review_id}/helpful')
    assert r.data['data']['helpfulVotes'] == 2

    Review.objects.filter(id=review_id).update(status='hidden')
    assert other_api.post(f'/api/reviews/{review_id}/helpful').status_code == 409


def test_admin_moderation_changes_published_set(user_api, admin_api, hotel):
    review_id = user_api.post('/api/reviews', review_payload(hotel), format='json').data['data']['review']['id']
    r = admin_api.patch(f'/api/reviews/{review_id}/status', {'status': 'rejected', 'moderationNotes': 'Spam'},
                        format='json')
    assert r.status_code == 200
    hotel.refresh_from_db()
    assert hotel.review_count == 0

    assert user_api.patch(f'/api/reviews/{review_id}/status', {'status': 'approved'},
                          format='json').status_code == 403


def test_hotel_staff_respond_to_reviews(user_api, staff_api, other_api, hotel):
    review_id = user_api.post('/api/reviews', review_payload(hotel), format='json').data['data']['review']['id']
    r = staff_api.post(f'/api/reviews/{review_id}/response', {'message': 'Thank you for staying!'}, format='json')
    assert r.status_code == 200
    response = r.data['data']['review']['response']
    assert response['message'] == 'Thank you for staying!'
    assert response['respondedBy']['name'] == 'Dana Desk'

    assert other_api.post(f'/api/reviews/{review_id}/response', {'message': 'Fake reply'},
                          format='json').status_code == 403


def test_my_reviews_and_eligible_bookings(user_api, user, hotel, room_type):
    stay = make_booking(user, hotel, room_type, status='checked-out')
    make_booking(user, hotel, room_type, status='confirmed')
    r = user_api.get('/api/reviews/eligible-bookings')
    assert [b['id'] for b in r.data['data']['bookings']] == [stay.id]

    user_api.post('/api/reviews', review_payload(hotel, bookingId=stay.id), format='json')
    assert user_api.get('/api/reviews/eligible-bookings').data['data']['bookings'] == []
    mine = user_api.get('/api/reviews/my-reviews').data['data']['reviews']
    assert [rv['hotelName'] for rv in mine] == ['Harbour House']
