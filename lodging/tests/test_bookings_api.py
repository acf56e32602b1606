from decimal import Decimal

import pytest
from django.utils import timezone

from lodging.models import AuditEvent, Booking, Payment

from .helpers import booking_payload, future, make_booking

pytestmark = pytest.mark.django_db


def test_create_booking_prices_the_stay(user_api, user, hotel, room_type):
    r = user_api.post('/api/bookings', booking_payload(hotel, room_type), format='json')
    assert r.status_code == 201, r.data
    booking = r.data['data']['booking']
    assert booking['bookingReference'].startswith('SL')
    assert booking['status'] == 'pending'
    assert booking['nights'] == 2
    assert booking['pricing']['roomPrice'] == 120.0
    assert booking['pricing']['subtotal'] == 240.0
    assert booking['pricing']['taxes'] == {'amount': 24.0, 'rate': 0.1}
    assert booking['pricing']['totalAmount'] == 269.0
    assert booking['payment']['remainingAmount'] == 269.0
    assert AuditEvent.objects.filter(action='booking_create', object_id=booking['id']).exists()


def test_member_discount_is_applied(user_api, user, hotel, room_type):
    user.membership_level = 'Gold'
    user.save()
    r = user_api.post('/api/bookings', booking_payload(hotel, room_type), format='json')
    pricing = r.data['data']['booking']['pricing']
    assert pricing['discounts'][0]['percentage'] == 10
    assert pricing['totalAmount'] == 245.0


def test_booking_more_guests_than_room_allows_is_rejected(user_api, hotel, room_type):
    r = user_api.post('/api/bookings', booking_payload(hotel, room_type, adults=3), format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'Room type Double allows at most 2 guests'


def test_booking_in_the_past_is_rejected(user_api, hotel, room_type):
    r = user_api.post('/api/bookings', booking_payload(hotel, room_type, check_in=future(-2)), format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'Check-in date cannot be in the past'
    assert 'checkIn' in r.data['errors']


def test_overlapping_bookings_cannot_exceed_room_count(user_api, user, hotel, room_type):
    make_booking(user, hotel, room_type, check_in=future(30))
    make_booking(user, hotel, room_type, check_in=future(31))
    r = user_api.post('/api/bookings', booking_payload(hotel, room_type, check_in=future(30)), format='json')
    assert r.status_code == 409
    assert r.data['type'] == 'ConflictError'

    # the night after both existing stays end is free again
    r = user_api.post('/api/bookings', booking_payload(hotel, room_type, check_in=future(33)), format='json')
    assert r.status_code == 201


def test_booking_inactive_hotel_fails(user_api, hotel, room_type):
    hotel.status = 'maintenance'
    hotel.save()
    r = user_api.post('/api/bookings', booking_payload(hotel, room_type), format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'Hotel is not accepting bookings'


def test_guests_only_see_their_own_bookings(user_api, other_api, user, other_user, hotel, room_type):
    mine = make_booking(user, hotel, room_type)
    make_booking(other_user, hotel, room_type)
    r = user_api.get('/api/bookings/my-bookings')
    assert [b['id'] for b in r.data['data']['bookings']] == [mine.id]

    r = other_api.get(f'/api/bookings/{mine.id}')
    assert r.status_code == 403
    assert r.data['message'] == 'Access denied. You can only access your own bookings.'


def test_listing_all_bookings_needs_admin(user_api, admin_api, user, hotel, room_type):
    make_booking(user, hotel, room_type)
    assert user_api.get('/api/bookings').status_code == 403
    r = admin_api.get('/api/bookings', {'status': 'pending'})
    assert r.data['data']['pagination']['total'] == 1


def test_modifying_dates_reprices(user_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type)
    r = user_api.put(f'/api/bookings/{booking.id}',
                     {'checkIn': future(40).isoformat(), 'checkOut': future(43).isoformat()}, format='json')
    assert r.status_code == 200, r.data
    assert r.data['data']['booking']['nights'] == 3
    assert r.data['data']['booking']['pricing']['totalAmount'] == 401.0


@pytest.mark.parametrize('body, field', [
    ({'guests': {'children': 1}}, 'guests'),
    ({'guestDetails': {}}, 'guestDetails'),
    ({'guestDetails': {'primaryGuest': {'firstName': 'Ana', 'lastName': 'Silva'}}}, 'guestDetails'),
])
def test_modifying_nested_objects_needs_them_whole(user_api, user, hotel, room_type, body, field):
    booking = make_booking(user, hotel, room_type, guest_details={'primaryGuest': {
        'firstName': 'Ana', 'lastName': 'Silva', 'email': 'ana@example.com', 'phone': '+351 900 000 000'}})
    r = user_api.put(f'/api/bookings/{booking.id}', body, format='json')
    assert r.status_code == 400
    assert r.data['type'] == 'ValidationError'
    assert field in r.data['errors']
    booking.refresh_from_db()
    assert booking.adults == 1
    assert booking.guest_details['primaryGuest']['email'] == 'ana@example.com'


def test_modifying_guests_with_the_whole_object(user_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type)
    r = user_api.put(f'/api/bookings/{booking.id}', {'guests': {'adults': 2, 'children': 0}}, format='json')
    assert r.status_code == 200, r.data
    booking.refresh_from_db()
    assert booking.adults == 2


def test_free_cancellation_far_ahead(user_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type, check_in=future(30))
    r = user_api.post(f'/api/bookings/{booking.id}/cancel', {'reason': 'guest-request'}, format='json')
    assert r.status_code == 200
    cancellation = r.data['data']['booking']['cancellation']
    assert cancellation['cancellationFee'] == 0
    assert cancellation['reason'] == 'guest-request'


def test_guest_cannot_cancel_within_a_day(user_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type, check_in=timezone.localdate(), status='confirmed')
    r = user_api.post(f'/api/bookings/{booking.id}/cancel', {}, format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'Cancellation is not allowed within 24 hours of check-in'


def test_cancellation_refunds_paid_amount_minus_fee(fake_stripe, user_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type, check_in=future(3), status='confirmed',
                           paid_amount=Decimal('269.00'), payment_status='completed')
    Payment.objects.create(booking=booking, user=user, intent_id='pi_paid', amount=Decimal('269.00'),
                           status='succeeded')

    r = user_api.post(f'/api/bookings/{booking.id}/cancel', {}, format='json')
    assert r.status_code == 200, r.data
    booking.refresh_from_db()
    assert booking.status == 'cancelled'
    assert booking.cancellation_fee == Decimal('134.50')
    assert booking.refund_amount == Decimal('134.50')
    assert booking.payment_status == 'partially-refunded'
    assert fake_stripe.refunds[0]['amount'] == 13450
    assert fake_stripe.refunds[0]['payment_intent'] == 'pi_paid'


def test_admin_may_cancel_late_but_fee_still_applies(admin_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type, check_in=timezone.localdate(), status='confirmed')
    r = admin_api.post(f'/api/bookings/{booking.id}/cancel', {'reason': 'hotel-issue'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['booking']['cancellation']['cancellationFee'] == 269.0


def test_cancelled_booking_cannot_be_cancelled_again(user_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type, status='cancelled')
    r = user_api.post(f'/api/bookings/{booking.id}/cancel', {}, format='json')
    assert r.status_code == 409


def test_stay_lifecycle_awards_loyalty_points(staff_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type, check_in=timezone.localdate())

    r = staff_api.post(f'/api/bookings/{booking.id}/confirm', {'method': 'phone'}, format='json')
    assert r.data['data']['booking']['status'] == 'confirmed'

    r = staff_api.post(f'/api/bookings/{booking.id}/checkin', {'roomNumber': '204'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['booking']['checkInDetails']['roomNumber'] == '204'

    r = staff_api.post(f'/api/bookings/{booking.id}/checkout',
                       {'minibarCharges': '12.50', 'damages': [{'description': 'Lamp', 'amount': '30'}]},
                       format='json')
    assert r.status_code == 200
    assert r.data['data']['booking']['loyaltyPoints']['earned'] == 269
    user.refresh_from_db()
    assert user.loyalty_points == 269


def test_invalid_transition_is_a_conflict(staff_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type, check_in=timezone.localdate())
    r = staff_api.post(f'/api/bookings/{booking.id}/checkout', {}, format='json')
    assert r.status_code == 409
    assert r.data['message'] == 'Cannot change booking status from pending to checked-out'


def test_check_in_before_arrival_date_is_rejected(staff_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type, check_in=future(5), status='confirmed')
    r = staff_api.post(f'/api/bookings/{booking.id}/checkin', {}, format='json')
    assert r.status_code == 400


def test_guest_cannot_run_staff_operations(user_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type)
    r = user_api.post(f'/api/bookings/{booking.id}/confirm', {}, format='json')
    assert r.status_code == 403


def test_no_show_frees_the_room(staff_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type, check_in=future(1), status='confirmed')
    r = staff_api.post(f'/api/bookings/{booking.id}/no-show', format='json')
    assert r.data['data']['booking']['status'] == 'no-show'
    assert Booking.objects.filter(status__in=Booking.ACTIVE_STATUSES).count() == 0


def test_special_requests_and_communications(user_api, staff_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type)
    r = user_api.post(f'/api/bookings/{booking.id}/special-requests',
                      {'type': 'celebration', 'description': 'Anniversary <script>x</script>cake'}, format='json')
    assert r.status_code == 201
    request_id = r.data['data']['specialRequest']['id']
    assert '<script>' not in r.data['data']['specialRequest']['description']

    r = staff_api.put(f'/api/bookings/{booking.id}/special-requests/{request_id}',
                      {'status': 'approved', 'cost': '15.00'}, format='json')
    assert r.data['data']['specialRequest']['status'] == 'approved'
    assert r.data['data']['specialRequest']['cost'] == 15.0

    r = staff_api.post(f'/api/bookings/{booking.id}/communication',
                       {'type': 'email', 'subject': 'Welcome', 'message': 'See you soon'}, format='json')
    assert r.status_code == 201
    r = user_api.get(f'/api/bookings/{booking.id}')
    assert [m['subject'] for m in r.data['data']['booking']['communications']] == ['Welcome']


def test_hotel_bookings_by_date(staff_api, user, hotel, room_type):
    in_house = make_booking(user, hotel, room_type, check_in=future(1), nights=3)
    make_booking(user, hotel, room_type, check_in=future(10))
    r = staff_api.get(f'/api/bookings/hotel/{hotel.id}/date/{future(2).isoformat()}')
    assert [b['id'] for b in r.data['data']['bookings']] == [in_house.id]

    r = staff_api.get(f'/api/bookings/hotel/{hotel.id}/date/not-a-date')
    assert r.status_code == 400


def test_stats_and_report_for_admins(admin_api, user, hotel, room_type):
    make_booking(user, hotel, room_type, paid_amount=Decimal('100.00'))
    make_booking(user, hotel, room_type, status='cancelled')
    r = admin_api.get('/api/bookings/stats')
    stats = r.data['data']['stats']
    assert stats['totalBookings'] == 2
    assert stats['byStatus']['cancelled'] == 1
    assert stats['totalRevenue'] == 100.0

    today = timezone.localdate().isoformat()
    r = admin_api.get('/api/bookings/reports/generate', {'from': today, 'to': today})
    report = r.data['data']['report']
    assert report['hotels'][0]['bookings'] == 2
    assert report['hotels'][0]['cancellations'] == 1
