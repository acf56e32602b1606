"""
API tests for the hotel catalogue: browsing, search, availability and
the admin/staff write paths.
"""
from decimal import Decimal

import pytest

from lodging.models import Hotel, RoomType

from .helpers import future, make_booking

pytestmark = pytest.mark.django_db


def hotel_payload(**overrides):
    payload = {
        'name': 'Alpine <b>Rest</b>',
        'description': 'Chalet rooms at the foot of the slopes.',
        'location': {'address': '2 Piste Road', 'city': 'Zermatt', 'country': 'Switzerland',
                     'coordinates': {'latitude': 46.02, 'longitude': 7.74}},
        'contact': {'phone': '+41 27 000 00 00', 'email': 'hello@alpine.example'},
        'pricing': {'basePrice': '180.00', 'taxRate': '0.08', 'serviceCharge': '10.00'},
        'amenities': [{'name': 'Sauna', 'category': 'wellness'}],
        'roomTypes': [{'name': 'Twin', 'maxOccupancy': 2, 'totalRooms': 4}],
        'featured': True,
    }
    payload.update(overrides)
    return payload


def test_list_returns_active_hotels_with_pagination(api, hotel, room_type):
    Hotel.objects.create(name='Closed Inn', description='x', address='a', city='Porto', country='Portugal',
                         base_price=Decimal('50'), status='inactive')
    r = api.get('/api/hotels')
    assert r.status_code == 200
    assert r.data['success'] is True
    names = [h['name'] for h in r.data['data']['hotels']]
    assert names == ['Harbour House']
    assert r.data['data']['pagination'] == {'current': 1, 'pages': 1, 'total': 1}
    listed = r.data['data']['hotels'][0]
    assert listed['primaryImage'] == 'https://img.example/harbour.jpg'
    assert listed['totalAvailableRooms'] == 2


def test_admin_creates_hotel_with_room_types(admin_api):
    r = admin_api.post('/api/hotels', hotel_payload(), format='json')
    assert r.status_code == 201, r.data
    hotel = r.data['data']['hotel']
    assert hotel['name'] == 'Alpine Rest'
    assert hotel['location']['city'] == 'Zermatt'
    assert hotel['pricing']['basePrice'] == 180.0
    assert hotel['roomTypes'][0]['availableRooms'] == 4


def test_guest_cannot_create_hotel(user_api):
    r = user_api.post('/api/hotels', hotel_payload(), format='json')
    assert r.status_code == 403
    assert r.data == {'success': False, 'message': 'Access denied. Admin privileges required.',
                      'type': 'AuthorizationError'}


def test_create_hotel_validation_errors_are_enveloped(admin_api):
    r = admin_api.post('/api/hotels', hotel_payload(contact={'phone': 'call me', 'email': 'nope'}), format='json')
    assert r.status_code == 400
    assert r.data['success'] is False
    assert r.data['type'] == 'ValidationError'
    assert 'contact' in r.data['errors']


def test_detail_and_missing_hotel(api, hotel):
    r = api.get(f'/api/hotels/{hotel.id}')
    assert r.status_code == 200
    assert r.data['data']['hotel']['contact']['email'] == 'stay@harbour.example'

    r = api.get('/api/hotels/99999')
    assert r.status_code == 404
    assert r.data == {'success': False, 'message': 'Hotel not found', 'type': 'NotFoundError'}


def test_search_filters_by_city_price_and_amenity(api, hotel, room_type):
    Hotel.objects.create(name='City Budget', description='Simple', address='b', city='Lisbon',
                         country='Portugal', base_price=Decimal('40'),
                         amenities=[{'name': 'Free WiFi', 'isAvailable': True}])
    r = api.get('/api/hotels/search', {'city': 'lisbon', 'minPrice': '60'})
    assert [h['name'] for h in r.data['data']['hotels']] == ['Harbour House']
    assert r.data['data']['searchParams']['city'] == 'lisbon'

    r = api.get('/api/hotels/search', {'amenities': 'spa, free wifi'})
    assert [h['name'] for h in r.data['data']['hotels']] == ['Harbour House']


def test_search_rejects_inverted_price_range(api):
    r = api.get('/api/hotels/search', {'minPrice': '300', 'maxPrice': '100'})
    assert r.status_code == 400
    assert r.data['message'] == 'minPrice cannot exceed maxPrice'


def test_search_by_dates_excludes_fully_booked_hotels(api, user, hotel, room_type):
    check_in = future(20)
    make_booking(user, hotel, room_type, check_in=check_in)
    make_booking(user, hotel, room_type, check_in=check_in)
    r = api.get('/api/hotels/search', {'checkIn': check_in.isoformat(),
                                       'checkOut': future(22).isoformat()})
    assert r.data['data']['hotels'] == []


def test_featured_is_cached_until_hotels_change(api, admin_api, hotel):
    r = api.get('/api/hotels/featured')
    assert [h['id'] for h in r.data['data']['hotels']] == [hotel.id]

    admin_api.patch(f'/api/hotels/{hotel.id}/status', {'status': 'maintenance'}, format='json')
    r = api.get('/api/hotels/featured')
    assert r.data['data']['hotels'] == []


def test_by_location_matches_city_and_country(api, hotel):
    r = api.get('/api/hotels/location/LISBON/portugal')
    assert [h['id'] for h in r.data['data']['hotels']] == [hotel.id]
    r = api.get('/api/hotels/location/Lisbon/Spain')
    assert r.data['data']['hotels'] == []


def test_check_availability_counts_overlapping_bookings(api, user, hotel, room_type, suite):
    check_in = future(10)
    make_booking(user, hotel, room_type, check_in=check_in)
    r = api.post(f'/api/hotels/{hotel.id}/check-availability',
                 {'checkIn': check_in.isoformat(), 'checkOut': future(12).isoformat(), 'guests': 2},
                 format='json')
    assert r.status_code == 200
    data = r.data['data']
    free = {rt['name']: rt['freeRooms'] for rt in data['roomTypes']}
    assert free == {'Double': 1, 'Family Suite': 1}
    assert data['available'] is True
    assert data['pricing']['nights'] == 2

    r = api.post(f'/api/hotels/{hotel.id}/check-availability',
                 {'checkIn': check_in.isoformat(), 'checkOut': future(12).isoformat(), 'guests': 4},
                 format='json')
    assert [rt['name'] for rt in r.data['data']['roomTypes']] == ['Family Suite']


def test_check_availability_rejects_reversed_dates(api, hotel):
    r = api.post(f'/api/hotels/{hotel.id}/check-availability',
                 {'checkIn': future(5).isoformat(), 'checkOut': future(5).isoformat()}, format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'Check-out date must be after check-in date'


def test_staff_manage_room_types_and_availability(staff_api, hotel, room_type):
    r = staff_api.post(f'/api/hotels/{hotel.id}/room-types',
                       {'name': 'Loft', 'maxOccupancy': 3, 'totalRooms': 2, 'priceAdjustment': '35.00'},
                       format='json')
    assert r.status_code == 201
    loft_id = r.data['data']['roomType']['id']

    r = staff_api.put(f'/api/hotels/{hotel.id}/availability',
                      {'roomTypes': [{'roomTypeId': room_type.id, 'availableRooms': 1}]}, format='json')
    assert r.status_code == 200
    room_type.refresh_from_db()
    assert room_type.available_rooms == 1

    r = staff_api.delete(f'/api/hotels/{hotel.id}/room-types/{loft_id}')
    assert r.status_code == 200
    assert not RoomType.objects.filter(id=loft_id).exists()


def test_other_guests_cannot_manage_room_types(user_api, hotel):
    r = user_api.post(f'/api/hotels/{hotel.id}/room-types',
                      {'name': 'Loft', 'maxOccupancy': 3, 'totalRooms': 2}, format='json')
    assert r.status_code == 403
    assert r.data['message'] == 'Access denied. Hotel staff privileges required.'


def test_availability_never_exceeds_total_rooms(admin_api, hotel, room_type):
    admin_api.put(f'/api/hotels/{hotel.id}/availability',
                  {'roomTypes': [{'roomTypeId': room_type.id, 'availableRooms': 50}]}, format='json')
    room_type.refresh_from_db()
    assert room_type.available_rooms == room_type.total_rooms


def test_hotel_with_bookings_cannot_be_deleted(admin_api, user, hotel, room_type):
    make_booking(user, hotel, room_type)
    r = admin_api.delete(f'/api/hotels/{hotel.id}')
    assert r.status_code == 409
    assert r.data['type'] == 'ConflictError'


def test_adding_primary_image_demotes_previous(admin_api, hotel):
    r = admin_api.post(f'/api/hotels/{hotel.id}/images',
                       {'images': [{'url': 'https://img.example/new.jpg', 'isPrimary': True}]}, format='json')
    assert r.status_code == 201
    assert r.data['data']['primaryImage'] == 'https://img.example/new.jpg'
    hotel.refresh_from_db()
    assert sum(1 for img in hotel.images if img['isPrimary']) == 1


def test_featured_cache_follows_room_changes(api, staff_api, hotel, room_type):
    r = api.get('/api/hotels/featured')
    assert r.data['data']['hotels'][0]['totalAvailableRooms'] == 2

    staff_api.put(f'/api/hotels/{hotel.id}/availability',
                  {'roomTypes': [{'roomTypeId': room_type.id, 'availableRooms': 0}]}, format='json')
    r = api.get('/api/hotels/featured')
    assert r.data['data']['hotels'][0]['totalAvailableRooms'] == 0

    staff_api.post(f'/api/hotels/{hotel.id}/room-types',
                   {'name': 'Loft', 'maxOccupancy': 3, 'totalRooms': 3}, format='json')
    r = api.get('/api/hotels/featured')
    assert r.data['data']['hotels'][0]['totalAvailableRooms'] == 3

    staff_api.put(f'/api/hotels/{hotel.id}/room-types/{room_type.id}', {'availableRooms': 1}, format='json')
    r = api.get('/api/hotels/featured')
    assert r.data['data']['hotels'][0]['totalAvailableRooms'] == 4

    staff_api.delete(f'/api/hotels/{hotel.id}/room-types/{room_type.id}')
    r = api.get('/api/hotels/featured')
    assert r.data['data']['hotels'][0]['totalAvailableRooms'] == 3


@pytest.mark.parametrize('body, field', [
    ({'pricing': {'basePrice': '90.00', 'seasonalRates': [{'name': 'Summer', 'multiplier': '1.5'}]}}, 'pricing'),
    ({'location': {'address': '1 Quay', 'city': 'Lisbon', 'country': 'Portugal',
                   'coordinates': {'latitude': 38.7}}}, 'location'),
    ({'location': {'city': 'Porto'}}, 'location'),
])
def test_hotel_update_validates_nested_objects_whole(admin_api, hotel, body, field):
    r = admin_api.put(f'/api/hotels/{hotel.id}', body, format='json')
    assert r.status_code == 400
    assert field in r.data['errors']
    hotel.refresh_from_db()
    assert hotel.city == 'Lisbon'
    assert hotel.base_price == Decimal('100.00')
    assert hotel.seasonal_rates == []


def test_hotel_update_replaces_whole_nested_objects(admin_api, hotel):
    r = admin_api.put(f'/api/hotels/{hotel.id}', {
        'name': 'Harbour House',
        'location': {'address': '1 Quay', 'city': 'Lisbon', 'country': 'Portugal',
                     'coordinates': {'latitude': 38.7, 'longitude': -9.14}},
    }, format='json')
    assert r.status_code == 200, r.data
    hotel.refresh_from_db()
    assert (hotel.latitude, hotel.longitude) == (38.7, -9.14)
