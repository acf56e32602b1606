"""
Hotel catalogue: serialization, search, availability and staff operations.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from django.core.cache import cache
from django.db import transaction
from django.db.models import Q
from rest_framework.exceptions import NotFound, ValidationError

from lodging.exceptions import Conflict
from lodging.models import Booking, Hotel, HotelStaff, RoomType, User
from lodging.services import pricing
from lodging.services.audit import log_action

logger = logging.getLogger(__name__)

FEATURED_CACHE_TTL = 300
_FEATURED_GEN_KEY = 'hotels:featured:gen'


# ---------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------
def serialize_room_type(rt: RoomType, free_rooms: Optional[int] = None) -> dict:
    data = {
        'id': rt.id,
        'name': rt.name,
        'description': rt.description,
        'maxOccupancy': rt.max_occupancy,
        'bedConfiguration': rt.bed_configuration,
        'size': rt.size,
        'amenities': rt.amenities,
        'images': rt.images,
        'priceAdjustment': float(rt.price_adjustment),
        'totalRooms': rt.total_rooms,
        'availableRooms': rt.available_rooms,
    }
    if free_rooms is not None:
        data['freeRooms'] = free_rooms
    return data


def serialize_rating(hotel: Hotel) -> dict:
    return {'overall': hotel.rating_overall, **hotel.rating_breakdown, 'reviewCount': hotel.review_count}


def serialize_hotel(hotel: Hotel, *, detail: bool = False) -> dict:
    room_types = list(hotel.room_types.all())
    data = {
        'id': hotel.id,
        'name': hotel.name,
        'shortDescription': hotel.short_description,
        'location': {
            'address': hotel.address,
            'city': hotel.city,
            'state': hotel.state,
            'country': hotel.country,
            'zipCode': hotel.zip_code,
            'coordinates': {'latitude': hotel.latitude, 'longitude': hotel.longitude},
            'timezone': hotel.timezone,
        },
        'images': hotel.images,
        'primaryImage': hotel.primary_image,
        'rating': serialize_rating(hotel),
        'pricing': {
            'basePrice': float(hotel.base_price),
            'currency': hotel.currency,
            'taxRate': float(hotel.tax_rate),
            'serviceCharge': float(hotel.service_charge),
            'seasonalRates': hotel.seasonal_rates,
        },
        'currentPrice': float(hotel.current_price),
        'amenities': hotel.amenities,
        'roomTypes': [serialize_room_type(rt) for rt in room_types],
        'totalAvailableRooms': sum(rt.available_rooms for rt in room_types),
        'status': hotel.status,
        'featured': hotel.featured,
        'createdAt': hotel.created_at.isoformat() if hotel.created_at else None,
        'updatedAt': hotel.updated_at.isoformat() if hotel.updated_at else None,
    }
    if detail:
        data.update({
            'description': hotel.description,
            'contact': hotel.contact,
            'policies': hotel.policies,
            'sustainability': hotel.sustainability,
            'owner': hotel.owner,
            'staff': [
                {'userId': s.user_id, 'name': s.user.full_name, 'role': s.role, 'permissions': s.permissions}
                for s in hotel.staff.select_related('user')
            ],
        })
    return data


# ---------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------
def get_hotel(hotel_id) -> Hotel:
    hotel = Hotel.objects.prefetch_related('room_types').filter(id=hotel_id).first()
    if not hotel:
        raise NotFound('Hotel not found')
    return hotel


def get_room_type(hotel: Hotel, room_type_id) -> RoomType:
    rt = RoomType.objects.filter(hotel=hotel, id=room_type_id).first()
    if not rt:
        raise NotFound('Room type not found')
    return rt


def find_by_location(city: str, country: Optional[str] = None):
    qs = Hotel.objects.filter(status='active', city__iexact=city)
    if country:
        qs = qs.filter(country__iexact=country)
    return qs.prefetch_related('room_types').order_by('-rating_overall')


def _featured_key(limit: int) -> str:
    gen = cache.get_or_set(_FEATURED_GEN_KEY, 1, None)
    return f'hotels:featured:{gen}:{limit}'


def invalidate_featured() -> None:
    try:
        cache.incr(_FEATURED_GEN_KEY)
    except ValueError:
        cache.set(_FEATURED_GEN_KEY, 1, None)


def featured_hotels(limit: int = 10) -> list[dict]:
    ck = _featured_key(limit)
    cached = cache.get(ck)
    if cached is not None:
        return cached
    qs = Hotel.objects.filter(featured=True, status='active').prefetch_related('room_types') \
        .order_by('-rating_overall')[:limit]
    payload = [serialize_hotel(h) for h in qs]
    cache.set(ck, payload, FEATURED_CACHE_TTL)
    return payload


SORT_FIELDS = {
    '-rating': '-rating_overall',
    'rating': 'rating_overall',
    'price': 'base_price',
    '-price': '-base_price',
    'name': 'name',
    '-name': '-name',
    'newest': '-created_at',
}


def list_hotels(*, status: str = 'active', sort: str = '-rating'):
    qs = Hotel.objects.prefetch_related('room_types')
    if status != 'all':
        qs = qs.filter(status=status)
    return qs.order_by(SORT_FIELDS.get(sort, '-rating_overall'), 'id')


def search_hotels(params: dict) -> list[Hotel]:
    """Filter active hotels; amenity and date filters run after the query."""
    qs = list_hotels(sort=params.get('sort') or '-rating')
    if params.get('q'):
        q = params['q']
        qs = qs.filter(Q(name__icontains=q) | Q(description__icontains=q) | Q(short_description__icontains=q))
    if params.get('city'):
        qs = qs.filter(city__icontains=params['city'])
    if params.get('country'):
        qs = qs.filter(country__icontains=params['country'])
    if params.get('minPrice') is not None:
        qs = qs.filter(base_price__gte=params['minPrice'])
    if params.get('maxPrice') is not None:
        qs = qs.filter(base_price__lte=params['maxPrice'])
    if params.get('rating') is not None:
        qs = qs.filter(rating_overall__gte=params['rating'])
    if params.get('guests') and not params.get('checkIn'):
        qs = qs.filter(room_types__max_occupancy__gte=params['guests']).distinct()

    hotels = list(qs)
    wanted = {a.lower() for a in params.get('amenities') or []}
    if wanted:
        hotels = [h for h in hotels
                  if wanted <= {str(a.get('name', '')).lower() for a in h.amenities or [] if a.get('isAvailable', True)}]
    if params.get('checkIn'):
        guests = params.get('guests') or 1
        hotels = [h for h in hotels
                  if check_availability(h, params['checkIn'], params['checkOut'], guests)['available']]
    return hotels


# ---------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------
def overlapping_bookings(room_type: RoomType, check_in: date, check_out: date,
                         exclude_booking_id: Optional[int] = None):
    qs = Booking.objects.filter(
        room_type=room_type,
        status__in=Booking.ACTIVE_STATUSES,
        check_in__lt=check_out,
        check_out__gt=check_in,
    )
    if exclude_booking_id:
        qs = qs.exclude(id=exclude_booking_id)
    return qs


def free_rooms(room_type: RoomType, check_in: date, check_out: date,
               exclude_booking_id: Optional[int] = None) -> int:
    taken = overlapping_bookings(room_type, check_in, check_out, exclude_booking_id).count()
    return max(0, room_type.available_rooms - taken)


def check_availability(hotel: Hotel, check_in: date, check_out: date, guests: int = 1) -> dict:
    if hotel.status != 'active':
        return {'available': False, 'roomTypes': [], 'totalAvailableRooms': 0}
    matches = []
    for rt in hotel.room_types.all():
        if rt.max_occupancy < guests:
            continue
        free = free_rooms(rt, check_in, check_out)
        if free > 0:
            matches.append(serialize_room_type(rt, free_rooms=free))
    return {
        'available': bool(matches),
        'roomTypes': matches,
        'totalAvailableRooms': sum(m['freeRooms'] for m in matches),
    }


def quote(hotel: Hotel, check_in: date, check_out: date, room_type: Optional[RoomType] = None) -> dict:
    nights = pricing.nights_between(check_in, check_out)
    price = pricing.calculate_total_price(hotel, nights, room_type)
    return {k: (float(v) if isinstance(v, Decimal) else v) for k, v in price.items()}


# ---------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------
_DIRECT_FIELDS = {
    'name': 'name',
    'description': 'description',
    'shortDescription': 'short_description',
    'images': 'images',
    'amenities': 'amenities',
    'policies': 'policies',
    'sustainability': 'sustainability',
    'owner': 'owner',
    'status': 'status',
    'featured': 'featured',
}
_LOCATION_FIELDS = {
    'address': 'address', 'city': 'city', 'state': 'state', 'country': 'country',
    'zipCode': 'zip_code', 'timezone': 'timezone',
}
_PRICING_FIELDS = {
    'basePrice': 'base_price', 'currency': 'currency', 'taxRate': 'tax_rate',
    'serviceCharge': 'service_charge', 'seasonalRates': 'seasonal_rates',
}


def _apply_hotel_fields(hotel: Hotel, data: dict) -> None:
    for key, field in _DIRECT_FIELDS.items():
        if key in data:
            setattr(hotel, field, data[key])
    location = data.get('location') or {}
    for key, field in _LOCATION_FIELDS.items():
        if key in location:
            setattr(hotel, field, location[key])
    if 'coordinates' in location:
        hotel.latitude = location['coordinates'].get('latitude')
        hotel.longitude = location['coordinates'].get('longitude')
    if 'contact' in data:
        hotel.contact = {**(hotel.contact or {}), **data['contact']}
    for key, field in _PRICING_FIELDS.items():
        if key in (data.get('pricing') or {}):
            setattr(hotel, field, data['pricing'][key])


def _room_type_fields(data: dict) -> dict:
    fields = {
        'name': data.get('name'),
        'description': data.get('description'),
        'max_occupancy': data.get('maxOccupancy'),
        'bed_configuration': data.get('bedConfiguration'),
        'size': data.get('size'),
        'amenities': data.get('amenities'),
        'images': data.get('images'),
        'price_adjustment': data.get('priceAdjustment'),
        'total_rooms': data.get('totalRooms'),
        'available_rooms': data.get('availableRooms'),
    }
    return {k: v for k, v in fields.items() if v is not None}


def _set_staff(hotel: Hotel, staff: list[dict]) -> None:
    users = {u.id: u for u in User.objects.filter(id__in=[s['userId'] for s in staff])}
    missing = [s['userId'] for s in staff if s['userId'] not in users]
    if missing:
        raise ValidationError({'staff': [f'Unknown user id(s): {missing}']})
    hotel.staff.all().delete()
    HotelStaff.objects.bulk_create([
        HotelStaff(hotel=hotel, user=users[s['userId']], role=s['role'], permissions=s.get('permissions') or [])
        for s in staff
    ])


@transaction.atomic
def create_hotel(data: dict, actor) -> Hotel:
    hotel = Hotel()
    _apply_hotel_fields(hotel, data)
    hotel.save()
    for rt in data.get('roomTypes') or []:
        fields = _room_type_fields(rt)
        fields.setdefault('available_rooms', fields['total_rooms'])
        RoomType.objects.create(hotel=hotel, **fields)
    if data.get('staff'):
        _set_staff(hotel, data['staff'])
    invalidate_featured()
    log_action(user=actor, action='hotel_create', object_type='hotel', object_id=hotel.id,
               detail={'name': hotel.name})
    return hotel


@transaction.atomic
def update_hotel(hotel: Hotel, data: dict, actor) -> Hotel:
    _apply_hotel_fields(hotel, data)
    hotel.save()
    if 'staff' in data:
        _set_staff(hotel, data['staff'])
    invalidate_featured()
    log_action(user=actor, action='hotel_update', object_type='hotel', object_id=hotel.id,
               detail={'fields': sorted(data.keys())})
    return hotel


def delete_hotel(hotel: Hotel, actor) -> None:
    if hotel.bookings.exists():
        raise Conflict('Hotel has bookings and cannot be deleted; set its status to inactive instead')
    hotel_id, name = hotel.id, hotel.name
    hotel.delete()
    invalidate_featured()
    log_action(user=actor, action='hotel_delete', object_type='hotel', object_id=hotel_id, detail={'name': name})


def set_status(hotel: Hotel, status: str, actor) -> Hotel:
    previous = hotel.status
    hotel.status = status
    hotel.save(update_fields=['status', 'updated_at'])
    invalidate_featured()
    log_action(user=actor, action='hotel_status', object_type='hotel', object_id=hotel.id,
               detail={'from': previous, 'to': status})
    return hotel


def add_images(hotel: Hotel, images: list[dict], actor) -> Hotel:
    if any(img.get('isPrimary') for img in images):
        for existing in hotel.images:
            existing['isPrimary'] = False
    hotel.images = [*(hotel.images or []), *images]
    hotel.save(update_fields=['images', 'updated_at'])
    log_action(user=actor, action='hotel_images', object_type='hotel', object_id=hotel.id,
               detail={'added': len(images)})
    return hotel


def add_room_type(hotel: Hotel, data: dict, actor) -> RoomType:
    fields = _room_type_fields(data)
    fields.setdefault('available_rooms', fields['total_rooms'])
    rt = RoomType.objects.create(hotel=hotel, **fields)
    invalidate_featured()
    log_action(user=actor, action='room_type_create', object_type='room_type', object_id=rt.id,
               detail={'hotelId': hotel.id})
    return rt


def update_room_type(rt: RoomType, data: dict, actor) -> RoomType:
    for field, value in _room_type_fields(data).items():
        setattr(rt, field, value)
    rt.save()
    invalidate_featured()
    log_action(user=actor, action='room_type_update', object_type='room_type', object_id=rt.id,
               detail={'hotelId': rt.hotel_id})
    return rt


def delete_room_type(rt: RoomType, actor) -> None:
    if rt.bookings.filter(status__in=Booking.ACTIVE_STATUSES).exists():
        raise Conflict('Room type has active bookings and cannot be deleted')
    rt_id, hotel_id = rt.id, rt.hotel_id
    rt.delete()
    invalidate_featured()
    log_action(user=actor, action='room_type_delete', object_type='room_type', object_id=rt_id,
               detail={'hotelId': hotel_id})


@transaction.atomic
def update_availability(hotel: Hotel, items: list[dict], actor) -> list[RoomType]:
    by_id = {rt.id: rt for rt in hotel.room_types.select_for_update()}
    unknown = [i['roomTypeId'] for i in items if i['roomTypeId'] not in by_id]
    if unknown:
        raise NotFound(f'Room type(s) not found: {unknown}')
    for item in items:
        rt = by_id[item['roomTypeId']]
        rt.available_rooms = item['availableRooms']
        rt.save(update_fields=['available_rooms'])
    invalidate_featured()
    log_action(user=actor, action='availability_update', object_type='hotel', object_id=hotel.id,
               detail={'roomTypes': items})
    return list(by_id.values())
