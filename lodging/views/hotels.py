"""
Hotel catalogue endpoints.

Browsing, search and availability checks are public; creating and
editing hotels needs an administrator, while room types and room counts
can also be managed by the hotel's own staff.
"""
from decimal import Decimal

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated

from lodging.permissions import IsAdminOrReadOnly, IsAdminRole, ensure_hotel_staff
from lodging.responses import page_params, paginate, paginated, success
from lodging.serializers.hotels import (
    AvailabilityUpdateSerializer,
    CheckAvailabilitySerializer,
    HotelImagesSerializer,
    HotelSearchSerializer,
    HotelStatusSerializer,
    HotelWriteSerializer,
    RoomTypeSerializer,
)
from lodging.services import hotels as svc


def _search_echo(params: dict) -> dict:
    echo = {}
    for key, value in params.items():
        if value in (None, '', []):
            continue
        if hasattr(value, 'isoformat'):
            value = value.isoformat()
        elif isinstance(value, Decimal):
            value = float(value)
        echo[key] = value
    return echo


@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly])
def hotels(request):
    if request.method == 'POST':
        s = HotelWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        hotel = svc.create_hotel(s.validated_data, request.user)
        return success({'hotel': svc.serialize_hotel(svc.get_hotel(hotel.id), detail=True)},
                       message='Hotel created successfully', status=201)

    page, limit = page_params(request.query_params)
    sort = request.query_params.get('sort') or '-rating'
    status = request.query_params.get('status') or 'active'
    items, pagination = paginate(svc.list_hotels(status=status, sort=sort), page, limit)
    return paginated('hotels', [svc.serialize_hotel(h) for h in items], pagination)


@api_view(['GET'])
@permission_classes([AllowAny])
def search(request):
    s = HotelSearchSerializer(data=request.query_params)
    s.is_valid(raise_exception=True)
    params = s.validated_data
    page, limit = page_params(request.query_params)
    items, pagination = paginate(svc.search_hotels(params), page, limit)
    return paginated('hotels', [svc.serialize_hotel(h) for h in items], pagination,
                     searchParams=_search_echo(params))


@api_view(['GET'])
@permission_classes([AllowAny])
def featured(request):
    try:
        limit = max(1, min(int(request.query_params.get('limit', 6)), 50))
    except ValueError:
        limit = 6
    return success({'hotels': svc.featured_hotels(limit)})


@api_view(['GET'])
@permission_classes([AllowAny])
def by_location(request, city, country=None):
    hotels_ = svc.find_by_location(city, country)
    return success({'hotels': [svc.serialize_hotel(h) for h in hotels_],
                    'location': {'city': city, 'country': country}})


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAdminOrReadOnly])
def hotel_detail(request, hotel_id):
    hotel = svc.get_hotel(hotel_id)
    if request.method == 'GET':
        return success({'hotel': svc.serialize_hotel(hotel, detail=True)})
    if request.method == 'DELETE':
        svc.delete_hotel(hotel, request.user)
        return success(message='Hotel deleted successfully')

    s = HotelWriteSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    svc.update_hotel(hotel, s.validated_data, request.user)
    return success({'hotel': svc.serialize_hotel(svc.get_hotel(hotel.id), detail=True)},
                   message='Hotel updated successfully')


@api_view(['GET'])
@permission_classes([AllowAny])
def amenities(request, hotel_id):
    hotel = svc.get_hotel(hotel_id)
    return success({'hotelId': hotel.id, 'amenities': hotel.amenities})


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def room_types(request, hotel_id):
    hotel = svc.get_hotel(hotel_id)
    if request.method == 'GET':
        return success({'hotelId': hotel.id,
                        'roomTypes': [svc.serialize_room_type(rt) for rt in hotel.room_types.all()]})

    ensure_hotel_staff(request.user, hotel.id)
    s = RoomTypeSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    rt = svc.add_room_type(hotel, s.validated_data, request.user)
    return success({'roomType': svc.serialize_room_type(rt)}, message='Room type added successfully', status=201)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def room_type_detail(request, hotel_id, room_type_id):
    hotel = svc.get_hotel(hotel_id)
    ensure_hotel_staff(request.user, hotel.id)
    rt = svc.get_room_type(hotel, room_type_id)
    if request.method == 'DELETE':
        svc.delete_room_type(rt, request.user)
        return success(message='Room type deleted successfully')

    s = RoomTypeSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    rt = svc.update_room_type(rt, s.validated_data, request.user)
    return success({'roomType': svc.serialize_room_type(rt)}, message='Room type updated successfully')


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def availability(request, hotel_id):
    hotel = svc.get_hotel(hotel_id)
    ensure_hotel_staff(request.user, hotel.id)
    s = AvailabilityUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    updated = svc.update_availability(hotel, s.validated_data['roomTypes'], request.user)
    return success({'roomTypes': [svc.serialize_room_type(rt) for rt in updated]},
                   message='Availability updated successfully')


@api_view(['POST'])
@permission_classes([AllowAny])
def check_availability(request, hotel_id):
    hotel = svc.get_hotel(hotel_id)
    s = CheckAvailabilitySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    room_type = svc.get_room_type(hotel, v['roomTypeId']) if v.get('roomTypeId') else None

    result = svc.check_availability(hotel, v['checkIn'], v['checkOut'], v['guests'])
    if room_type is not None:
        result['roomTypes'] = [r for r in result['roomTypes'] if r['id'] == room_type.id]
        result['available'] = bool(result['roomTypes'])
        result['totalAvailableRooms'] = sum(r['freeRooms'] for r in result['roomTypes'])
    return success({
        'hotelId': hotel.id,
        'checkIn': v['checkIn'].isoformat(),
        'checkOut': v['checkOut'].isoformat(),
        'guests': v['guests'],
        **result,
        'pricing': svc.quote(hotel, v['checkIn'], v['checkOut'], room_type),
    })


@api_view(['PATCH'])
@permission_classes([IsAdminRole])
def hotel_status(request, hotel_id):
    hotel = svc.get_hotel(hotel_id)
    s = HotelStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.set_status(hotel, s.validated_data['status'], request.user)
    return success({'hotel': svc.serialize_hotel(hotel)}, message='Hotel status updated successfully')


@api_view(['POST'])
@permission_classes([IsAdminRole])
def images(request, hotel_id):
    hotel = svc.get_hotel(hotel_id)
    s = HotelImagesSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.add_images(hotel, [dict(img) for img in s.validated_data['images']], request.user)
    return success({'images': hotel.images, 'primaryImage': hotel.primary_image},
                   message='Images added successfully', status=201)

