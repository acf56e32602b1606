"""
Booking endpoints.

Guests create, modify and cancel their own bookings; hotel staff (or an
administrator) drive the stay through confirm, check-in and check-out.
"""
from datetime import date

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated

from lodging.permissions import IsAdminRole, ensure_hotel_staff, ensure_owner_or_admin, is_admin
from lodging.responses import page_params, paginate, paginated, success
from lodging.serializers.bookings import (
    BookingCreateSerializer,
    BookingListQuerySerializer,
    BookingUpdateSerializer,
    CancelSerializer,
    CheckInSerializer,
    CheckOutSerializer,
    CommunicationSerializer,
    ConfirmSerializer,
    ReportQuerySerializer,
    SpecialRequestSerializer,
    SpecialRequestUpdateSerializer,
)
from lodging.services import bookings as svc
from lodging.services.hotels import get_hotel

OWNER_ONLY = 'Access denied. You can only access your own bookings.'


def _request_meta(request) -> dict:
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    meta = {
        'ipAddress': forwarded.split(',')[0].strip() if forwarded else request.META.get('REMOTE_ADDR'),
        'userAgent': request.META.get('HTTP_USER_AGENT', ''),
    }
    if request.META.get('HTTP_REFERER'):
        meta['referrer'] = request.META['HTTP_REFERER']
    utm = {k: v for k, v in request.query_params.items() if k.startswith('utm_')}
    if utm:
        meta['utm'] = utm
    return meta


def _list_query(request) -> dict:
    q = BookingListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return q.validated_data


def _staff_booking(request, booking_id):
    booking = svc.get_booking(booking_id)
    ensure_hotel_staff(request.user, booking.hotel_id)
    return booking


def _owned_booking(request, booking_id):
    booking = svc.get_booking(booking_id)
    ensure_owner_or_admin(request.user, booking, OWNER_ONLY)
    return booking


def _detail(booking, message=None, status=200):
    return success({'booking': svc.serialize_booking(svc.get_booking(booking.id), detail=True)},
                   message=message, status=status)


# ---------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def bookings(request):
    if request.method == 'POST':
        s = BookingCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        booking = svc.create_booking(request.user, s.validated_data, meta=_request_meta(request))
        return _detail(booking, 'Booking created successfully', 201)

    if not is_admin(request.user):
        raise PermissionDenied(IsAdminRole.message)
    filters = _list_query(request)
    page, limit = page_params(request.query_params)
    items, pagination = paginate(svc.list_bookings(filters.get('status'), filters.get('hotelId')), page, limit)
    return paginated('bookings', [svc.serialize_booking(b) for b in items], pagination)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_bookings(request):
    filters = _list_query(request)
    page, limit = page_params(request.query_params)
    items, pagination = paginate(svc.bookings_for_user(request.user, filters.get('status')), page, limit)
    return paginated('bookings', [svc.serialize_booking(b) for b in items], pagination)


@api_view(['GET'])
@permission_classes([IsAdminRole])
def stats(request):
    return success({'stats': svc.booking_stats()})


@api_view(['GET'])
@permission_classes([IsAdminRole])
def report(request):
    q = ReportQuerySerializer(data={
        k: v for k, v in (('start', request.query_params.get('from')), ('end', request.query_params.get('to'))) if v
    })
    q.is_valid(raise_exception=True)
    return success({'report': svc.booking_report(q.validated_data.get('start'), q.validated_data.get('end'))})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def hotel_bookings(request, hotel_id):
    hotel = get_hotel(hotel_id)
    ensure_hotel_staff(request.user, hotel.id)
    filters = _list_query(request)
    page, limit = page_params(request.query_params)
    items, pagination = paginate(svc.list_bookings(filters.get('status'), hotel.id), page, limit)
    return paginated('bookings', [svc.serialize_booking(b) for b in items], pagination,
                     hotel={'id': hotel.id, 'name': hotel.name})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def hotel_bookings_on(request, hotel_id, day):
    hotel = get_hotel(hotel_id)
    ensure_hotel_staff(request.user, hotel.id)
    try:
        on = date.fromisoformat(day)
    except ValueError:
        raise ValidationError('Date must be in YYYY-MM-DD format')
    items = svc.bookings_in_house(hotel.id, on)
    return success({'date': on.isoformat(), 'hotel': {'id': hotel.id, 'name': hotel.name},
                    'bookings': [svc.serialize_booking(b) for b in items]})


# ---------------------------------------------------------------------
# Single booking (guest)
# ---------------------------------------------------------------------
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def booking_detail(request, booking_id):
    booking = _owned_booking(request, booking_id)
    if request.method == 'GET':
        return _detail(booking)
    s = BookingUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    booking = svc.update_booking(booking, s.validated_data, request.user)
    return _detail(booking, 'Booking updated successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cancel(request, booking_id):
    booking = _owned_booking(request, booking_id)
    s = CancelSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    booking = svc.cancel_booking(booking, request.user, s.validated_data['reason'])
    return _detail(booking, 'Booking cancelled successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def special_requests(request, booking_id):
    booking = _owned_booking(request, booking_id)
    s = SpecialRequestSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    sr = svc.add_special_request(booking, s.validated_data)
    return success({'specialRequest': svc.serialize_special_request(sr)},
                   message='Special request added successfully', status=201)


# ---------------------------------------------------------------------
# Staff operations
# ---------------------------------------------------------------------
@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def special_request_detail(request, booking_id, request_id):
    booking = _staff_booking(request, booking_id)
    s = SpecialRequestUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    sr = svc.update_special_request(booking, request_id, s.validated_data, request.user)
    return success({'specialRequest': svc.serialize_special_request(sr)},
                   message='Special request updated successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def confirm(request, booking_id):
    booking = _staff_booking(request, booking_id)
    s = ConfirmSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    booking = svc.confirm_booking(booking, request.user, s.validated_data['method'])
    return _detail(booking, 'Booking confirmed successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def check_in(request, booking_id):
    booking = _staff_booking(request, booking_id)
    s = CheckInSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    booking = svc.check_in(booking, request.user, s.validated_data)
    return _detail(booking, 'Guest checked in successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def check_out(request, booking_id):
    booking = _staff_booking(request, booking_id)
    s = CheckOutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    booking = svc.check_out(booking, request.user, s.validated_data)
    return _detail(booking, 'Guest checked out successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def no_show(request, booking_id):
    booking = _staff_booking(request, booking_id)
    booking = svc.mark_no_show(booking, request.user)
    return _detail(booking, 'Booking marked as no-show')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def communication(request, booking_id):
    booking = _staff_booking(request, booking_id)
    s = CommunicationSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    msg = svc.add_communication(booking, s.validated_data, request.user)
    return success({'communication': svc.serialize_message(msg)}, message='Communication added successfully',
                   status=201)
