"""
Booking lifecycle: creation, modification, cancellation and the staff
transitions (confirm, check-in, check-out, no-show).

Allowed status moves::

    pending    -> confirmed | cancelled
    confirmed  -> checked-in | cancelled | no-show
    checked-in -> checked-out
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.db.models import Avg, Count, Q, Sum
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from lodging.exceptions import BookingStateError, Conflict
from lodging.models import Booking, BookingMessage, Hotel, RoomType, SpecialRequest
from lodging.permissions import is_admin
from lodging.services import pricing
from lodging.services.audit import log_action
from lodging.services.hotels import free_rooms, get_room_type
from lodging.services.payments import refund_booking
from lodging.services.users import add_loyalty_points

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    'pending': {'confirmed', 'cancelled'},
    'confirmed': {'checked-in', 'cancelled', 'no-show'},
    'checked-in': {'checked-out'},
    'checked-out': set(),
    'cancelled': set(),
    'no-show': set(),
}
MODIFIABLE_STATUSES = ('pending', 'confirmed')


def _f(value) -> float:
    return float(value) if value is not None else 0.0


def _charges(items) -> list[dict]:
    return [{'description': c['description'], 'amount': float(c['amount'])} for c in items or []]


# ---------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------
def serialize_special_request(sr: SpecialRequest) -> dict:
    return {
        'id': sr.id,
        'type': sr.type,
        'description': sr.description,
        'status': sr.status,
        'cost': _f(sr.cost),
        'createdAt': sr.created_at.isoformat() if sr.created_at else None,
    }


def serialize_message(m: BookingMessage) -> dict:
    return {
        'id': m.id,
        'type': m.type,
        'subject': m.subject,
        'message': m.message,
        'sentBy': m.sent_by_id,
        'sentAt': m.sent_at.isoformat() if m.sent_at else None,
    }


def serialize_booking(b: Booking, *, detail: bool = False) -> dict:
    data = {
        'id': b.id,
        'bookingReference': b.reference,
        'user': b.user_id,
        'hotel': {'id': b.hotel_id, 'name': b.hotel.name, 'city': b.hotel.city,
                  'country': b.hotel.country, 'primaryImage': b.hotel.primary_image},
        'roomType': {'id': b.room_type_id, 'name': b.room_type_name, 'maxOccupancy': b.room_max_occupancy},
        'checkIn': b.check_in.isoformat(),
        'checkOut': b.check_out.isoformat(),
        'nights': b.nights,
        'duration': b.nights,
        'guests': {'adults': b.adults, 'children': b.children, 'infants': b.infants},
        'totalGuests': b.total_guests,
        'pricing': {
            'basePrice': _f(b.base_price),
            'roomPrice': _f(b.room_price),
            'subtotal': _f(b.subtotal),
            'taxes': {'amount': _f(b.tax_amount), 'rate': _f(b.tax_rate)},
            'fees': b.fees,
            'discounts': b.discounts,
            'totalAmount': _f(b.total_amount),
            'currency': b.currency,
        },
        'payment': {
            'method': b.payment_method,
            'status': b.payment_status,
            'transactionId': b.transaction_id,
            'paidAmount': _f(b.paid_amount),
            'remainingAmount': _f(b.remaining_amount),
            'paymentDate': b.payment_date.isoformat() if b.payment_date else None,
        },
        'status': b.status,
        'statusDisplay': b.status_display,
        'daysUntilCheckIn': b.days_until_check_in,
        'canCancel': pricing.can_cancel(b),
        'createdAt': b.created_at.isoformat() if b.created_at else None,
    }
    if b.status == 'cancelled':
        data['cancellation'] = {
            'cancelledAt': b.cancelled_at.isoformat() if b.cancelled_at else None,
            'reason': b.cancellation_reason,
            'cancellationFee': _f(b.cancellation_fee),
            'refundAmount': _f(b.refund_amount),
        }
    if detail:
        data.update({
            'user': {'id': b.user_id, 'fullName': b.user.full_name, 'email': b.user.email,
                     'membershipLevel': b.user.membership_level},
            'guestDetails': b.guest_details,
            'specialRequests': [serialize_special_request(sr) for sr in b.special_requests.all()],
            'communications': [serialize_message(m) for m in b.communications.all()],
            'confirmation': {
                'confirmedAt': b.confirmed_at.isoformat() if b.confirmed_at else None,
                'method': b.confirmation_method,
            },
            'checkInDetails': b.checkin_details,
            'checkOutDetails': b.checkout_details,
            'loyaltyPoints': {'earned': b.points_earned, 'redeemed': b.points_redeemed},
            'metadata': b.metadata,
        })
    return data


# ---------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------
def get_booking(booking_id) -> Booking:
    b = Booking.objects.select_related('user', 'hotel').filter(id=booking_id).first()
    if not b:
        raise NotFound('Booking not found')
    return b


def bookings_for_user(user, status: Optional[str] = None):
    qs = Booking.objects.filter(user=user).select_related('hotel')
    if status:
        qs = qs.filter(status=status)
    return qs


def list_bookings(status: Optional[str] = None, hotel_id=None):
    qs = Booking.objects.select_related('hotel', 'user')
    if status:
        qs = qs.filter(status=status)
    if hotel_id:
        qs = qs.filter(hotel_id=hotel_id)
    return qs


def bookings_in_house(hotel_id, on: date):
    """Bookings occupying a room on the night of ``on``."""
    return Booking.objects.filter(
        hotel_id=hotel_id, check_in__lte=on, check_out__gt=on,
    ).exclude(status__in=['cancelled', 'no-show']).select_related('hotel', 'user').order_by('check_in')


# ---------------------------------------------------------------------
# Pricing helpers
# ---------------------------------------------------------------------
def _apply_pricing(booking: Booking, hotel: Hotel, room_type: RoomType, level: str) -> None:
    price = pricing.calculate_total_price(hotel, booking.nights, room_type)
    booking.base_price = pricing.current_price(hotel)
    booking.room_price = price['basePrice']
    booking.subtotal = price['subtotal']
    booking.tax_rate = price['taxRate']
    booking.tax_amount = price['tax']
    booking.fees = [{'type': 'service', 'description': 'Service charge', 'amount': float(price['serviceCharge'])}] \
        if price['serviceCharge'] else []
    total = price['total']
    booking.discounts = []
    pct = pricing.discount_percentage(level)
    if pct:
        amount = pricing.money(price['subtotal'] * Decimal(pct) / 100)
        booking.discounts.append({
            'type': 'percentage',
            'description': f'{level} member discount',
            'amount': float(amount),
            'percentage': pct,
            'code': f'LOYALTY-{level.upper()}',
        })
        total -= amount
    booking.total_amount = pricing.money(total)
    booking.currency = hotel.currency


def _ensure_capacity(room_type: RoomType, adults: int, children: int) -> None:
    if adults + children > room_type.max_occupancy:
        raise ValidationError(f'Room type {room_type.name} allows at most {room_type.max_occupancy} guests')


def _ensure_free(room_type: RoomType, check_in: date, check_out: date, exclude_id: Optional[int] = None) -> None:
    if free_rooms(room_type, check_in, check_out, exclude_id) <= 0:
        raise Conflict('No rooms of this type are available for the selected dates')


# ---------------------------------------------------------------------
# Create / update
# ---------------------------------------------------------------------
@transaction.atomic
def create_booking(user, data: dict, *, meta: Optional[dict] = None) -> Booking:
    hotel = Hotel.objects.filter(id=data['hotelId']).first()
    if not hotel:
        raise NotFound('Hotel not found')
    if hotel.status != 'active':
        raise ValidationError('Hotel is not accepting bookings')
    # lock the room type row so concurrent bookings see each other
    room_type = RoomType.objects.select_for_update().filter(hotel=hotel, id=data['roomTypeId']).first()
    if not room_type:
        raise NotFound('Room type not found')

    guests = data['guests']
    check_in, check_out = data['checkIn'], data['checkOut']
    _ensure_capacity(room_type, guests['adults'], guests.get('children', 0))
    _ensure_free(room_type, check_in, check_out)

    booking = Booking(
        user=user,
        hotel=hotel,
        room_type=room_type,
        room_type_name=room_type.name,
        room_max_occupancy=room_type.max_occupancy,
        check_in=check_in,
        check_out=check_out,
        nights=pricing.nights_between(check_in, check_out),
        adults=guests['adults'],
        children=guests.get('children', 0),
        infants=guests.get('infants', 0),
        guest_details=data['guestDetails'],
        metadata={'source': data.get('source', 'website'), **(meta or {})},
    )
    _apply_pricing(booking, hotel, room_type, user.membership_level)
    booking.save()
    SpecialRequest.objects.bulk_create([
        SpecialRequest(booking=booking, type=sr['type'], description=sr['description'])
        for sr in data.get('specialRequests') or []
    ])
    log_action(user=user, action='booking_create', object_type='booking', object_id=booking.id,
               detail={'reference': booking.reference, 'hotelId': hotel.id, 'total': float(booking.total_amount)})
    return booking


@transaction.atomic
def update_booking(booking: Booking, data: dict, actor) -> Booking:
    if booking.status not in MODIFIABLE_STATUSES:
        raise BookingStateError(f'Booking cannot be modified while {booking.status}')

    room_type = booking.room_type
    if 'roomTypeId' in data:
        room_type = get_room_type(booking.hotel, data['roomTypeId'])
    if room_type is None:
        raise ValidationError('Booking has no room type; choose one to modify the stay')
    check_in = data.get('checkIn', booking.check_in)
    check_out = data.get('checkOut', booking.check_out)
    if check_out <= check_in:
        raise ValidationError({'checkOut': ['Check-out date must be after check-in date']})
    guests = data.get('guests') or {'adults': booking.adults, 'children': booking.children,
                                    'infants': booking.infants}

    reprice = any(k in data for k in ('roomTypeId', 'checkIn', 'checkOut', 'guests'))
    if reprice:
        RoomType.objects.select_for_update().filter(id=room_type.id).first()
        _ensure_capacity(room_type, guests['adults'], guests.get('children', 0))
        _ensure_free(room_type, check_in, check_out, exclude_id=booking.id)
        booking.room_type = room_type
        booking.room_type_name = room_type.name
        booking.room_max_occupancy = room_type.max_occupancy
        booking.check_in, booking.check_out = check_in, check_out
        booking.nights = pricing.nights_between(check_in, check_out)
        booking.adults = guests['adults']
        booking.children = guests.get('children', 0)
        booking.infants = guests.get('infants', 0)
        _apply_pricing(booking, booking.hotel, room_type, booking.user.membership_level)
    if 'guestDetails' in data:
        booking.guest_details = data['guestDetails']
    booking.save()
    log_action(user=actor, action='booking_update', object_type='booking', object_id=booking.id,
               detail={'fields': sorted(data.keys()), 'total': float(booking.total_amount)})
    return booking


# ---------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------
def _transition(booking: Booking, new_status: str) -> None:
    if new_status not in ALLOWED_TRANSITIONS.get(booking.status, set()):
        raise BookingStateError(f'Cannot change booking status from {booking.status} to {new_status}')
    booking.status = new_status


@transaction.atomic
def cancel_booking(booking: Booking, actor, reason: str = 'guest-request', now=None) -> Booking:
    now = now or timezone.now()
    if booking.status not in MODIFIABLE_STATUSES:
        raise BookingStateError(f'Booking cannot be cancelled while {booking.status}')
    if not is_admin(actor) and not pricing.can_cancel(booking, now):
        raise ValidationError('Cancellation is not allowed within 24 hours of check-in')

    hours = pricing.hours_until(booking.check_in, now)
    fee = pricing.cancellation_fee(booking.total_amount, hours)
    refund = max(Decimal('0'), booking.paid_amount - fee)

    _transition(booking, 'cancelled')
    booking.cancelled_at = now
    booking.cancellation_reason = reason
    booking.cancellation_fee = fee
    booking.save()

    if refund > 0:
        refund_booking(booking, refund, reason=f'Booking cancelled ({reason})', actor=actor)
        booking.refresh_from_db()

    log_action(user=actor, action='booking_cancel', object_type='booking', object_id=booking.id,
               detail={'reason': reason, 'fee': float(fee), 'refund': float(booking.refund_amount)})
    return booking


def confirm_booking(booking: Booking, actor, method: str = 'email') -> Booking:
    _transition(booking, 'confirmed')
    booking.confirmed_at = timezone.now()
    booking.confirmation_method = method
    booking.save(update_fields=['status', 'confirmed_at', 'confirmation_method', 'updated_at'])
    log_action(user=actor, action='booking_confirm', object_type='booking', object_id=booking.id,
               detail={'method': method})
    return booking


def check_in(booking: Booking, actor, data: dict) -> Booking:
    if timezone.localdate() < booking.check_in:
        raise ValidationError('Guests cannot check in before the check-in date')
    _transition(booking, 'checked-in')
    booking.checkin_details = {
        'actualTime': timezone.now().isoformat(),
        'notes': data.get('notes', ''),
        'staffMember': actor.id,
        'roomNumber': data.get('roomNumber', ''),
        'keyCards': data.get('keyCards', 1),
    }
    booking.save(update_fields=['status', 'checkin_details', 'updated_at'])
    log_action(user=actor, action='booking_checkin', object_type='booking', object_id=booking.id,
               detail={'roomNumber': data.get('roomNumber', '')})
    return booking


@transaction.atomic
def check_out(booking: Booking, actor, data: dict) -> Booking:
    _transition(booking, 'checked-out')
    booking.checkout_details = {
        'actualTime': timezone.now().isoformat(),
        'notes': data.get('notes', ''),
        'staffMember': actor.id,
        'damages': _charges(data.get('damages')),
        'minibarCharges': float(data.get('minibarCharges') or 0),
        'additionalCharges': _charges(data.get('additionalCharges')),
    }
    points = pricing.loyalty_points_for(booking.total_amount)
    booking.points_earned = points
    booking.save(update_fields=['status', 'checkout_details', 'points_earned', 'updated_at'])
    if points:
        add_loyalty_points(booking.user, points, reason=f'Stay {booking.reference}', actor=actor)
    log_action(user=actor, action='booking_checkout', object_type='booking', object_id=booking.id,
               detail={'pointsEarned': points})
    return booking


def mark_no_show(booking: Booking, actor) -> Booking:
    _transition(booking, 'no-show')
    booking.save(update_fields=['status', 'updated_at'])
    log_action(user=actor, action='booking_no_show', object_type='booking', object_id=booking.id)
    return booking


# ---------------------------------------------------------------------
# Requests & communication
# ---------------------------------------------------------------------
def add_special_request(booking: Booking, data: dict) -> SpecialRequest:
    if booking.status not in MODIFIABLE_STATUSES:
        raise BookingStateError(f'Special requests cannot be added while {booking.status}')
    return SpecialRequest.objects.create(booking=booking, type=data['type'], description=data['description'])


def update_special_request(booking: Booking, request_id, data: dict, actor) -> SpecialRequest:
    sr = booking.special_requests.filter(id=request_id).first()
    if not sr:
        raise NotFound('Special request not found')
    sr.status = data['status']
    if 'cost' in data:
        sr.cost = data['cost']
    sr.save(update_fields=['status', 'cost'])
    log_action(user=actor, action='special_request_update', object_type='booking', object_id=booking.id,
               detail={'requestId': sr.id, 'status': sr.status})
    return sr


def add_communication(booking: Booking, data: dict, actor) -> BookingMessage:
    return BookingMessage.objects.create(
        booking=booking, type=data['type'], subject=data.get('subject', ''),
        message=data['message'], sent_by=actor,
    )


# ---------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------
def booking_stats() -> dict:
    by_status = dict(Booking.objects.values_list('status').annotate(n=Count('id')).order_by())
    agg = Booking.objects.exclude(status='cancelled').aggregate(
        revenue=Sum('paid_amount'), avg=Avg('total_amount'), count=Count('id'))
    since = timezone.now() - timedelta(days=30)
    return {
        'totalBookings': sum(by_status.values()),
        'byStatus': {s: by_status.get(s, 0) for s, _ in Booking.STATUS_CHOICES},
        'totalRevenue': _f(agg['revenue']),
        'averageBookingValue': round(_f(agg['avg']), 2),
        'last30Days': Booking.objects.filter(created_at__gte=since).count(),
    }


def booking_report(start: Optional[date] = None, end: Optional[date] = None) -> dict:
    qs = Booking.objects.all()
    if start:
        qs = qs.filter(created_at__date__gte=start)
    if end:
        qs = qs.filter(created_at__date__lte=end)
    rows = qs.values('hotel_id', 'hotel__name').annotate(
        bookings=Count('id'),
        revenue=Sum('paid_amount'),
        cancellations=Count('id', filter=Q(status='cancelled')),
    ).order_by('-bookings', 'hotel_id')
    hotels = [{
        'hotelId': r['hotel_id'],
        'hotelName': r['hotel__name'],
        'bookings': r['bookings'],
        'revenue': _f(r['revenue']),
        'cancellations': r['cancellations'],
    } for r in rows]
    return {
        'period': {'from': start.isoformat() if start else None, 'to': end.isoformat() if end else None},
        'totalBookings': sum(h['bookings'] for h in hotels),
        'totalRevenue': round(sum(h['revenue'] for h in hotels), 2),
        'totalCancellations': sum(h['cancellations'] for h in hotels),
        'hotels': hotels,
    }
