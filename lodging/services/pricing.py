"""
Pricing, cancellation and loyalty arithmetic.

Pure functions over model instances (or anything with the same
attributes); nothing here touches the database.  Money is ``Decimal``
quantized to cents.
"""
from __future__ import annotations

import secrets
import string
from datetime import date, datetime, time, timezone as dt_timezone
from decimal import Decimal, InvalidOperation, ROUND_FLOOR, ROUND_HALF_UP
from typing import Optional

from django.utils import timezone

CENTS = Decimal('0.01')
MIN_MULTIPLIER = Decimal('0.1')
MAX_MULTIPLIER = Decimal('5.0')

# (hours until check-in upper bound, fraction of total charged)
CANCELLATION_TIERS = [
    (24, Decimal('1.00')),
    (72, Decimal('0.50')),
    (168, Decimal('0.25')),
]
FREE_CANCELLATION_HOURS = 24

MEMBERSHIP_LEVELS = ['Bronze', 'Silver', 'Gold', 'Platinum']
MEMBERSHIP_THRESHOLDS = [(10000, 'Platinum'), (5000, 'Gold'), (1000, 'Silver')]
MEMBERSHIP_DISCOUNTS = {'Bronze': 0, 'Silver': 5, 'Gold': 10, 'Platinum': 15}

_REF_ALPHABET = string.digits + string.ascii_uppercase


def money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_date(value) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def seasonal_multiplier(hotel, on: Optional[date] = None) -> Decimal:
    """Multiplier of the first seasonal rate whose window contains ``on``."""
    on = on or timezone.localdate()
    for rate in hotel.seasonal_rates or []:
        start, end = parse_date(rate.get('startDate')), parse_date(rate.get('endDate'))
        try:
            multiplier = Decimal(str(rate.get('multiplier')))
        except (InvalidOperation, TypeError, ValueError):
            continue
        if not (start and end) or not (MIN_MULTIPLIER <= multiplier <= MAX_MULTIPLIER):
            continue
        if start <= on <= end:
            return multiplier
    return Decimal('1')


def current_price(hotel, room_type=None, on: Optional[date] = None) -> Decimal:
    return money(Decimal(hotel.base_price) * seasonal_multiplier(hotel, on))


def calculate_total_price(hotel, nights: int = 1, room_type=None, on: Optional[date] = None) -> dict:
    """Price a stay: nightly rate × nights, plus tax, plus one service charge."""
    if nights < 1:
        raise ValueError('nights must be at least 1')
    base_price = current_price(hotel, room_type, on)
    if room_type is not None:
        base_price = money(base_price + Decimal(room_type.price_adjustment))
    subtotal = money(base_price * nights)
    tax_rate = Decimal(hotel.tax_rate)
    tax = money(subtotal * tax_rate)
    service_charge = money(hotel.service_charge)
    return {
        'basePrice': base_price,
        'nights': nights,
        'subtotal': subtotal,
        'taxRate': tax_rate,
        'tax': tax,
        'serviceCharge': service_charge,
        'total': money(subtotal + tax + service_charge),
    }


def nights_between(check_in: date, check_out: date) -> int:
    nights = (check_out - check_in).days
    if nights < 1:
        raise ValueError('check-out must be after check-in')
    return nights


def hours_until(check_in: date, now: Optional[datetime] = None) -> float:
    """Hours from ``now`` until 00:00 UTC on the check-in date."""
    now = now or timezone.now()
    arrival = datetime.combine(check_in, time.min, tzinfo=dt_timezone.utc)
    return (arrival - now).total_seconds() / 3600


def cancellation_fee_rate(hours: float) -> Decimal:
    for limit, rate in CANCELLATION_TIERS:
        if hours <= limit:
            return rate
    return Decimal('0')


def cancellation_fee(total, hours: float) -> Decimal:
    return money(Decimal(total) * cancellation_fee_rate(hours))


def can_cancel(booking, now: Optional[datetime] = None) -> bool:
    if booking.status not in ('pending', 'confirmed') or booking.cancelled_at:
        return False
    return hours_until(booking.check_in, now) > FREE_CANCELLATION_HOURS


def membership_level_for(points: int, current: str = 'Bronze') -> str:
    """Tier earned by ``points``; never lower than ``current``."""
    earned = 'Bronze'
    for threshold, level in MEMBERSHIP_THRESHOLDS:
        if points >= threshold:
            earned = level
            break
    rank = MEMBERSHIP_LEVELS.index
    return max(earned, current if current in MEMBERSHIP_LEVELS else 'Bronze', key=rank)


def discount_percentage(level: str) -> int:
    return MEMBERSHIP_DISCOUNTS.get(level, 0)


def loyalty_points_for(total) -> int:
    return int(Decimal(total).to_integral_value(rounding=ROUND_FLOOR))


def _base36(n: int) -> str:
    digits = []
    while n:
        n, r = divmod(n, 36)
        digits.append(_REF_ALPHABET[r])
    return ''.join(reversed(digits)) or '0'


def generate_booking_reference(now: Optional[datetime] = None) -> str:
    now = now or timezone.now()
    millis = int(now.timestamp() * 1000)
    suffix = ''.join(secrets.choice(_REF_ALPHABET) for _ in range(3))
    return f"SL{_base36(millis)}{suffix}"
