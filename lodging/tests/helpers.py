"""Builders shared by the API tests."""
from datetime import timedelta
from decimal import Decimal

import stripe
from django.utils import timezone
from rest_framework.test import APIClient

from lodging.models import Booking, User

PASSWORD = 'Lodg1ng-Secret!'


def make_user(email, **extra):
    extra.setdefault('first_name', 'Jane')
    extra.setdefault('last_name', 'Traveller')
    return User.objects.create_user(email=email, password=PASSWORD, **extra)


def client_for(user=None):
    client = APIClient()
    if user is not None:
        client.force_authenticate(user=user)
    return client


def future(days):
    return timezone.localdate() + timedelta(days=days)


def booking_payload(hotel, room_type, check_in=None, nights=2, adults=2, **extra):
    check_in = check_in or future(30)
    payload = {
        'hotelId': hotel.id,
        'roomTypeId': room_type.id,
        'checkIn': check_in.isoformat(),
        'checkOut': (check_in + timedelta(days=nights)).isoformat(),
        'guests': {'adults': adults},
        'guestDetails': {'primaryGuest': {
            'firstName': 'Jane', 'lastName': 'Traveller',
            'email': 'guest@example.com', 'phone': '+1 555 0100',
        }},
    }
    payload.update(extra)
    return payload


def make_booking(user, hotel, room_type, check_in=None, nights=2, status='pending', **extra):
    """Insert a priced booking directly, bypassing the API."""
    check_in = check_in or future(30)
    nightly = hotel.base_price + room_type.price_adjustment
    subtotal = nightly * nights
    tax = (subtotal * hotel.tax_rate).quantize(Decimal('0.01'))
    fields = dict(
        user=user, hotel=hotel, room_type=room_type,
        room_type_name=room_type.name, room_max_occupancy=room_type.max_occupancy,
        check_in=check_in, check_out=check_in + timedelta(days=nights), nights=nights,
        adults=1, base_price=hotel.base_price, room_price=nightly, subtotal=subtotal,
        tax_rate=hotel.tax_rate, tax_amount=tax, total_amount=subtotal + tax + hotel.service_charge,
        status=status,
    )
    fields.update(extra)
    return Booking.objects.create(**fields)


class FakeStripe:
    """Records Stripe calls made through the payment service.

    Intents, refunds and events are real ``stripe`` objects built with
    ``construct_from`` so the service sees what the SDK hands it.
    """

    def __init__(self):
        self.intents = {}
        self.refunds = []
        self.cancelled = []
        self.event = None

    def create_intent(self, **kwargs):
        intent_id = f'pi_test_{len(self.intents) + 1}'
        intent = stripe.PaymentIntent.construct_from({
            'id': intent_id,
            'object': 'payment_intent',
            'client_secret': f'{intent_id}_secret',
            'amount': kwargs['amount'],
            'currency': kwargs['currency'],
            'metadata': kwargs['metadata'],
            'status': 'requires_payment_method',
            'payment_method_types': ['card'],
            'last_payment_error': None,
        }, 'sk_test_dummy')
        self.intents[intent_id] = intent
        return intent

    def retrieve_intent(self, intent_id, **kwargs):
        return self.intents[intent_id]

    def cancel_intent(self, intent_id, **kwargs):
        self.cancelled.append(intent_id)
        intent = self.intents[intent_id]
        intent['status'] = 'canceled'
        return intent

    def succeed(self, intent_id):
        intent = self.intents[intent_id]
        intent['status'] = 'succeeded'
        intent['amount_received'] = intent['amount']
        return intent

    def decline(self, intent_id, message):
        intent = self.intents[intent_id]
        intent['status'] = 'requires_payment_method'
        intent['last_payment_error'] = stripe.StripeObject.construct_from({'message': message}, 'sk_test_dummy')
        return intent

    def create_refund(self, **kwargs):
        self.refunds.append(kwargs)
        return stripe.Refund.construct_from({
            'id': f're_test_{len(self.refunds)}',
            'object': 'refund',
            'amount': kwargs['amount'],
            'payment_intent': kwargs['payment_intent'],
            'status': 'succeeded',
        }, 'sk_test_dummy')

    def emit(self, kind, intent_id):
        """Queue the event the next webhook call will receive."""
        self.event = stripe.Event.construct_from({
            'id': f'evt_{len(self.intents)}',
            'object': 'event',
            'type': kind,
            'data': {'object': self.intents[intent_id]},
        }, 'sk_test_dummy')
        return self.event

    def construct_event(self, payload, signature, secret):
        if signature != 'valid':
            raise ValueError('bad signature')
        return self.event
