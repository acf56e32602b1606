"""
Payment flow tests.  Stripe is replaced by ``FakeStripe`` so intents,
refunds and webhook events never leave the process.
"""
import hashlib
import hmac
import json
import time
from decimal import Decimal

import pytest

from lodging.models import Payment

from .helpers import make_booking

pytestmark = pytest.mark.django_db


@pytest.fixture
def booking(user, hotel, room_type):
    return make_booking(user, hotel, room_type)


def create_intent(client, booking, **extra):
    return client.post('/api/payments/create-intent', {'bookingId': booking.id, **extra}, format='json')


def post_event(client, signature='valid'):
    return client.post('/api/payments/stripe/webhook', data=json.dumps({'id': 'evt_1'}),
                       content_type='application/json', HTTP_STRIPE_SIGNATURE=signature)


def test_create_intent_defaults_to_remaining_balance(fake_stripe, user_api, booking):
    r = create_intent(user_api, booking)
    assert r.status_code == 200, r.data
    data = r.data['data']
    assert data['paymentIntentId'] == 'pi_test_1'
    assert data['clientSecret'] == 'pi_test_1_secret'
    assert data['amount'] == 269.0
    assert data['currency'] == 'usd'

    intent = fake_stripe.intents['pi_test_1']
    assert intent['amount'] == 26900
    assert intent['metadata']['bookingReference'] == booking.reference
    booking.refresh_from_db()
    assert booking.payment_status == 'processing'
    assert Payment.objects.get(intent_id='pi_test_1').status == 'processing'


def test_create_intent_rejects_amount_above_balance(fake_stripe, user_api, booking):
    r = create_intent(user_api, booking, amount='500.00')
    assert r.status_code == 400
    assert fake_stripe.intents == {}


def test_cannot_pay_for_someone_elses_booking(fake_stripe, other_api, booking):
    r = create_intent(other_api, booking)
    assert r.status_code == 403
    assert r.data['message'] == 'Not authorized to pay for this booking'


def test_cannot_pay_for_cancelled_booking(fake_stripe, user_api, user, hotel, room_type):
    booking = make_booking(user, hotel, room_type, status='cancelled')
    r = create_intent(user_api, booking)
    assert r.status_code == 400


def test_confirm_marks_booking_paid_and_confirmed(fake_stripe, user_api, booking):
    intent_id = create_intent(user_api, booking).data['data']['paymentIntentId']
    fake_stripe.succeed(intent_id)

    r = user_api.post('/api/payments/confirm', {'paymentIntentId': intent_id, 'bookingId': booking.id},
                      format='json')
    assert r.status_code == 200, r.data
    assert r.data['data']['payment']['status'] == 'succeeded'
    assert r.data['data']['booking']['payment']['status'] == 'completed'
    assert r.data['data']['booking']['status'] == 'confirmed'
    booking.refresh_from_db()
    assert booking.paid_amount == Decimal('269.00')
    assert booking.remaining_amount == Decimal('0.00')


def test_confirm_before_success_is_rejected(fake_stripe, user_api, booking):
    intent_id = create_intent(user_api, booking).data['data']['paymentIntentId']
    r = user_api.post('/api/payments/confirm', {'paymentIntentId': intent_id, 'bookingId': booking.id},
                      format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'Payment not completed'


def test_partial_payment_leaves_balance_pending(fake_stripe, user_api, booking):
    intent_id = create_intent(user_api, booking, amount='100.00').data['data']['paymentIntentId']
    fake_stripe.succeed(intent_id)
    user_api.post('/api/payments/confirm', {'paymentIntentId': intent_id, 'bookingId': booking.id}, format='json')
    booking.refresh_from_db()
    assert booking.paid_amount == Decimal('100.00')
    assert booking.remaining_amount == Decimal('169.00')
    assert booking.payment_status == 'pending'
    assert booking.status == 'confirmed'


def test_webhook_and_confirm_record_a_payment_once(fake_stripe, api, user_api, booking):
    intent_id = create_intent(user_api, booking).data['data']['paymentIntentId']
    fake_stripe.succeed(intent_id)
    fake_stripe.emit('payment_intent.succeeded', intent_id)

    r = post_event(api)
    assert r.status_code == 200
    assert r.data == {'received': True}
    user_api.post('/api/payments/confirm', {'paymentIntentId': intent_id, 'bookingId': booking.id}, format='json')
    post_event(api)

    booking.refresh_from_db()
    assert booking.paid_amount == Decimal('269.00')


def test_webhook_with_bad_signature_is_rejected(fake_stripe, api):
    r = post_event(api, signature='forged')
    assert r.status_code == 400
    assert r.data['success'] is False


def test_failed_intent_marks_payment_failed(fake_stripe, api, user_api, booking):
    intent_id = create_intent(user_api, booking).data['data']['paymentIntentId']
    fake_stripe.decline(intent_id, 'Your card was declined.')
    fake_stripe.emit('payment_intent.payment_failed', intent_id)

    post_event(api)
    payment = Payment.objects.get(intent_id=intent_id)
    assert payment.status == 'failed'
    assert payment.failure_message == 'Your card was declined.'
    booking.refresh_from_db()
    assert booking.payment_status == 'failed'


def test_signed_webhook_is_verified_by_stripe(settings, api, user, booking):
    Payment.objects.create(booking=booking, user=user, intent_id='pi_signed', amount=Decimal('269.00'),
                           status='processing')
    payload = json.dumps({
        'id': 'evt_signed',
        'object': 'event',
        'type': 'payment_intent.succeeded',
        'data': {'object': {
            'id': 'pi_signed',
            'object': 'payment_intent',
            'amount': 26900,
            'amount_received': 26900,
            'currency': 'usd',
            'status': 'succeeded',
            'payment_method_types': ['card'],
            'metadata': {'bookingId': str(booking.id)},
        }},
    })
    timestamp = int(time.time())
    digest = hmac.new(settings.STRIPE_WEBHOOK_SECRET.encode(), f'{timestamp}.{payload}'.encode(),
                      hashlib.sha256).hexdigest()

    r = api.post('/api/payments/stripe/webhook', data=payload, content_type='application/json',
                 HTTP_STRIPE_SIGNATURE=f't={timestamp},v1={digest}')
    assert r.status_code == 200, r.data
    booking.refresh_from_db()
    assert booking.paid_amount == Decimal('269.00')
    assert booking.status == 'confirmed'

    r = api.post('/api/payments/stripe/webhook', data=payload, content_type='application/json',
                 HTTP_STRIPE_SIGNATURE=f't={timestamp},v1={"0" * 64}')
    assert r.status_code == 400


def test_new_intent_cancels_the_open_one(fake_stripe, user_api, booking):
    first = create_intent(user_api, booking).data['data']['paymentIntentId']
    second = create_intent(user_api, booking).data['data']['paymentIntentId']
    assert fake_stripe.cancelled == [first]
    assert Payment.objects.get(intent_id=first).status == 'canceled'
    assert Payment.objects.get(intent_id=second).status == 'processing'


def test_booking_is_never_paid_past_its_total(fake_stripe, api, user_api, booking):
    first = create_intent(user_api, booking).data['data']['paymentIntentId']
    second = create_intent(user_api, booking).data['data']['paymentIntentId']

    # the superseded intent still went through before the cancel landed
    fake_stripe.succeed(first)
    fake_stripe.emit('payment_intent.succeeded', first)
    post_event(api)
    fake_stripe.succeed(second)
    user_api.post('/api/payments/confirm', {'paymentIntentId': second, 'bookingId': booking.id}, format='json')

    booking.refresh_from_db()
    assert booking.paid_amount == Decimal('269.00')
    assert booking.payment_status == 'completed'
    assert fake_stripe.refunds == [{
        'payment_intent': second, 'amount': 26900, 'reason': 'requested_by_customer',
        'metadata': {'bookingId': str(booking.id), 'reason': 'Payment exceeded the amount due'},
    }]
    assert Payment.objects.get(intent_id=second).status == 'refunded'


def test_payment_on_cancelled_booking_is_refunded(fake_stripe, api, user_api, booking):
    intent_id = create_intent(user_api, booking).data['data']['paymentIntentId']
    booking.status = 'cancelled'
    booking.save()
    fake_stripe.succeed(intent_id)
    fake_stripe.emit('payment_intent.succeeded', intent_id)

    assert post_event(api).status_code == 200
    booking.refresh_from_db()
    assert booking.status == 'cancelled'
    assert booking.paid_amount == Decimal('0.00')
    assert booking.refund_amount == Decimal('269.00')
    assert booking.payment_status == 'refunded'


def _paid(fake_stripe, user_api, booking):
    intent_id = create_intent(user_api, booking).data['data']['paymentIntentId']
    fake_stripe.succeed(intent_id)
    user_api.post('/api/payments/confirm', {'paymentIntentId': intent_id, 'bookingId': booking.id}, format='json')
    return Payment.objects.get(intent_id=intent_id)


def test_partial_then_full_refund(fake_stripe, user_api, booking):
    payment = _paid(fake_stripe, user_api, booking)

    r = user_api.post(f'/api/payments/{payment.id}/refund', {'amount': '69.00', 'reason': 'Late check-in'},
                      format='json')
    assert r.status_code == 200, r.data
    assert r.data['data']['payment']['status'] == 'partially-refunded'
    assert fake_stripe.refunds[-1]['amount'] == 6900

    r = user_api.post(f'/api/payments/{payment.id}/refund', {'reason': 'Trip cancelled'}, format='json')
    assert r.data['data']['refund']['amount'] == 200.0
    assert r.data['data']['payment']['status'] == 'refunded'
    booking.refresh_from_db()
    assert booking.payment_status == 'refunded'
    assert booking.refund_amount == Decimal('269.00')

    r = user_api.post(f'/api/payments/{payment.id}/refund', {'reason': 'Again'}, format='json')
    assert r.status_code == 400

    r = user_api.get(f'/api/payments/{payment.id}/refunds')
    assert len(r.data['data']['refunds']) == 2


def test_payment_detail_is_private(fake_stripe, user_api, other_api, booking):
    payment = _paid(fake_stripe, user_api, booking)
    assert user_api.get(f'/api/payments/{payment.id}').status_code == 200
    r = other_api.get(f'/api/payments/{payment.id}')
    assert r.status_code == 403
    assert r.data['message'] == 'Access denied. You can only access your own payments.'


def test_history_lists_settled_payments_only(fake_stripe, user_api, user, hotel, room_type, booking):
    _paid(fake_stripe, user_api, booking)
    create_intent(user_api, make_booking(user, hotel, room_type))
    assert Payment.objects.filter(status='processing').count() == 1
    r = user_api.get('/api/payments/history')
    assert [p['status'] for p in r.data['data']['payments']] == ['succeeded']


def test_admin_listing_refund_and_stats(fake_stripe, user_api, admin_api, booking):
    payment = _paid(fake_stripe, user_api, booking)

    r = admin_api.get('/api/payments', {'status': 'succeeded'})
    assert r.data['data']['pagination']['total'] == 1

    r = admin_api.post(f'/api/payments/{payment.id}/admin-refund', {'amount': '19.00', 'reason': 'Goodwill'},
                       format='json')
    assert r.status_code == 200

    stats = admin_api.get('/api/payments/stats/overview').data['data']['stats']
    assert stats['grossRevenue'] == 269.0
    assert stats['refunded'] == 19.0
    assert stats['netRevenue'] == 250.0
    assert user_api.get('/api/payments/stats/overview').status_code == 403
