"""
Stripe payment intents, webhooks and refunds.

Amounts cross the Stripe boundary in minor units (cents).  Recording a
successful intent is idempotent so the confirm endpoint and the webhook
can both report the same payment.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

import stripe
from django.conf import settings
from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from lodging.models import Booking, Payment, Refund
from lodging.services import pricing
from lodging.services.audit import log_action

logger = logging.getLogger(__name__)

HISTORY_STATUSES = ('succeeded', 'refunded', 'partially-refunded')


def _stripe():
    stripe.api_key = settings.STRIPE_SECRET_KEY
    return stripe


def _field(obj, name: str, default=None):
    """Read ``name`` from a Stripe object or a plain mapping.

    ``StripeObject`` is not a ``dict`` in current SDKs, so only item
    access is used.
    """
    if obj is None:
        return default
    try:
        value = obj[name]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal('1')))


def from_minor_units(amount: int) -> Decimal:
    return pricing.money(Decimal(amount) / 100)


def serialize_refund(r: Refund) -> dict:
    return {
        'id': r.id,
        'amount': float(r.amount),
        'reason': r.reason,
        'providerRefundId': r.provider_refund_id,
        'status': r.status,
        'processedAt': r.processed_at.isoformat() if r.processed_at else None,
        'createdAt': r.created_at.isoformat() if r.created_at else None,
    }


def serialize_payment(p: Payment, *, detail: bool = False) -> dict:
    data = {
        'id': p.id,
        'paymentIntentId': p.intent_id,
        'booking': {'id': p.booking_id, 'bookingReference': p.booking.reference,
                    'hotel': p.booking.hotel.name if p.booking.hotel_id else None},
        'user': p.user_id,
        'amount': float(p.amount),
        'currency': p.currency,
        'status': p.status,
        'method': p.method,
        'refundedAmount': float(p.refunded_amount),
        'createdAt': p.created_at.isoformat() if p.created_at else None,
    }
    if detail:
        data['failureMessage'] = p.failure_message
        data['refunds'] = [serialize_refund(r) for r in p.refunds.all()]
    return data


def get_payment(payment_id) -> Payment:
    p = Payment.objects.select_related('booking', 'booking__hotel', 'user').filter(id=payment_id).first()
    if not p:
        raise NotFound('Payment not found')
    return p


def list_payments(status: Optional[str] = None):
    qs = Payment.objects.select_related('booking', 'booking__hotel')
    if status:
        qs = qs.filter(status=status)
    return qs.order_by('-created_at')


def payment_history(user):
    return Payment.objects.filter(user=user, status__in=HISTORY_STATUSES) \
        .select_related('booking', 'booking__hotel').order_by('-created_at')


# ---------------------------------------------------------------------
# Intents
# ---------------------------------------------------------------------
def _supersede_open_intents(booking: Booking) -> None:
    """Cancel the booking's unpaid intents so only one can ever be charged."""
    for stale in booking.payments.select_for_update().filter(status__in=('processing', 'requires-payment')):
        _stripe().PaymentIntent.cancel(stale.intent_id)
        stale.status = 'canceled'
        stale.save(update_fields=['status', 'updated_at'])
        logger.info('Cancelled superseded intent %s for booking %s', stale.intent_id, booking.reference)


@transaction.atomic
def create_intent(booking: Booking, user, amount: Optional[Decimal] = None, currency: Optional[str] = None) -> dict:
    if booking.user_id != user.id:
        raise PermissionDenied('Not authorized to pay for this booking')
    booking = Booking.objects.select_for_update().get(id=booking.id)
    if booking.status in ('cancelled', 'no-show', 'checked-out'):
        raise ValidationError(f'Cannot take payment for a {booking.status} booking')
    remaining = booking.remaining_amount
    if remaining <= 0:
        raise ValidationError('Booking is already fully paid')
    amount = pricing.money(amount) if amount is not None else remaining
    if amount <= 0 or amount > remaining:
        raise ValidationError(f'Amount must be greater than 0 and at most {remaining}')
    currency = (currency or booking.currency or settings.PAYMENT_CURRENCY).lower()

    _supersede_open_intents(booking)
    intent = _stripe().PaymentIntent.create(
        amount=to_minor_units(amount),
        currency=currency,
        metadata={'bookingId': str(booking.id), 'userId': str(user.id), 'bookingReference': booking.reference},
        automatic_payment_methods={'enabled': True},
    )
    Payment.objects.create(booking=booking, user=user, intent_id=intent['id'], amount=amount,
                           currency=currency, status='processing')
    booking.payment_status = 'processing'
    booking.payment_intent_id = intent['id']
    booking.save(update_fields=['payment_status', 'payment_intent_id', 'updated_at'])
    logger.info('Created payment intent %s for booking %s (%s %s)', intent['id'], booking.reference, amount, currency)
    return {
        'clientSecret': intent['client_secret'],
        'paymentIntentId': intent['id'],
        'amount': float(amount),
        'currency': currency,
    }


@transaction.atomic
def record_success(intent) -> Payment:
    """Apply a succeeded intent to its payment and booking; repeat calls are no-ops."""
    payment = Payment.objects.select_for_update().filter(intent_id=intent['id']).first()
    if payment is None:
        booking_id = _field(_field(intent, 'metadata'), 'bookingId')
        booking = Booking.objects.filter(id=booking_id).first() if booking_id else None
        if booking is None:
            raise NotFound('No booking found for payment intent')
        payment = Payment.objects.create(
            booking=booking, user=booking.user, intent_id=intent['id'],
            amount=from_minor_units(intent['amount']),
            currency=_field(intent, 'currency', booking.currency.lower()),
            status='processing',
        )
    if payment.status in HISTORY_STATUSES:
        return payment

    amount = from_minor_units(_field(intent, 'amount_received') or intent['amount'])
    payment.amount = amount
    payment.status = 'succeeded'
    payment.method = ','.join(_field(intent, 'payment_method_types') or ['card'])
    payment.save(update_fields=['amount', 'status', 'method', 'updated_at'])

    booking = Booking.objects.select_for_update().get(id=payment.booking_id)
    accepting = booking.status not in ('cancelled', 'no-show')
    excess = amount if not accepting else max(Decimal('0'), booking.paid_amount + amount - booking.total_amount)

    booking.paid_amount = pricing.money(booking.paid_amount + amount)
    booking.payment_status = 'completed' if booking.paid_amount >= booking.total_amount else 'pending'
    booking.payment_method = booking.payment_method or 'credit-card'
    booking.transaction_id = intent['id']
    booking.payment_date = timezone.now()
    if booking.status == 'pending':
        booking.status = 'confirmed'
        booking.confirmed_at = timezone.now()
        booking.confirmation_method = 'email'
    booking.save()
    log_action(user=payment.user, action='payment_succeeded', object_type='payment', object_id=payment.id,
               detail={'bookingId': booking.id, 'amount': float(amount), 'intent': intent['id']})

    if excess > 0:
        # charged after cancellation, or beyond the booking total
        logger.warning('Booking %s received %s more than it owes; refunding', booking.reference, excess)
        issue_refund(payment, None, excess, 'Payment exceeded the amount due' if accepting
                     else f'Booking was already {booking.status}')
        payment.refresh_from_db()
    return payment


@transaction.atomic
def record_failure(intent) -> Optional[Payment]:
    payment = Payment.objects.select_for_update().filter(intent_id=intent['id']).first()
    if payment is None:
        logger.warning('Failed intent %s has no local payment', intent['id'])
        return None
    if payment.status in HISTORY_STATUSES or payment.status == 'canceled':
        return payment
    error = _field(intent, 'last_payment_error')
    payment.status = 'failed'
    payment.failure_message = _field(error, 'message', '')[:500]
    payment.save(update_fields=['status', 'failure_message', 'updated_at'])
    booking = payment.booking
    if booking.payment_status != 'completed':
        booking.payment_status = 'failed'
        booking.save(update_fields=['payment_status', 'updated_at'])
    log_action(user=payment.user, action='payment_failed', object_type='payment', object_id=payment.id,
               detail={'bookingId': booking.id, 'intent': intent['id'], 'error': payment.failure_message})
    return payment


def confirm_payment(user, intent_id: str, booking: Booking) -> Payment:
    if booking.user_id != user.id:
        raise PermissionDenied('Not authorized to confirm payment for this booking')
    intent = _stripe().PaymentIntent.retrieve(intent_id)
    if str(_field(_field(intent, 'metadata'), 'bookingId')) != str(booking.id):
        raise ValidationError('Payment intent does not belong to this booking')
    if intent['status'] != 'succeeded':
        raise ValidationError('Payment not completed')
    return record_success(intent)


def construct_event(payload: bytes, signature: str):
    """Verify the webhook signature; raises ValueError or SignatureVerificationError."""
    return _stripe().Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)


def handle_event(event) -> None:
    kind = event['type']
    obj = event['data']['object']
    if kind == 'payment_intent.succeeded':
        record_success(obj)
    elif kind == 'payment_intent.payment_failed':
        record_failure(obj)
    else:
        logger.info('Ignoring Stripe event %s', kind)


# ---------------------------------------------------------------------
# Refunds
# ---------------------------------------------------------------------
@transaction.atomic
def issue_refund(payment: Payment, actor, amount: Optional[Decimal] = None, reason: str = '') -> Refund:
    payment = Payment.objects.select_for_update().get(id=payment.id)
    refundable = payment.refundable_amount
    if refundable <= 0:
        raise ValidationError('Payment has nothing left to refund')
    amount = pricing.money(amount) if amount is not None else refundable
    if amount <= 0 or amount > refundable:
        raise ValidationError(f'Refund amount must be greater than 0 and at most {refundable}')

    result = _stripe().Refund.create(
        payment_intent=payment.intent_id,
        amount=to_minor_units(amount),
        reason='requested_by_customer',
        metadata={'bookingId': str(payment.booking_id), 'reason': reason[:200]},
    )
    refund = Refund.objects.create(
        payment=payment, amount=amount, reason=reason, provider_refund_id=result['id'],
        status=_field(result, 'status', 'succeeded'), requested_by=actor, processed_at=timezone.now(),
    )
    payment.refunded_amount = pricing.money(payment.refunded_amount + amount)
    payment.status = 'refunded' if payment.refunded_amount >= payment.amount else 'partially-refunded'
    payment.save(update_fields=['refunded_amount', 'status', 'updated_at'])

    booking = Booking.objects.select_for_update().get(id=payment.booking_id)
    booking.paid_amount = max(Decimal('0'), pricing.money(booking.paid_amount - amount))
    booking.refund_amount = pricing.money(booking.refund_amount + amount)
    if booking.paid_amount <= 0:
        booking.payment_status = 'refunded'
    elif booking.status != 'cancelled' and booking.paid_amount >= booking.total_amount:
        booking.payment_status = 'completed'
    else:
        booking.payment_status = 'partially-refunded'
    booking.save()
    log_action(user=actor, action='payment_refund', object_type='payment', object_id=payment.id,
               detail={'bookingId': booking.id, 'amount': float(amount), 'reason': reason})
    return refund


def refund_booking(booking: Booking, amount: Decimal, *, reason: str, actor) -> Decimal:
    """Refund up to ``amount`` across the booking's successful payments, newest first."""
    left = pricing.money(amount)
    for payment in booking.payments.filter(status__in=('succeeded', 'partially-refunded')).order_by('-created_at'):
        if left <= 0:
            break
        portion = min(left, payment.refundable_amount)
        if portion > 0:
            issue_refund(payment, actor, portion, reason)
            left -= portion
    if left > 0:
        logger.warning('Booking %s: %s of the refund had no provider payment to draw from', booking.reference, left)
    return pricing.money(amount) - left


# ---------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------
def payment_stats() -> dict:
    rows = Payment.objects.values('status').annotate(count=Count('id'), amount=Sum('amount')).order_by()
    by_status = {r['status']: {'count': r['count'], 'amount': float(r['amount'] or 0)} for r in rows}
    gross = Payment.objects.filter(status__in=HISTORY_STATUSES).aggregate(s=Sum('amount'))['s'] or Decimal('0')
    refunded = Payment.objects.aggregate(s=Sum('refunded_amount'))['s'] or Decimal('0')
    return {
        'byStatus': by_status,
        'grossRevenue': float(gross),
        'refunded': float(refunded),
        'netRevenue': float(gross - refunded),
        'totalPayments': sum(v['count'] for v in by_status.values()),
    }
