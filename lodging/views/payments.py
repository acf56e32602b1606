"""
Payment endpoints backed by Stripe payment intents.

The webhook is unauthenticated; Stripe's signature header is the only
credential it accepts.
"""
import logging

import stripe
from rest_framework.decorators import api_view, authentication_classes, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from lodging.permissions import IsAdminRole, ensure_owner_or_admin
from lodging.responses import page_params, paginate, paginated, success
from lodging.serializers.payments import (
    ConfirmPaymentSerializer,
    CreateIntentSerializer,
    PaymentListQuerySerializer,
    RefundSerializer,
)
from lodging.services import payments as svc
from lodging.services.bookings import get_booking, serialize_booking
from lodging.throttles import PaymentRateThrottle

logger = logging.getLogger(__name__)

OWNER_ONLY = 'Access denied. You can only access your own payments.'


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([PaymentRateThrottle])
def create_intent(request):
    s = CreateIntentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    booking = get_booking(v['bookingId'])
    data = svc.create_intent(booking, request.user, v.get('amount'), v.get('currency'))
    return success(data, message='Payment intent created')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([PaymentRateThrottle])
def confirm(request):
    s = ConfirmPaymentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    booking = get_booking(v['bookingId'])
    payment = svc.confirm_payment(request.user, v['paymentIntentId'], booking)
    return success({
        'payment': svc.serialize_payment(svc.get_payment(payment.id)),
        'booking': serialize_booking(get_booking(booking.id)),
    }, message='Payment confirmed successfully')


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([])
def stripe_webhook(request):
    signature = request.META.get('HTTP_STRIPE_SIGNATURE', '')
    try:
        event = svc.construct_event(request.body, signature)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning('Rejected Stripe webhook: %s', e)
        return Response({'success': False, 'message': 'Invalid webhook signature', 'type': 'ValidationError'},
                        status=400)
    svc.handle_event(event)
    return Response({'received': True})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def history(request):
    page, limit = page_params(request.query_params)
    items, pagination = paginate(svc.payment_history(request.user), page, limit)
    return paginated('payments', [svc.serialize_payment(p) for p in items], pagination)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_detail(request, payment_id):
    payment = svc.get_payment(payment_id)
    ensure_owner_or_admin(request.user, payment, OWNER_ONLY)
    return success({'payment': svc.serialize_payment(payment, detail=True)})


def _refund(request, payment):
    s = RefundSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    refund = svc.issue_refund(payment, request.user, v.get('amount'), v['reason'])
    return success({
        'refund': svc.serialize_refund(refund),
        'payment': svc.serialize_payment(svc.get_payment(payment.id)),
    }, message='Refund processed successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([PaymentRateThrottle])
def refund(request, payment_id):
    payment = svc.get_payment(payment_id)
    ensure_owner_or_admin(request.user, payment, OWNER_ONLY)
    return _refund(request, payment)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def refunds(request, payment_id):
    payment = svc.get_payment(payment_id)
    ensure_owner_or_admin(request.user, payment, OWNER_ONLY)
    return success({'refunds': [svc.serialize_refund(r) for r in payment.refunds.all()]})


# ---------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAdminRole])
def payment_list(request):
    q = PaymentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page, limit = page_params(request.query_params)
    qs = svc.list_payments(q.validated_data.get('status'))
    items, pagination = paginate(qs, page, limit)
    return paginated('payments', [svc.serialize_payment(p) for p in items], pagination)


@api_view(['POST'])
@permission_classes([IsAdminRole])
def admin_refund(request, payment_id):
    return _refund(request, svc.get_payment(payment_id))


@api_view(['GET'])
@permission_classes([IsAdminRole])
def stats(request):
    return success({'stats': svc.payment_stats()})
