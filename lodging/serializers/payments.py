from decimal import Decimal

from rest_framework import serializers

from lodging.models import Payment


class CreateIntentSerializer(serializers.Serializer):
    bookingId = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'), required=False)
    currency = serializers.RegexField(r'^[A-Za-z]{3}$', required=False)


class ConfirmPaymentSerializer(serializers.Serializer):
    paymentIntentId = serializers.CharField(max_length=255)
    bookingId = serializers.IntegerField()


class RefundSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'), required=False)
    reason = serializers.CharField(max_length=255)


class PaymentListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c[0] for c in Payment.STATUS_CHOICES], required=False)
