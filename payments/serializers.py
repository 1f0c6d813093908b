from decimal import Decimal
from rest_framework import serializers

from .models import Payment
from .utils import is_valid_correlation_id


class PaymentSerializer(serializers.ModelSerializer):
    """Serializer for payment details."""

    amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    formatted_amount = serializers.CharField(read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'correlation_id', 'amount', 'amount_in_cents', 'formatted_amount',
            'payment_service', 'status', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class PaymentRequestSerializer(serializers.Serializer):
    """
    Syntactic validation of a payment request.

    Checks presence, UUID format and a positive amount only. It never looks
    up existing payments, so it is safe to run before queuing work.
    """

    correlation_id = serializers.CharField(
        max_length=255,
        error_messages={
            'required': 'Correlation ID is required',
            'null': 'Correlation ID is required',
            'blank': 'Correlation ID is required',
            'max_length': 'Correlation ID must be a valid UUID',
        },
    )
    amount = serializers.DecimalField(
        max_digits=None,
        decimal_places=None,
        error_messages={
            'required': 'Amount is required',
            'null': 'Amount is required',
            'invalid': 'Amount must be a valid number',
            'max_string_length': 'Amount must be a valid number',
        },
    )

    def validate_correlation_id(self, value):
        if not is_valid_correlation_id(value):
            raise serializers.ValidationError('Correlation ID must be a valid UUID')
        return value

    def validate_amount(self, value):
        if value <= Decimal('0'):
            raise serializers.ValidationError('Amount must be greater than 0')
        return value

    @property
    def error_messages_list(self):
        """Flatten field errors into a list of messages."""
        messages = []
        for field_errors in self.errors.values():
            messages.extend(str(error) for error in field_errors)
        return messages
