import logging
from django.core.exceptions import ValidationError
from rest_framework import generics, permissions, status
from rest_framework.response import Response

from .models import Payment
from .serializers import PaymentSerializer
from .services import AsyncPaymentCreationService, PaymentCreationService, update_payment

logger = logging.getLogger(__name__)


def extract_payment_params(data):
    """Read the correlation id and amount from JSON or form style bodies."""
    if 'correlationId' in data:
        return data.get('correlationId'), data.get('amount')
    return data.get('correlation_id'), data.get('amount')


class PaymentListCreateView(generics.ListAPIView):
    """
    List payments or create one synchronously.

    GET /api/payments/
    POST /api/payments/

    Creation is idempotent on the correlation id:
    - 201 Created for a new payment (registered with the external service)
    - 200 OK when the correlation id is already known
    - 422 Unprocessable Entity for invalid input
    """

    serializer_class = PaymentSerializer
    permission_classes = [permissions.AllowAny]
    queryset = Payment.objects.all()

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response(
            {
                'success': True,
                'message': 'Payments retrieved successfully',
                'data': serializer.data
            },
            status=status.HTTP_200_OK
        )

    def post(self, request, *args, **kwargs):
        correlation_id, amount = extract_payment_params(request.data)
        result = PaymentCreationService().create(correlation_id, amount)

        if not result.success:
            return Response(
                {
                    'success': False,
                    'message': 'Payment could not be created',
                    'errors': result.errors
                },
                status=status.HTTP_422_UNPROCESSABLE_ENTITY
            )

        if result.newly_created:
            message, response_status = 'Payment was successfully created.', status.HTTP_201_CREATED
        else:
            message, response_status = 'Payment already exists.', status.HTTP_200_OK

        return Response(
            {
                'success': True,
                'message': message,
                'data': self.get_serializer(result.payment).data
            },
            status=response_status
        )


class AsyncPaymentCreateView(generics.GenericAPIView):
    """
    Queue a payment for background creation and registration.

    POST /api/payments/async/

    Returns 202 Accepted with the job id; the payment status can then be
    polled through the detail endpoint.
    """

    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        correlation_id, amount = extract_payment_params(request.data)
        result = AsyncPaymentCreationService().enqueue(correlation_id, amount)

        if not result.accepted:
            return Response({'errors': result.errors}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

        return Response(
            {
                'status': 'accepted',
                'message': 'Payment creation queued for processing',
                'correlation_id': result.correlation_id,
                'job_id': result.job_id,
            },
            status=status.HTTP_202_ACCEPTED
        )


class PaymentDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    Retrieve, update or delete a payment.

    GET /api/payments/{id}/
    PUT/PATCH /api/payments/{id}/ (pending payments only)
    DELETE /api/payments/{id}/
    """

    serializer_class = PaymentSerializer
    permission_classes = [permissions.AllowAny]
    lookup_field = 'id'
    queryset = Payment.objects.all()

    def retrieve(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = self.get_serializer(instance)
        return Response(
            {
                'success': True,
                'message': 'Payment retrieved successfully',
                'data': serializer.data
            },
            status=status.HTTP_200_OK
        )

    def update(self, request, *args, **kwargs):
        instance = self.get_object()
        correlation_id, amount = extract_payment_params(request.data)

        try:
            payment = update_payment(instance.id, correlation_id, amount)
        except ValidationError as e:
            return Response(
                {
                    'success': False,
                    'message': 'Payment could not be updated',
                    'errors': e.messages
                },
                status=status.HTTP_422_UNPROCESSABLE_ENTITY
            )

        return Response(
            {
                'success': True,
                'message': 'Payment was successfully updated.',
                'data': self.get_serializer(payment).data
            },
            status=status.HTTP_200_OK
        )

    def perform_destroy(self, instance):
        logger.info(f"Deleting payment {instance.id} ({instance.correlation_id})")
        instance.delete()
