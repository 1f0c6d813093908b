"""Payment creation: idempotent create, synchronous registration and async enqueue."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from .models import Payment
from .router import get_payment_router
from .serializers import PaymentRequestSerializer
from .utils import iso_timestamp, normalize_correlation_id, to_cents

logger = logging.getLogger(__name__)


@dataclass
class PaymentCreationResult:
    payment: Optional[Payment] = None
    newly_created: bool = False
    errors: List[str] = field(default_factory=list)
    idempotent_hit: bool = False

    @property
    def success(self):
        return not self.errors


@dataclass
class AsyncPaymentCreationResult:
    job_id: Optional[str] = None
    correlation_id: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    @property
    def success(self):
        return not self.errors

    @property
    def accepted(self):
        return self.success and bool(self.job_id)


def find_payment(correlation_id):
    return Payment.objects.filter(correlation_id=correlation_id).first()


def create_or_fetch_payment(correlation_id, amount):
    """
    Create a payment for a correlation id, or return the one that exists.

    Replays of a known correlation id return the stored payment untouched:
    the submitted amount is not validated and nothing else happens.

    Args:
        correlation_id: Caller supplied UUID string
        amount: Amount in dollars

    Returns:
        tuple: (Payment, created: bool)

    Raises:
        ValidationError: If the correlation id or amount is invalid
    """
    correlation_id = normalize_correlation_id(correlation_id)
    if not correlation_id:
        raise ValidationError('Correlation ID is required')

    existing = find_payment(correlation_id)
    if existing is not None:
        logger.info(f"Payment already exists for correlation_id: {correlation_id}")
        return existing, False

    payment = Payment(correlation_id=correlation_id)
    errors = []
    if amount is not None and str(amount).strip() != '':
        try:
            payment.amount_in_cents = to_cents(amount)
        except ValueError:
            errors.append('Amount must be a valid number')

    try:
        payment.full_clean(
            exclude=['amount_in_cents'] if errors else None,
            validate_unique=False,
            validate_constraints=False,
        )
    except ValidationError as e:
        errors = e.messages + errors
    if errors:
        raise ValidationError(errors)

    try:
        with transaction.atomic():
            payment.save(force_insert=True)
    except IntegrityError:
        # A concurrent creator inserted the same correlation id first
        existing = find_payment(correlation_id)
        if existing is None:
            raise
        logger.info(f"Payment for correlation_id {correlation_id} created concurrently, using existing")
        return existing, False

    logger.info(f"Payment created successfully: {payment.id}")
    return payment, True


def update_payment(payment_id, correlation_id=None, amount=None):
    """
    Change the correlation id and/or amount of a payment that has not been
    registered yet. Blank values leave the field as it is.

    Returns:
        Payment: The updated payment

    Raises:
        Payment.DoesNotExist: If no payment has this id
        ValidationError: If the payment is past pending or a value is invalid
    """
    correlation_id = normalize_correlation_id(correlation_id)
    errors = []

    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(id=payment_id)
        if not payment.can_be_registered():
            raise ValidationError(f"Payment cannot be updated while {payment.status}")

        if correlation_id:
            payment.correlation_id = correlation_id
        if amount is not None and str(amount).strip() != '':
            try:
                payment.amount_in_cents = to_cents(amount)
            except ValueError:
                errors.append('Amount must be a valid number')

        try:
            payment.full_clean(
                exclude=['amount_in_cents'] if errors else None,
                validate_constraints=False,
            )
        except ValidationError as e:
            errors = e.messages + errors
        if errors:
            raise ValidationError(errors)

        try:
            with transaction.atomic():
                payment.save(update_fields=['correlation_id', 'amount_in_cents', 'updated_at'])
        except IntegrityError:
            raise ValidationError('Correlation ID has already been taken')

    logger.info(f"Payment {payment.id} updated ({payment.correlation_id}, {payment.amount_in_cents} cents)")
    return payment


def claim_for_registration(payment_id):
    """
    Atomically move a pending payment to processing.

    Returns:
        Payment or None: The claimed payment, or None when the payment is not
        pending (already registered, failed, or claimed by another worker)

    Raises:
        Payment.DoesNotExist: If no payment has this id
    """
    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(id=payment_id)
        if not payment.can_be_registered():
            logger.info(f"Skipping registration for payment {payment_id} (status: {payment.status})")
            return None
        payment.mark_processing()
    return payment


class PaymentCreationService:
    """
    Synchronous payment creation.

    New payments are registered with the external services right away.
    Registration failures are logged and leave the payment pending; they never
    fail the creation itself.
    """

    def __init__(self, router=None):
        self.router = router

    def create(self, correlation_id, amount):
        try:
            payment, created = create_or_fetch_payment(correlation_id, amount)
        except ValidationError as e:
            logger.warning(f"Invalid payment request for correlation_id {correlation_id}: {e.messages}")
            return PaymentCreationResult(errors=e.messages)

        if not created:
            return PaymentCreationResult(payment=payment, idempotent_hit=True)

        self._register(payment)
        return PaymentCreationResult(payment=payment, newly_created=True)

    def _register(self, payment):
        claimed = claim_for_registration(payment.id)
        if claimed is None:
            return

        router = self.router or get_payment_router()
        try:
            outcome = router.register_with_failover(
                correlation_id=claimed.correlation_id,
                amount=claimed.amount,
                requested_at=iso_timestamp(claimed.created_at),
            )
        except Exception as e:
            # Creation stands; the payment stays pending for a later registration
            logger.error(f"Failed to register payment {claimed.id} with external service: {str(e)}")
            claimed.mark_pending()
        else:
            claimed.mark_completed(outcome.service_used)
            logger.info(
                f"Payment {claimed.id} successfully registered with external service ({outcome.service_used})"
            )
        payment.refresh_from_db()


class AsyncPaymentCreationService:
    """Validate a payment request and queue it for background creation."""

    def enqueue(self, correlation_id, amount):
        from .tasks import create_payment

        serializer = PaymentRequestSerializer(data={'correlation_id': correlation_id, 'amount': amount})
        if not serializer.is_valid():
            return AsyncPaymentCreationResult(
                correlation_id=correlation_id,
                errors=serializer.error_messages_list,
            )

        correlation_id = normalize_correlation_id(serializer.validated_data['correlation_id'])
        job = create_payment.delay(
            correlation_id=correlation_id,
            amount=str(serializer.validated_data['amount']),
        )
        logger.info(f"Queued payment creation job {job.id} for correlation_id: {correlation_id}")

        return AsyncPaymentCreationResult(job_id=job.id, correlation_id=correlation_id)
