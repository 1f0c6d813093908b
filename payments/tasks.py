"""Background tasks using Celery."""

import logging
from celery import shared_task
from django.core.exceptions import ValidationError
from django.db import DatabaseError

from .conf import get_retry_policy
from .exceptions import PaymentServiceError, is_service_unavailable
from .models import Payment
from .router import get_payment_router
from .services import claim_for_registration, create_or_fetch_payment
from .utils import iso_timestamp

logger = logging.getLogger(__name__)


def _retry_or_raise(task, policy, exc, description):
    """Reschedule the task while its retry budget lasts, otherwise re-raise."""
    attempt = task.request.retries + 1
    if policy.exhausted(task.request.retries):
        logger.error(f"{description} failed after {attempt} attempts: {str(exc)}")
        raise exc
    logger.warning(f"{description} failed (attempt {attempt}), will retry: {str(exc)}")
    raise task.retry(exc=exc, countdown=policy.wait, max_retries=policy.attempts - 1)


@shared_task(bind=True, acks_late=True)
def create_payment(self, correlation_id, amount):
    """
    Create a payment and hand it over to the registration task.

    Every run schedules a registration, even when the payment already
    existed: an earlier run may have created it and stopped before
    scheduling. Invalid requests are logged and dropped without retrying.

    Args:
        correlation_id: Payment correlation id
        amount: Amount in dollars, as a decimal string

    Returns:
        str or None: Id of the payment, None if the request was invalid
    """
    logger.info(f"Processing payment creation for correlation_id: {correlation_id}")

    try:
        payment, created = create_or_fetch_payment(correlation_id, amount)
        register_payment.delay(payment_id=str(payment.id), correlation_id=payment.correlation_id)
    except ValidationError as e:
        logger.error(f"Failed to create payment for correlation_id {correlation_id}: {e.messages}")
        return None
    except Exception as exc:
        _retry_or_raise(self, get_retry_policy('creation'), exc, f"Payment creation for {correlation_id}")

    logger.info(f"Queued registration for payment {payment.id} (newly created: {created})")
    return str(payment.id)


@shared_task(bind=True, acks_late=True)
def register_payment(self, payment_id, correlation_id):
    """
    Register a pending payment with the external payment services.

    Status flow:
    - pending -> processing when the task claims the payment
    - processing -> completed on success
    - processing -> pending when a service is unavailable and retries remain
    - processing -> failed when retries run out or the failure is not retryable

    Payments that are not pending are left alone, so redelivered or
    overlapping runs never register a payment twice.

    Args:
        payment_id: UUID of the Payment
        correlation_id: Correlation id of the Payment
    """
    logger.info(f"Processing payment registration for payment_id: {payment_id} ({correlation_id})")

    try:
        payment = claim_for_registration(payment_id)
    except (Payment.DoesNotExist, ValidationError):
        # A malformed id can never match a payment, so it is dropped like a missing one
        logger.error(f"Payment {payment_id} not found")
        return None
    except DatabaseError as exc:
        _retry_or_raise(
            self, get_retry_policy('registration_unexpected'), exc, f"Claiming payment {payment_id}"
        )

    if payment is None:
        return None

    try:
        outcome = get_payment_router().register_with_failover(
            correlation_id=payment.correlation_id,
            amount=payment.amount,
            requested_at=iso_timestamp(payment.created_at),
        )
        payment.mark_completed(outcome.service_used)
    except PaymentServiceError as exc:
        logger.error(f"Failed to register payment {payment.id} with external service: {exc.message}")
        if not is_service_unavailable(exc):
            payment.mark_failed()
            raise

        policy = get_retry_policy('registration_unavailable')
        if policy.exhausted(self.request.retries):
            payment.mark_failed()
            logger.error(
                f"Payment {payment.id} registration permanently failed after {self.request.retries + 1} attempts"
            )
            raise

        payment.mark_pending()
        logger.warning(f"Payment {payment.id} registration failed, will retry (attempt {self.request.retries + 1})")
        raise self.retry(exc=exc, countdown=policy.wait, max_retries=policy.attempts - 1)
    except Exception as exc:
        logger.error(f"Unexpected error registering payment {payment.id}: {str(exc)}")
        payment.mark_failed()
        raise

    logger.info(f"Payment {payment.id} successfully registered with external service ({outcome.service_used})")
    return outcome.service_used
