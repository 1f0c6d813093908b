import uuid
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models

from .utils import CORRELATION_ID_PATTERN, format_amount, to_cents, to_dollars


class Payment(models.Model):
    """A payment keyed by its caller supplied correlation id."""

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PROCESSING = 'processing', 'Processing'
        COMPLETED = 'completed', 'Completed'
        FAILED = 'failed', 'Failed'

    class Service(models.TextChoices):
        DEFAULT = 'default', 'Default'
        FALLBACK = 'fallback', 'Fallback'

    # Allowed status moves; completed and failed are terminal
    TRANSITIONS = {
        Status.PENDING: {Status.PROCESSING},
        Status.PROCESSING: {Status.COMPLETED, Status.PENDING, Status.FAILED},
        Status.COMPLETED: set(),
        Status.FAILED: set(),
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    correlation_id = models.CharField(
        max_length=36,
        unique=True,
        validators=[RegexValidator(CORRELATION_ID_PATTERN, message='Correlation ID must be a valid UUID')],
        error_messages={
            'blank': 'Correlation ID is required',
            'null': 'Correlation ID is required',
        },
    )
    amount_in_cents = models.BigIntegerField(
        validators=[MinValueValidator(1, message='Amount must be greater than 0')],
        error_messages={
            'blank': 'Amount is required',
            'null': 'Amount is required',
        },
    )
    payment_service = models.CharField(max_length=20, choices=Service.choices, null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount_in_cents__gt=0),
                name='payment_amount_positive',
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(status='completed', payment_service__isnull=False)
                    | (~models.Q(status='completed') & models.Q(payment_service__isnull=True))
                ),
                name='payment_service_set_iff_completed',
            ),
        ]

    def __str__(self):
        return f"Payment {self.correlation_id} - {self.status}"

    @property
    def amount(self):
        """Amount in dollars as a two-place Decimal."""
        if self.amount_in_cents is None:
            return to_dollars(0)
        return to_dollars(self.amount_in_cents)

    @amount.setter
    def amount(self, dollars):
        self.amount_in_cents = to_cents(dollars)

    @property
    def formatted_amount(self):
        return format_amount(self.amount_in_cents)

    def can_be_registered(self):
        """Only pending payments may start an external registration."""
        return self.status == self.Status.PENDING

    def transition_to(self, status, payment_service=None):
        """
        Move the payment to a new status and persist it.

        Args:
            status: Target Payment.Status
            payment_service: Service that registered the payment (completed only)

        Raises:
            ValidationError: If the transition is not allowed
        """
        if status not in self.TRANSITIONS[self.status]:
            raise ValidationError(f"Payment cannot move from {self.status} to {status}")
        if status == self.Status.COMPLETED and payment_service not in self.Service.values:
            raise ValidationError("Completed payments require the service that registered them")

        previous = (self.status, self.payment_service)
        self.status = status
        self.payment_service = payment_service if status == self.Status.COMPLETED else None
        try:
            self.save(update_fields=['status', 'payment_service', 'updated_at'])
        except Exception:
            # Keep the instance in step with the row that was not written
            self.status, self.payment_service = previous
            raise

    def mark_processing(self):
        self.transition_to(self.Status.PROCESSING)

    def mark_completed(self, payment_service):
        self.transition_to(self.Status.COMPLETED, payment_service=payment_service)

    def mark_pending(self):
        self.transition_to(self.Status.PENDING)

    def mark_failed(self):
        self.transition_to(self.Status.FAILED)
