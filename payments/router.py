"""Failover routing across the configured payment services."""

import logging
from dataclasses import dataclass

from .clients import PaymentServiceClient
from .conf import get_payment_service_configs
from .exceptions import PaymentServiceError, is_service_unavailable

logger = logging.getLogger(__name__)


@dataclass
class RegistrationOutcome:
    response: dict
    service_used: str


class PaymentServiceRouter:
    """
    Registers payments with the first payment service able to take them.

    Services are tried in priority order. A service that is unavailable
    (timeout, connection failure, 5xx) hands over to the next one; any other
    failure is raised straight away since the next service would reject the
    same request. When every service is unavailable the last error is raised.
    """

    def __init__(self, services):
        self.services = list(services)
        if not self.services:
            raise ValueError("PaymentServiceRouter needs at least one payment service")

    @classmethod
    def from_settings(cls):
        return cls(PaymentServiceClient.from_config(config) for config in get_payment_service_configs())

    def register_with_failover(self, correlation_id, amount, requested_at=None):
        """
        Register a payment, failing over between services when needed.

        Args:
            correlation_id: Payment correlation id
            amount: Amount in dollars
            requested_at: ISO-8601 timestamp string

        Returns:
            RegistrationOutcome: Service response and the name of the service used

        Raises:
            PaymentServiceError: From the first service that rejected the
                request, or from the last service tried
        """
        last_index = len(self.services) - 1
        for index, service in enumerate(self.services):
            logger.info(f"Attempting payment registration for {correlation_id} with {service.name} service")
            try:
                response = service.register_payment(
                    correlation_id=correlation_id,
                    amount=amount,
                    requested_at=requested_at,
                )
            except PaymentServiceError as e:
                if index == last_index or not is_service_unavailable(e):
                    raise
                next_service = self.services[index + 1]
                logger.warning(
                    f"{service.name.capitalize()} payment service unavailable, "
                    f"falling back to {next_service.name} service"
                )
                logger.debug(f"{service.name.capitalize()} service error: {e.message}")
                continue
            return RegistrationOutcome(response=response, service_used=service.name)


def get_payment_router():
    return PaymentServiceRouter.from_settings()
