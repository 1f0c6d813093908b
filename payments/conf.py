"""Typed access to the payment settings."""

from dataclasses import dataclass
from django.conf import settings

DEFAULT_TIMEOUT = 30
DEFAULT_USER_AGENT = 'PaymentProcessor/1.0'

DEFAULT_RETRY_POLICY = {
    'creation': {'attempts': 3, 'wait': 1},
    'registration_unavailable': {'attempts': 5, 'wait': 2},
    'registration_unexpected': {'attempts': 3, 'wait': 1},
}


@dataclass(frozen=True)
class PaymentServiceConfig:
    name: str
    base_url: str
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class RetryPolicy:
    """How many times a job may run in total, and the delay between runs."""

    attempts: int
    wait: float

    def exhausted(self, retries):
        """True when the run numbered ``retries`` (0-based) is the last allowed one."""
        return retries + 1 >= self.attempts


def get_payment_service_configs():
    """
    Build the configured payment services in failover priority order.

    Returns:
        list[PaymentServiceConfig]: e.g. [default, fallback]
    """
    user_agent = getattr(settings, 'PAYMENT_SERVICE_USER_AGENT', DEFAULT_USER_AGENT)
    configs = []
    for name, options in settings.PAYMENT_SERVICES.items():
        configs.append(PaymentServiceConfig(
            name=name,
            base_url=options['base_url'],
            timeout=float(options.get('timeout', DEFAULT_TIMEOUT)),
            user_agent=user_agent,
        ))
    if not configs:
        raise ValueError("PAYMENT_SERVICES must configure at least one payment service")
    return configs


def get_retry_policy(name):
    """Return the RetryPolicy named in PAYMENT_JOB_RETRY_POLICY, falling back to defaults."""
    policies = {**DEFAULT_RETRY_POLICY, **getattr(settings, 'PAYMENT_JOB_RETRY_POLICY', {})}
    options = policies[name]
    return RetryPolicy(attempts=int(options['attempts']), wait=float(options['wait']))
