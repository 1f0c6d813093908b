import json
import uuid
import pytest
import requests

from payments.exceptions import PaymentServiceServerError
from payments.models import Payment
from payments.router import RegistrationOutcome


def make_response(status_code, body=''):
    """Build a real requests.Response with the given status and body."""
    if not isinstance(body, str):
        body = json.dumps(body)
    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode('utf-8')
    response.encoding = 'utf-8'
    response.reason = 'OK' if status_code < 400 else 'Error'
    return response


class StubRouter:
    """Router double that records calls and replays canned outcomes."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes) or [RegistrationOutcome({'message': 'ok'}, 'default')]
        self.calls = []

    def register_with_failover(self, correlation_id, amount, requested_at=None):
        self.calls.append({'correlation_id': correlation_id, 'amount': amount, 'requested_at': requested_at})
        outcome = self.outcomes[min(len(self.calls), len(self.outcomes)) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def correlation_id():
    return str(uuid.uuid4())


@pytest.fixture
def payment_factory(db):
    def create(**kwargs):
        kwargs.setdefault('correlation_id', str(uuid.uuid4()))
        kwargs.setdefault('amount_in_cents', 1990)
        return Payment.objects.create(**kwargs)
    return create


@pytest.fixture
def server_error():
    return PaymentServiceServerError('Payment service server error: boom', status=503, service='default')
