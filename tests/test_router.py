from unittest import mock
import pytest
import requests
from django.test import override_settings

from payments.clients import PaymentServiceClient
from payments.exceptions import (
    PaymentServiceClientError,
    PaymentServiceError,
    PaymentServiceFormatError,
    PaymentServiceServerError,
    PaymentServiceTimeoutError,
)
from payments.router import PaymentServiceRouter
from .conftest import make_response

CORRELATION_ID = '550e8400-e29b-41d4-a716-446655440000'


def make_service(name, result=None, error=None):
    service = mock.Mock(spec=PaymentServiceClient)
    service.name = name
    if error is not None:
        service.register_payment.side_effect = error
    else:
        service.register_payment.return_value = result or {'message': 'ok'}
    return service


def test_uses_default_service_when_it_succeeds():
    default = make_service('default', {'message': 'processed'})
    fallback = make_service('fallback')
    router = PaymentServiceRouter([default, fallback])

    outcome = router.register_with_failover(CORRELATION_ID, 19.90)

    assert outcome.service_used == 'default'
    assert outcome.response == {'message': 'processed'}
    fallback.register_payment.assert_not_called()


def test_client_error_never_reaches_fallback():
    error = PaymentServiceClientError('Payment service client error', status=422)
    default = make_service('default', error=error)
    fallback = make_service('fallback')
    router = PaymentServiceRouter([default, fallback])

    with pytest.raises(PaymentServiceClientError) as exc_info:
        router.register_with_failover(CORRELATION_ID, 19.90)

    assert exc_info.value is error
    assert exc_info.value.status == 422
    fallback.register_payment.assert_not_called()


def test_format_error_never_reaches_fallback():
    default = make_service('default', error=PaymentServiceFormatError('Invalid response format'))
    fallback = make_service('fallback')
    router = PaymentServiceRouter([default, fallback])

    with pytest.raises(PaymentServiceFormatError):
        router.register_with_failover(CORRELATION_ID, 19.90)

    fallback.register_payment.assert_not_called()


def test_timeout_fails_over_to_fallback():
    default = make_service('default', error=PaymentServiceTimeoutError('Payment service timeout'))
    fallback = make_service('fallback', {'message': 'fallback ok'})
    router = PaymentServiceRouter([default, fallback])

    outcome = router.register_with_failover(CORRELATION_ID, 19.90, requested_at='2025-07-15T12:34:56.000Z')

    assert outcome.service_used == 'fallback'
    assert outcome.response == {'message': 'fallback ok'}
    default.register_payment.assert_called_once_with(
        correlation_id=CORRELATION_ID, amount=19.90, requested_at='2025-07-15T12:34:56.000Z'
    )
    fallback.register_payment.assert_called_once_with(
        correlation_id=CORRELATION_ID, amount=19.90, requested_at='2025-07-15T12:34:56.000Z'
    )


def test_last_error_wins_when_every_service_fails():
    default_error = PaymentServiceServerError('default down', status=500)
    fallback_error = PaymentServiceServerError('fallback down', status=503)
    default = make_service('default', error=default_error)
    fallback = make_service('fallback', error=fallback_error)
    router = PaymentServiceRouter([default, fallback])

    with pytest.raises(PaymentServiceServerError) as exc_info:
        router.register_with_failover(CORRELATION_ID, 19.90)

    assert exc_info.value is fallback_error
    assert exc_info.value.status == 503
    default.register_payment.assert_called_once()
    fallback.register_payment.assert_called_once()


def test_fallback_client_error_propagates_untouched():
    fallback_error = PaymentServiceClientError('rejected', status=400)
    default = make_service('default', error=PaymentServiceServerError('down', status=502))
    fallback = make_service('fallback', error=fallback_error)
    router = PaymentServiceRouter([default, fallback])

    with pytest.raises(PaymentServiceClientError) as exc_info:
        router.register_with_failover(CORRELATION_ID, 19.90)

    assert exc_info.value is fallback_error


def test_falls_through_more_than_two_tiers():
    first = make_service('default', error=PaymentServiceServerError('down', status=500))
    second = make_service('fallback', error=PaymentServiceTimeoutError('Payment service timeout'))
    third = make_service('backup', {'message': 'ok'})
    router = PaymentServiceRouter([first, second, third])

    outcome = router.register_with_failover(CORRELATION_ID, 5)

    assert outcome.service_used == 'backup'


def test_requires_at_least_one_service():
    with pytest.raises(ValueError):
        PaymentServiceRouter([])


@override_settings(
    PAYMENT_SERVICES={
        'default': {'base_url': 'https://default.example.com', 'timeout': 3},
        'fallback': {'base_url': 'https://fallback.example.com'},
    }
)
def test_from_settings_builds_services_in_priority_order():
    router = PaymentServiceRouter.from_settings()

    assert [service.name for service in router.services] == ['default', 'fallback']
    assert router.services[0].base_url == 'https://default.example.com'
    assert router.services[0].timeout == 3
    assert router.services[1].timeout == 30
    assert router.services[1].user_agent == 'PaymentProcessor/1.0'


def test_truncated_default_response_fails_over_with_real_clients():
    default = PaymentServiceClient('default', 'https://default.example.com')
    fallback = PaymentServiceClient('fallback', 'https://fallback.example.com')
    router = PaymentServiceRouter([default, fallback])

    def post(url, **kwargs):
        if url.startswith('https://default.example.com'):
            raise requests.exceptions.ChunkedEncodingError('Connection broken: IncompleteRead(0 bytes read)')
        return make_response(200, {'message': 'fallback ok'})

    with mock.patch('payments.clients.requests.post', side_effect=post) as patched:
        outcome = router.register_with_failover(CORRELATION_ID, 19.90)

    assert outcome.service_used == 'fallback'
    assert outcome.response == {'message': 'fallback ok'}
    assert patched.call_count == 2


def test_other_request_failure_does_not_fail_over():
    default = PaymentServiceClient('default', 'https://default.example.com')
    fallback = PaymentServiceClient('fallback', 'https://fallback.example.com')
    router = PaymentServiceRouter([default, fallback])

    with mock.patch(
        'payments.clients.requests.post', side_effect=requests.exceptions.InvalidURL('bad url')
    ) as patched:
        with pytest.raises(PaymentServiceError) as exc_info:
            router.register_with_failover(CORRELATION_ID, 19.90)

    assert exc_info.value.service == 'default'
    assert patched.call_count == 1
