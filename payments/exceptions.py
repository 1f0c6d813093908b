"""Errors raised while talking to the external payment services."""

TIMEOUT = 'timeout'
CONNECTION = 'connection'


class PaymentServiceError(Exception):
    """
    Failure of a single external payment service call.

    Attributes:
        message: Human readable description
        status: HTTP status code, or the TIMEOUT / CONNECTION tags
        response_body: Raw response text, when a response was received
        payload: Parsed JSON response body, when the body was JSON
        service: Name of the service that failed (e.g. 'default')
    """

    def __init__(self, message, status=None, response_body=None, payload=None, service=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.response_body = response_body
        self.payload = payload
        self.service = service

    def __str__(self):
        return self.message


class PaymentServiceClientError(PaymentServiceError):
    """4xx response: the request itself was rejected."""


class PaymentServiceFormatError(PaymentServiceError):
    """2xx response whose body could not be parsed."""


class PaymentServiceUnavailableError(PaymentServiceError):
    """The service could not handle the request right now."""


class PaymentServiceServerError(PaymentServiceUnavailableError):
    """5xx response."""


class PaymentServiceTimeoutError(PaymentServiceUnavailableError):

    def __init__(self, message, **kwargs):
        kwargs.setdefault('status', TIMEOUT)
        super().__init__(message, **kwargs)


class PaymentServiceConnectionError(PaymentServiceUnavailableError):

    def __init__(self, message, **kwargs):
        kwargs.setdefault('status', CONNECTION)
        super().__init__(message, **kwargs)


def is_service_unavailable(error):
    """
    Decide whether an error should trigger failover or a retry.

    Timeouts, connection failures and 5xx responses count as the service
    being unavailable. Client errors and malformed responses do not.
    """
    status = error.status
    if status in (TIMEOUT, CONNECTION):
        return True
    if 'connection error' in (error.message or '').lower():
        return True
    return isinstance(status, int) and not isinstance(status, bool) and status >= 500
