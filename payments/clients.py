"""HTTP client for the external payment services."""

import json
import logging
import requests

from .conf import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from .exceptions import (
    PaymentServiceClientError,
    PaymentServiceConnectionError,
    PaymentServiceError,
    PaymentServiceFormatError,
    PaymentServiceServerError,
    PaymentServiceTimeoutError,
)
from .utils import iso_timestamp

logger = logging.getLogger(__name__)


class PaymentServiceClient:
    """
    Registers payments with one external payment service.

    The default and fallback services behave identically; each is a client
    built with its own name and base URL.
    """

    def __init__(self, name, base_url, timeout=DEFAULT_TIMEOUT, user_agent=DEFAULT_USER_AGENT):
        self.name = name
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.user_agent = user_agent

    @classmethod
    def from_config(cls, config):
        return cls(
            name=config.name,
            base_url=config.base_url,
            timeout=config.timeout,
            user_agent=config.user_agent,
        )

    def __repr__(self):
        return f"PaymentServiceClient({self.name!r}, {self.base_url!r})"

    @property
    def headers(self):
        return {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            'User-Agent': self.user_agent,
        }

    def register_payment(self, correlation_id, amount, requested_at=None):
        """
        Register a payment with the service.

        Args:
            correlation_id: Payment correlation id
            amount: Amount in dollars
            requested_at: ISO-8601 timestamp string, defaults to now

        Returns:
            dict: Parsed response body

        Raises:
            PaymentServiceError: Classified failure of the call
        """
        payload = {
            'correlationId': correlation_id,
            'amount': float(amount),
            'requestedAt': requested_at or iso_timestamp(),
        }
        response = self._post('/payments', payload)
        return self._parse_response(response)

    def _post(self, path, payload):
        url = f"{self.base_url}{path}"
        logger.info(f"Making POST request to {url} ({self.name})")
        logger.debug(f"Request body: {json.dumps(payload)}")

        try:
            response = requests.post(
                url,
                data=json.dumps(payload),
                headers=self.headers,
                timeout=(self.timeout, self.timeout),
                allow_redirects=False,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Payment service timeout ({self.name}): {str(e)}")
            raise PaymentServiceTimeoutError("Payment service timeout", service=self.name)
        except (requests.exceptions.ConnectionError, requests.exceptions.ChunkedEncodingError) as e:
            # A response cut off mid-body is a dropped connection
            logger.error(f"Payment service connection error ({self.name}): {str(e)}")
            raise PaymentServiceConnectionError(
                f"Payment service connection error: {str(e)}",
                service=self.name,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Payment service request error ({self.name}): {str(e)}")
            raise PaymentServiceError(
                f"Payment service request error: {str(e)}",
                service=self.name,
            )

        logger.info(f"Payment service response: {response.status_code} {response.reason} ({self.name})")
        logger.debug(f"Response body: {response.text}")
        return response

    def _parse_response(self, response):
        status_code = response.status_code
        body = response.text

        if 200 <= status_code < 300:
            if not body.strip():
                return {'message': 'Success'}
            try:
                return response.json()
            except ValueError as e:
                logger.error(f"Failed to parse payment service response ({self.name}): {str(e)}")
                raise PaymentServiceFormatError(
                    "Invalid response format from payment service",
                    status=status_code,
                    response_body=body,
                    service=self.name,
                )

        error_payload = self._parse_error_body(body)
        if 400 <= status_code < 500:
            error_class, label = PaymentServiceClientError, 'client error'
        elif 500 <= status_code < 600:
            error_class, label = PaymentServiceServerError, 'server error'
        else:
            raise PaymentServiceError(
                f"Unexpected response code: {status_code}",
                status=status_code,
                response_body=body,
                payload=error_payload,
                service=self.name,
            )

        detail = error_payload if error_payload is not None else label.capitalize()
        raise error_class(
            f"Payment service {label}: {detail}",
            status=status_code,
            response_body=body,
            payload=error_payload,
            service=self.name,
        )

    @staticmethod
    def _parse_error_body(body):
        if not body or not body.strip():
            return None
        try:
            return json.loads(body)
        except ValueError:
            return body
