"""
Paystack transaction verification

Only the verify endpoint is used here: the guest is sent to Paystack by
the checkout collaborator, and this service asks Paystack what happened
to a reference before touching the booking. The checkout sends the
booking id as ``booking_id`` in the transaction metadata.
"""

import logging
from urllib.parse import quote
from uuid import UUID

import requests
from django.conf import settings
from django.utils.dateparse import parse_datetime
from rest_framework import serializers

from .domain.reconciliation import VerificationResult

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.paystack.co"
REQUEST_TIMEOUT = 30


class PaystackVerificationError(Exception):
    """Transport, HTTP or payload error while verifying a transaction."""

    pass


class _AuthorizationSerializer(serializers.Serializer):
    authorization_code = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class _CustomerSerializer(serializers.Serializer):
    email = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    customer_code = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class PaystackTransactionSerializer(serializers.Serializer):
    """The ``data`` object of a verify response"""

    status = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    reference = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    amount = serializers.IntegerField(required=False, allow_null=True)
    currency = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    paid_at = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    authorization = _AuthorizationSerializer(required=False, allow_null=True)
    customer = _CustomerSerializer(required=False, allow_null=True)
    metadata = serializers.JSONField(required=False, allow_null=True)

    def to_verification(self, raw: dict) -> VerificationResult:
        data = self.validated_data
        status = (data.get("status") or "unknown").strip().lower()
        paid_at = parse_datetime(data["paid_at"]) if data.get("paid_at") else None
        authorization = data.get("authorization") or {}
        customer = data.get("customer") or {}
        return VerificationResult(
            ok=status == "success",
            status=status,
            amount_minor=data.get("amount"),
            currency=(data.get("currency") or "NGN").strip().upper(),
            paid_at=paid_at,
            authorization_code=authorization.get("authorization_code") or "",
            customer_code=customer.get("customer_code") or "",
            booking_id=_metadata_booking_id(data.get("metadata")),
            raw=raw,
        )


def _metadata_booking_id(metadata) -> UUID | None:
    """booking_id the checkout sent in the transaction metadata, if any"""
    if not isinstance(metadata, dict) or not metadata.get("booking_id"):
        return None
    try:
        return UUID(str(metadata["booking_id"]))
    except ValueError:
        return None


def _config() -> tuple[str, str]:
    secret_key = getattr(settings, "PAYSTACK_SECRET_KEY", "")
    base_url = getattr(settings, "PAYSTACK_API_BASE_URL", DEFAULT_API_BASE_URL) or DEFAULT_API_BASE_URL
    return secret_key, base_url.rstrip("/")


def verify_transaction(reference: str) -> VerificationResult:
    """
    Ask Paystack for the outcome of a transaction

    Args:
        reference: Provider reference stored on the payment record

    Returns:
        VerificationResult; ``ok`` only when Paystack reports ``success``

    Raises:
        PaystackVerificationError: not configured, network error, non-2xx or malformed body
    """
    secret_key, base_url = _config()
    if not secret_key:
        raise PaystackVerificationError("Paystack is not configured")

    logger.info(f"Verifying Paystack transaction {reference}")

    try:
        response = requests.get(
            f"{base_url}/transaction/verify/{quote(reference, safe='')}",
            headers={
                "Authorization": f"Bearer {secret_key}",
                "Accept": "application/json",
            },
            timeout=REQUEST_TIMEOUT,
        )
    except requests.exceptions.RequestException as e:
        logger.error(f"Network error while verifying Paystack transaction {reference}: {e}")
        raise PaystackVerificationError(f"Unable to reach Paystack: {e}") from e

    try:
        payload = response.json()
    except ValueError:
        payload = None

    if not response.ok or not isinstance(payload, dict) or not payload.get("status") or not payload.get("data"):
        message = (payload or {}).get("message") if isinstance(payload, dict) else None
        message = message or "Unable to verify Paystack transaction."
        logger.error(f"Paystack verify failed for {reference} (HTTP {response.status_code}): {message}")
        raise PaystackVerificationError(message)

    serializer = PaystackTransactionSerializer(data=payload["data"])
    if not serializer.is_valid():
        logger.error(f"Malformed Paystack verify payload for {reference}: {serializer.errors}")
        raise PaystackVerificationError("Malformed Paystack verify payload")

    result = serializer.to_verification(payload)
    logger.info(f"Paystack transaction {reference} status: {result.status}")
    return result
