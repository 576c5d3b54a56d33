import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import stripe

from app.errors import InvalidBeneficiary, ProviderUnavailable
from app.metrics import PAYMENT_INTENTS
from app.utils.split import NO_BENEFICIARY, Split, compute_split

logger = logging.getLogger(__name__)

MAX_BENEFICIARY_ID_LENGTH = 200


@dataclass(frozen=True)
class IssuedIntent:
    intent_id: str
    client_secret: str
    split: Split

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clientSecret": self.client_secret,
            "intentId": self.intent_id,
            "amount_cents": self.split.total_cents,
            "platform_share_cents": self.split.platform_cents,
            "beneficiary_share_cents": self.split.beneficiary_cents,
        }


class StripeGateway:
    """
    Thin wrapper over stripe.PaymentIntent.create with a bounded request and no
    retries, so a slow Stripe call fails fast and the caller decides to retry.
    """

    def __init__(self, api_key: str, *, timeout: float = 10.0):
        self.api_key = api_key
        # The stripe library keeps its HTTP client and retry policy at module
        # level; both are process-wide settings.
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)
        stripe.max_network_retries = 0

    def create_payment_intent(
        self,
        *,
        amount_cents: int,
        currency: str,
        metadata: Dict[str, str],
        idempotency_key: Optional[str] = None,
    ) -> Dict[str, str]:
        params: Dict[str, Any] = {
            "amount": amount_cents,
            "currency": currency,
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
            "api_key": self.api_key,
        }
        if idempotency_key:
            params["idempotency_key"] = idempotency_key
        try:
            pi = stripe.PaymentIntent.create(**params)
        except stripe.StripeError as e:
            # the message never includes the API key
            logger.warning(
                "stripe PaymentIntent.create failed (%s): %s",
                type(e).__name__,
                getattr(e, "user_message", None) or str(e),
            )
            raise ProviderUnavailable("payment provider unavailable") from e
        return {"id": pi.id, "client_secret": pi.client_secret}


def normalize_beneficiary_id(beneficiary_id: Any) -> Optional[str]:
    if beneficiary_id is None:
        return None
    if not isinstance(beneficiary_id, str):
        raise InvalidBeneficiary("beneficiary id must be a string")
    value = beneficiary_id.strip()
    if not value or value == NO_BENEFICIARY:
        return None
    if len(value) > MAX_BENEFICIARY_ID_LENGTH:
        raise InvalidBeneficiary("beneficiary id too long")
    return value


def create_intent(
    *,
    amount: Any,
    donate_to_platform: bool,
    beneficiary_id: Any,
    gateway,
    currency: str = "usd",
    directory=None,
    idempotency_key: Optional[str] = None,
) -> IssuedIntent:
    """
    Create a PaymentIntent carrying the split as metadata.

    The split is not stored anywhere else; settlement reads it back from the
    intent that Stripe sends in the webhook.
    """
    split = compute_split(amount, donate_to_platform)
    beneficiary = normalize_beneficiary_id(beneficiary_id)

    if beneficiary and directory is not None:
        if not directory.beneficiary_exists(beneficiary):
            raise InvalidBeneficiary("unknown beneficiary")

    try:
        pi = gateway.create_payment_intent(
            amount_cents=split.total_cents,
            currency=currency,
            metadata=split.as_metadata(beneficiary),
            idempotency_key=idempotency_key,
        )
    except ProviderUnavailable:
        PAYMENT_INTENTS.labels(result="provider_unavailable").inc()
        raise

    PAYMENT_INTENTS.labels(result="created").inc()
    logger.info(
        "payment intent %s created amount=%s platform=%s beneficiary=%s",
        pi["id"],
        split.total_cents,
        split.platform_cents,
        beneficiary or NO_BENEFICIARY,
    )
    return IssuedIntent(
        intent_id=pi["id"], client_secret=pi["client_secret"], split=split
    )
