import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

import stripe

from app.errors import AuthenticationError, StorageError
from app.metrics import WEBHOOK_NOTIFICATIONS
from app.services.settlement_service import SettleOutcome, settle

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 300

EVENT_TYPES = {
    "payment_intent.succeeded": "payment_succeeded",
    "payment_intent.payment_failed": "payment_failed",
    "payment_intent.canceled": "payment_canceled",
}


@dataclass(frozen=True)
class VerifiedEvent:
    event_id: str
    event_type: str
    intent_id: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    livemode: bool = False


def _header_timestamp(sig_header: str) -> Optional[int]:
    for item in sig_header.split(","):
        key, _, value = item.strip().partition("=")
        if key == "t":
            try:
                return int(value)
            except ValueError:
                return None
    return None


def _parse_event(body: str) -> VerifiedEvent:
    try:
        raw = json.loads(body)
    except ValueError:
        raise AuthenticationError("payload is not JSON") from None

    if not isinstance(raw, dict):
        raise AuthenticationError("payload is not an event object")
    event_id = raw.get("id")
    ev_type = raw.get("type")
    data = raw.get("data")
    obj = data.get("object") if isinstance(data, dict) else None
    if not isinstance(event_id, str) or not isinstance(ev_type, str):
        raise AuthenticationError("event id/type missing")
    if not isinstance(obj, dict):
        raise AuthenticationError("event data.object missing")

    if not ev_type.startswith("payment_intent."):
        return VerifiedEvent(
            event_id=event_id,
            event_type=EVENT_TYPES.get(ev_type, ev_type),
            livemode=bool(raw.get("livemode")),
        )

    intent_id = obj.get("id")
    if not isinstance(intent_id, str) or not intent_id:
        raise AuthenticationError("payment intent id missing")
    amount = obj.get("amount")
    metadata = obj.get("metadata")
    return VerifiedEvent(
        event_id=event_id,
        event_type=EVENT_TYPES.get(ev_type, ev_type),
        intent_id=intent_id,
        amount=amount if isinstance(amount, int) and not isinstance(amount, bool) else None,
        currency=obj.get("currency") if isinstance(obj.get("currency"), str) else None,
        metadata=metadata if isinstance(metadata, dict) else {},
        livemode=bool(raw.get("livemode")),
    )


def authenticate(
    payload: bytes,
    sig_header: Optional[str],
    secret: str,
    *,
    tolerance: int = DEFAULT_TOLERANCE,
) -> VerifiedEvent:
    """
    Verify a Stripe webhook and return the event it carries.

    Stripe signs "<timestamp>.<body>" with HMAC-SHA256 and sends
    `Stripe-Signature: t=<timestamp>,v1=<hex>`. The signature is checked in
    constant time against the exact bytes received, and only then is the body
    parsed. Timestamps older (or further in the future) than `tolerance`
    seconds are rejected so captured requests cannot be replayed.
    """
    if not secret:
        raise AuthenticationError("webhook secret not configured")
    if not sig_header:
        raise AuthenticationError("missing signature header")
    if not tolerance or tolerance <= 0:
        raise AuthenticationError("replay tolerance must be positive")
    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError:
        raise AuthenticationError("payload is not UTF-8") from None

    try:
        stripe.WebhookSignature.verify_header(body, sig_header, secret, tolerance)
    except stripe.SignatureVerificationError as e:
        raise AuthenticationError(str(e)) from None

    ts = _header_timestamp(sig_header)
    if ts is None or ts > time.time() + tolerance:
        raise AuthenticationError("timestamp outside the tolerance zone")

    return _parse_event(body)


def process_stripe_event(
    payload: bytes,
    sig_header: Optional[str],
    *,
    secret: str,
    store,
    tolerance: int = DEFAULT_TOLERANCE,
    on_recorded: Optional[Callable] = None,
) -> Tuple[int, Dict[str, Any]]:
    """
    Handle a Stripe notification idempotently.

    Recorded, already-recorded and ignored events are all acknowledged with
    200 so Stripe stops redelivering. AuthenticationError and StorageError
    propagate; the HTTP layer answers them with a non-2xx status.
    """
    try:
        event = authenticate(payload, sig_header, secret, tolerance=tolerance)
    except AuthenticationError as e:
        WEBHOOK_NOTIFICATIONS.labels(outcome="rejected").inc()
        logger.warning("webhook rejected: %s", e.message)
        raise

    try:
        outcome, record = settle(event, store)
    except StorageError:
        WEBHOOK_NOTIFICATIONS.labels(outcome="storage_error").inc()
        logger.error(
            "webhook %s not acknowledged, storage unavailable", event.event_id
        )
        raise

    WEBHOOK_NOTIFICATIONS.labels(outcome=outcome.value).inc()
    if outcome is SettleOutcome.IGNORED:
        logger.info("webhook %s ignored (type=%s)", event.event_id, event.event_type)

    if outcome is SettleOutcome.RECORDED and on_recorded is not None:
        # The row is already committed; a failing side effect must not turn
        # into a redelivery.
        try:
            on_recorded(record)
        except Exception:
            logger.exception("post-settlement hook failed for %s", record.donation_id)

    return 200, {"received": True, "outcome": outcome.value}
