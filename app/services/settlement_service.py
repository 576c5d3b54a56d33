"""
Settlement: turn a verified "payment succeeded" event into exactly one ledger
row.

Per intent there are two states, unsettled and settled, and the only evidence
of the second is the row itself. The insert is conditional at the database,
so duplicate or concurrent deliveries of one event converge on a single row
and exactly one caller sees RECORDED.
"""

import enum
import logging
from datetime import datetime, timezone

from app.models.donation import DonationRecord, donation_id_for_intent
from app.utils.split import beneficiary_from_metadata, split_from_metadata

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_succeeded"


class SettleOutcome(str, enum.Enum):
    RECORDED = "recorded"
    ALREADY_RECORDED = "already_recorded"
    IGNORED = "ignored"


def build_record(event, *, now: datetime | None = None) -> DonationRecord | None:
    split = split_from_metadata(event.metadata, event.amount)
    if split is None:
        return None
    return DonationRecord(
        donation_id=donation_id_for_intent(event.intent_id),
        source_intent_id=event.intent_id,
        beneficiary_id=beneficiary_from_metadata(event.metadata),
        beneficiary_amount_cents=split.beneficiary_cents,
        platform_amount_cents=split.platform_cents,
        currency=(event.currency or "usd").lower(),
        recorded_at=now or datetime.now(timezone.utc),
    )


def settle(event, store) -> tuple[SettleOutcome, DonationRecord | None]:
    """
    Record the donation for a verified event.

    Returns the outcome and the record that was written (or would have been,
    for ALREADY_RECORDED). StorageError from the store propagates untouched.
    """
    if event.event_type != PAYMENT_SUCCEEDED or not event.intent_id:
        return SettleOutcome.IGNORED, None

    record = build_record(event)
    if record is None:
        logger.warning(
            "intent %s has no usable split metadata; not recording",
            event.intent_id,
        )
        return SettleOutcome.IGNORED, None

    if store.insert_if_absent(record):
        logger.info(
            "donation %s recorded for intent %s",
            record.donation_id,
            record.source_intent_id,
        )
        return SettleOutcome.RECORDED, record

    logger.info("intent %s already settled", record.source_intent_id)
    return SettleOutcome.ALREADY_RECORDED, record
