"""
Donation split between the beneficiary and the platform.

The platform keeps a flat 10% when the donor opts in, rounded half-up to the
nearest cent. The beneficiary gets the remainder, so the two shares always add
up to the charged amount.

Shares travel as PaymentIntent metadata (Stripe stores metadata values as
strings) and are read back from there at settlement time.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Mapping, Optional

from app.errors import InvalidAmount

PLATFORM_RATE = Decimal("0.10")
# Stripe rejects amounts above eight digits in minor units.
MAX_AMOUNT_CENTS = 99_999_999

NO_BENEFICIARY = "none"


@dataclass(frozen=True)
class Split:
    total_cents: int
    platform_cents: int
    beneficiary_cents: int

    def as_metadata(self, beneficiary_id: Optional[str]) -> dict[str, str]:
        return {
            "beneficiary_id": beneficiary_id or NO_BENEFICIARY,
            "platform_share_cents": str(self.platform_cents),
            "beneficiary_share_cents": str(self.beneficiary_cents),
        }


def _to_decimal(amount: Any) -> Decimal:
    if amount is None or isinstance(amount, bool):
        raise InvalidAmount("amount must be a number")
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, int):
        value = Decimal(amount)
    elif isinstance(amount, float):
        # repr() of a float is its shortest round-tripping form, so 19.99
        # stays 19.99 instead of 19.989999999999998...
        value = Decimal(repr(amount))
    elif isinstance(amount, str):
        try:
            value = Decimal(amount.strip())
        except InvalidOperation:
            raise InvalidAmount("amount must be a number") from None
    else:
        raise InvalidAmount("amount must be a number")

    if not value.is_finite():
        raise InvalidAmount("amount must be a finite number")
    return value


def to_cents(amount: Any) -> int:
    """Convert a decimal currency amount to minor units, rounding half-up."""
    value = _to_decimal(amount)
    if value <= 0:
        raise InvalidAmount("amount must be > 0")
    if value > MAX_AMOUNT_CENTS:
        raise InvalidAmount("amount exceeds the maximum charge")
    cents = int((value * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    if cents <= 0:
        raise InvalidAmount("amount must be at least one cent")
    if cents > MAX_AMOUNT_CENTS:
        raise InvalidAmount("amount exceeds the maximum charge")
    return cents


def split_cents(total_cents: int, donate_to_platform: bool) -> Split:
    if not donate_to_platform:
        return Split(total_cents, 0, total_cents)
    platform = int(
        (Decimal(total_cents) * PLATFORM_RATE).quantize(
            Decimal(1), rounding=ROUND_HALF_UP
        )
    )
    return Split(total_cents, platform, total_cents - platform)


def compute_split(requested_amount: Any, donate_to_platform: bool) -> Split:
    """
    Split a requested donation (in currency units, e.g. dollars).

    Raises InvalidAmount for non-numeric, zero, negative or out-of-range input.
    """
    return split_cents(to_cents(requested_amount), bool(donate_to_platform))


def _cents_field(metadata: Mapping[str, Any], key: str) -> Optional[int]:
    raw = metadata.get(key)
    if raw is None or isinstance(raw, bool):
        return None
    text = str(raw)
    # only the plain ASCII digits that Split.as_metadata writes
    if not (text.isascii() and text.isdigit()):
        return None
    return int(text)


def split_from_metadata(
    metadata: Mapping[str, Any] | None, amount_cents: Optional[int]
) -> Optional[Split]:
    """
    Rebuild the split recorded on a PaymentIntent.

    Returns None when the shares are missing, malformed, or do not add up to
    the charged amount (i.e. the intent was not issued by this service).
    """
    if not metadata:
        return None
    platform = _cents_field(metadata, "platform_share_cents")
    beneficiary = _cents_field(metadata, "beneficiary_share_cents")
    if platform is None or beneficiary is None:
        return None
    total = platform + beneficiary
    if total <= 0:
        return None
    if amount_cents is not None and total != amount_cents:
        return None
    return Split(total, platform, beneficiary)


def beneficiary_from_metadata(metadata: Mapping[str, Any] | None) -> Optional[str]:
    value = (metadata or {}).get("beneficiary_id")
    if not value or value == NO_BENEFICIARY:
        return None
    return str(value)
